"""Assembly of the SAMPLE_ID keyed tables fed to the estimators.

Each role (confounders, treatments, covariates, binary and continuous
phenotypes) is kept as its own table. All tables are restricted to the samples
present in every input.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from functools import reduce
from pathlib import Path

import pandas as pd
from pandas.api import types as ptypes

from ..config import ConfigurationError
from ..models import SAMPLE_ID

logger = logging.getLogger(__name__)

BINARY = "binary"
CONTINUOUS = "continuous"
BOOLEAN_LIKE = {0, 1, True, False}


class DatasetError(ValueError):
    """Raised when an input table is malformed."""

    pass


@dataclass
class TMLEDataset:
    """Role tables sharing the same SAMPLE_ID rows."""

    confounders: pd.DataFrame
    treatments: pd.DataFrame
    binary_phenotypes: pd.DataFrame | None = None
    continuous_phenotypes: pd.DataFrame | None = None
    covariates: pd.DataFrame | None = None

    @property
    def n_samples(self) -> int:
        return len(self.confounders)

    def phenotypes(self, outcome_type: str) -> pd.DataFrame | None:
        if outcome_type == BINARY:
            return self.binary_phenotypes
        if outcome_type == CONTINUOUS:
            return self.continuous_phenotypes
        raise ValueError(f"Unknown outcome type: {outcome_type}")


@dataclass(frozen=True)
class Variables:
    """Variable names of each role, SAMPLE_ID excluded."""

    confounders: tuple[str, ...]
    covariates: tuple[str, ...]
    treatments: tuple[str, ...]
    binary_targets: tuple[str, ...] = ()
    continuous_targets: tuple[str, ...] = ()

    def targets(self, outcome_type: str) -> tuple[str, ...]:
        return self.binary_targets if outcome_type == BINARY else self.continuous_targets


def variable_columns(table: pd.DataFrame | None) -> tuple[str, ...]:
    if table is None:
        return ()
    return tuple(str(c) for c in table.columns if c != SAMPLE_ID)


def check_sample_ids(table: pd.DataFrame, name: str) -> pd.DataFrame:
    """Ensure the table has a unique SAMPLE_ID column."""
    if SAMPLE_ID not in table.columns:
        raise DatasetError(f"{name} has no {SAMPLE_ID} column")

    duplicated = table[SAMPLE_ID][table[SAMPLE_ID].duplicated()]
    if not duplicated.empty:
        raise DatasetError(
            f"{name} has duplicated {SAMPLE_ID} values: "
            f"{', '.join(map(str, duplicated.unique()[:5]))}"
        )
    return table


def read_data(path: str | Path | None) -> pd.DataFrame | None:
    """Read a SAMPLE_ID keyed CSV table, empty cells are missing values."""
    if path is None:
        return None

    table = pd.read_csv(path, dtype={SAMPLE_ID: str})
    table.columns = [str(c) for c in table.columns]
    return check_sample_ids(table, str(path))


def merge_tables(*tables: pd.DataFrame | None) -> pd.DataFrame | None:
    """Inner join of the given tables on SAMPLE_ID, None tables skipped."""
    present = [t for t in tables if t is not None]
    if not present:
        return None
    return reduce(
        lambda left, right: left.merge(right, on=SAMPLE_ID, how="inner", validate="one_to_one"),
        present,
    )


def common_samples(tables: Iterable[pd.DataFrame]) -> tuple[list[str], int]:
    """SAMPLE_IDs present in every table, in first-table order.

    Returns:
        Tuple of (common sample IDs, number of samples dropped)
    """
    tables = list(tables)
    all_samples: set[str] = set()
    shared: set[str] | None = None
    for table in tables:
        ids = set(table[SAMPLE_ID])
        all_samples |= ids
        shared = ids if shared is None else shared & ids

    shared = shared or set()
    ordered = [s for s in tables[0][SAMPLE_ID] if s in shared] if tables else []
    return ordered, len(all_samples) - len(shared)


def restrict_to_samples(
    table: pd.DataFrame | None, sample_ids: Sequence[str]
) -> pd.DataFrame | None:
    if table is None:
        return None
    indexed = table.set_index(SAMPLE_ID)
    return indexed.loc[list(sample_ids)].reset_index()


def check_outcome_types(table: pd.DataFrame | None, outcome_type: str) -> None:
    """Ensure every phenotype column matches its declared outcome type.

    Raises:
        ConfigurationError: If a column is neither boolean-like nor a float
    """
    for column in variable_columns(table):
        values = table[column].dropna()
        if outcome_type == BINARY:
            valid = set(values.unique()) <= BOOLEAN_LIKE
        else:
            valid = ptypes.is_numeric_dtype(values) and not ptypes.is_bool_dtype(values)
        if not valid:
            raise ConfigurationError(
                f"The type of the outcome {column}: {values.dtype}, "
                f"should be either a Float or a Bool (declared {outcome_type})"
            )


def select_available_treatments(
    requested: Iterable[str],
    available: Iterable[str],
) -> tuple[list[str], list[str]]:
    """Split requested treatments into available and missing ones.

    Returns:
        Tuple of (available treatments, missing treatments), request order kept
    """
    available = set(available)
    requested = list(dict.fromkeys(requested))
    kept = [t for t in requested if t in available]
    missing = [t for t in requested if t not in available]
    if missing:
        logger.warning(
            "Some treatment variables could not be read from the data files and "
            "associated parameter files will not be processed: %s",
            ", ".join(missing),
        )
    return kept, missing


def assemble_dataset(
    genetic_confounders: pd.DataFrame,
    genotypes: pd.DataFrame | None = None,
    extra_confounders: pd.DataFrame | None = None,
    extra_treatments: pd.DataFrame | None = None,
    covariates: pd.DataFrame | None = None,
    binary_phenotypes: pd.DataFrame | None = None,
    continuous_phenotypes: pd.DataFrame | None = None,
    treatment_names: Sequence[str] | None = None,
) -> TMLEDataset:
    """Build the role tables restricted to the samples shared by every input.

    Args:
        genetic_confounders: Principal components table (required)
        genotypes: Called genotypes table
        extra_confounders: Additional confounders table
        extra_treatments: Additional (non genetic) treatments table
        covariates: Covariates table
        binary_phenotypes: Binary outcomes table
        continuous_phenotypes: Continuous outcomes table
        treatment_names: Treatment columns to keep, in output order

    Returns:
        TMLEDataset with SAMPLE_ID first in every table
    """
    if genotypes is None and extra_treatments is None:
        raise DatasetError("At least one of genotypes or extra treatments is required")
    if binary_phenotypes is None and continuous_phenotypes is None:
        raise DatasetError("At least one phenotype table is required")

    check_outcome_types(binary_phenotypes, BINARY)
    check_outcome_types(continuous_phenotypes, CONTINUOUS)

    if extra_treatments is not None:
        extra_treatments = extra_treatments.convert_dtypes(convert_string=False)

    inputs = [
        t
        for t in (
            genetic_confounders,
            extra_confounders,
            genotypes,
            extra_treatments,
            covariates,
            binary_phenotypes,
            continuous_phenotypes,
        )
        if t is not None
    ]
    sample_ids, n_dropped = common_samples(inputs)
    if n_dropped:
        logger.warning(
            "%d samples are missing from at least one input table and were dropped", n_dropped
        )
    if not sample_ids:
        raise DatasetError("No sample is shared by all input tables")

    confounders = merge_tables(genetic_confounders, extra_confounders)
    treatments = merge_tables(genotypes, extra_treatments)
    if treatment_names is not None:
        treatments = treatments[[SAMPLE_ID, *treatment_names]]

    dataset = TMLEDataset(
        confounders=restrict_to_samples(confounders, sample_ids),
        treatments=restrict_to_samples(treatments, sample_ids),
        binary_phenotypes=restrict_to_samples(binary_phenotypes, sample_ids),
        continuous_phenotypes=restrict_to_samples(continuous_phenotypes, sample_ids),
        covariates=restrict_to_samples(covariates, sample_ids),
    )
    logger.info(
        "Assembled dataset: %d samples, %d confounders, %d treatments",
        dataset.n_samples,
        len(variable_columns(dataset.confounders)),
        len(variable_columns(dataset.treatments)),
    )
    return dataset


def get_variables(dataset: TMLEDataset) -> Variables:
    """Variable names of each role of an assembled dataset."""
    return Variables(
        confounders=variable_columns(dataset.confounders),
        covariates=variable_columns(dataset.covariates),
        treatments=variable_columns(dataset.treatments),
        binary_targets=variable_columns(dataset.binary_phenotypes),
        continuous_targets=variable_columns(dataset.continuous_phenotypes),
    )
