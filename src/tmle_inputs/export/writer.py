"""Write the assembled tables and parameter files.

Output files, for an output prefix ``final``:
- final.confounders.csv
- final.treatments.csv
- final.binary-phenotypes.csv / final.continuous-phenotypes.csv
- final.covariates.csv (when covariates are given)
- final.binary.parameter_<n>.yaml / final.continuous.parameter_<n>.yaml

Parameter files are numbered from 1, separately for each outcome type.
"""

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd
import yaml

from ..dataset.assembler import TMLEDataset, Variables
from ..models import ParameterFile
from ..parameters.outcomes import OUTCOME_TYPES, outcome_parameter_files

logger = logging.getLogger(__name__)


@dataclass
class WriteSummary:
    """Files written by a run."""

    data_files: list[Path] = field(default_factory=list)
    parameter_files: dict[str, list[Path]] = field(
        default_factory=lambda: {outcome_type: [] for outcome_type in OUTCOME_TYPES}
    )

    @property
    def n_parameter_files(self) -> int:
        return sum(len(paths) for paths in self.parameter_files.values())


def data_outputs(dataset: TMLEDataset) -> Iterator[tuple[str, pd.DataFrame]]:
    """(role, table) pairs in output order, absent tables skipped."""
    roles = [
        ("confounders", dataset.confounders),
        ("treatments", dataset.treatments),
        ("binary-phenotypes", dataset.binary_phenotypes),
        ("continuous-phenotypes", dataset.continuous_phenotypes),
        ("covariates", dataset.covariates),
    ]
    for role, table in roles:
        if table is not None:
            yield role, table


def parameter_outputs(
    files: Sequence[ParameterFile],
    variables: Variables,
    batch_size: int | None = None,
) -> Iterator[tuple[int, str, ParameterFile]]:
    """(index, outcome type, parameter file) triples, numbered per outcome type."""
    counters = dict.fromkeys(OUTCOME_TYPES, 0)
    for outcome_type, parameter_file in outcome_parameter_files(files, variables, batch_size):
        counters[outcome_type] += 1
        yield counters[outcome_type], outcome_type, parameter_file


def data_path(out_prefix: str, role: str) -> Path:
    return Path(f"{out_prefix}.{role}.csv")


def parameter_path(out_prefix: str, outcome_type: str, index: int) -> Path:
    return Path(f"{out_prefix}.{outcome_type}.parameter_{index}.yaml")


def write_parameter_file(path: Path, parameter_file: ParameterFile) -> None:
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(parameter_file.to_dict(), f, sort_keys=False, default_flow_style=False)


def write_tmle_inputs(
    out_prefix: str,
    dataset: TMLEDataset,
    files: Sequence[ParameterFile],
    variables: Variables,
    batch_size: int | None = None,
) -> WriteSummary:
    """Write the data tables and every parameter file.

    Args:
        out_prefix: Prefix of every output path
        dataset: Assembled role tables
        files: Parameter templates, before outcome expansion
        variables: Variable names, for outcome expansion
        batch_size: Phenotype batch size

    Returns:
        WriteSummary listing the written paths
    """
    summary = WriteSummary()
    parent = Path(out_prefix).parent
    parent.mkdir(parents=True, exist_ok=True)

    for outcome_type in OUTCOME_TYPES:
        for stale in parent.glob(f"{Path(out_prefix).name}.{outcome_type}.parameter_*.yaml"):
            logger.debug("Removing parameter file from a previous run: %s", stale)
            stale.unlink()

    for role, table in data_outputs(dataset):
        path = data_path(out_prefix, role)
        table.to_csv(path, index=False)
        summary.data_files.append(path)
        logger.info("Wrote %s: %d rows, %d columns", path, len(table), table.shape[1])

    for index, outcome_type, parameter_file in parameter_outputs(files, variables, batch_size):
        path = parameter_path(out_prefix, outcome_type, index)
        write_parameter_file(path, parameter_file)
        summary.parameter_files[outcome_type].append(path)

    for outcome_type, paths in summary.parameter_files.items():
        logger.info("Wrote %d %s parameter files", len(paths), outcome_type)
    return summary
