"""ATE and IATE parameter generation with positivity filtering."""

import logging
from collections.abc import Iterable, Iterator, Sequence
from itertools import combinations, product

import pandas as pd

from ..actors.catalog import ActorSource
from ..config import ConfigurationError
from ..dataset.assembler import Variables
from ..models import (
    CaseControl,
    CausalParameter,
    ParameterFile,
    ParameterType,
    TreatmentCombination,
    to_native,
)
from .combinations import combine_by_bqtl
from .positivity import frequency_table, satisfies_positivity

logger = logging.getLogger(__name__)


class NoRemainingParamsError(ConfigurationError):
    """Raised when no parameter passes the positivity constraint."""

    def __init__(self, positivity_constraint: float):
        self.positivity_constraint = positivity_constraint
        super().__init__(
            f"No parameter passed the given positivity constraint: {positivity_constraint}"
        )


def sorted_unique_values(values: pd.Series) -> list:
    """Observed values of a column, missing values skipped."""
    return sorted({to_native(v) for v in values.dropna().unique()})


def _contrasts(values: list) -> list[CaseControl]:
    return [CaseControl(case=case, control=control) for case, control in combinations(values, 2)]


def control_case_settings(
    parameter_type: ParameterType,
    combination: TreatmentCombination,
    data: pd.DataFrame,
) -> Iterator[tuple[tuple[str, CaseControl], ...]]:
    """Generate the treatment settings of one parameter family.

    Contrasts pair sorted observed values with the smaller one as case.
    ATE: the primary treatment takes every contrast of its values, the other
    treatments are fixed at each of their observed values. IATE: every
    treatment takes every contrast. Settings are the Cartesian product of the
    per-treatment options.
    """
    names = combination.names
    options: list[list[CaseControl]] = []
    if parameter_type is ParameterType.ATE:
        options.append(_contrasts(sorted_unique_values(data[combination.primary])))
        for name in combination.others:
            options.append(
                [CaseControl(case=v, control=v) for v in sorted_unique_values(data[name])]
            )
    else:
        for name in names:
            options.append(_contrasts(sorted_unique_values(data[name])))

    for setting in product(*options):
        yield tuple(zip(names, setting, strict=True))


def add_parameters(
    parameters: list[CausalParameter],
    combination: TreatmentCombination,
    variables: Variables,
    data: pd.DataFrame,
    positivity_constraint: float = 0.0,
    families: Sequence[ParameterType] | None = None,
) -> int:
    """Append the parameters of a combination passing positivity.

    Without ``families``, ATEs are added, then IATEs when the combination
    holds at least two treatments.

    Returns:
        Number of parameters added
    """
    freqs = frequency_table(data, combination.names)
    if families is None:
        families = [ParameterType.ATE]
        if combination.order >= 2:
            families.append(ParameterType.IATE)

    added = 0
    for parameter_type in families:
        for setting in control_case_settings(parameter_type, combination, data):
            parameter = CausalParameter(
                type=parameter_type,
                primary_treatment=combination.primary,
                setting=setting,
                confounders=variables.confounders,
                covariates=variables.covariates,
            )
            if satisfies_positivity(parameter, freqs, positivity_constraint):
                parameters.append(parameter)
                added += 1
    return added


def parameters_from_actors(
    bqtls: ActorSource,
    transactors: ActorSource,
    extra_treatments: ActorSource,
    data: pd.DataFrame,
    variables: Variables,
    orders: Iterable[int],
    positivity_constraint: float = 0.0,
) -> list[CausalParameter]:
    """Every positivity-satisfying parameter over all interaction orders.

    Raises:
        NoRemainingParamsError: If no parameter survives
    """
    parameters: list[CausalParameter] = []
    for order in orders:
        n_combinations = 0
        n_before = len(parameters)
        for combination in combine_by_bqtl(bqtls, transactors, extra_treatments, order):
            add_parameters(parameters, combination, variables, data, positivity_constraint)
            n_combinations += 1
        logger.info(
            "Order %d: %d treatment combinations, %d parameters kept",
            order,
            n_combinations,
            len(parameters) - n_before,
        )

    if not parameters:
        raise NoRemainingParamsError(positivity_constraint)

    optimize_ordering(parameters)
    return parameters


def parameters_from_asb_trans(
    asb: Sequence[str],
    transactors: Sequence[str],
    data: pd.DataFrame,
    variables: Variables,
    positivity_constraint: float = 0.0,
) -> list[CausalParameter]:
    """IATEs of every (trans-actor, ASB SNP) pair passing positivity.

    Raises:
        NoRemainingParamsError: If no parameter survives
    """
    parameters: list[CausalParameter] = []
    n_pairs = 0
    for transactor, snp in product(transactors, asb):
        if transactor == snp:
            continue
        n_pairs += 1
        add_parameters(
            parameters,
            TreatmentCombination(primary=transactor, others=(snp,)),
            variables,
            data,
            positivity_constraint,
            families=(ParameterType.IATE,),
        )
    logger.info("%d (trans-actor, ASB SNP) pairs, %d parameters kept", n_pairs, len(parameters))

    if not parameters:
        raise NoRemainingParamsError(positivity_constraint)
    return parameters


def optimize_ordering(parameters: list[CausalParameter]) -> None:
    """Group in place parameters sharing treatments, confounders and covariates.

    Groups keep their first-seen order and the sort is stable, so the order
    within a group is unchanged.
    """
    first_seen: dict[tuple, int] = {}
    for parameter in parameters:
        first_seen.setdefault(parameter.template_key, len(first_seen))
    parameters.sort(key=lambda p: first_seen[p.template_key])


def group_parameters(parameters: Iterable[CausalParameter]) -> list[ParameterFile]:
    """One parameter file per (treatments, confounders, covariates) group."""
    files: dict[tuple, ParameterFile] = {}
    for parameter in parameters:
        key = parameter.template_key
        if key not in files:
            files[key] = ParameterFile(
                treatments=parameter.treatments,
                confounders=parameter.confounders,
                covariates=parameter.covariates,
            )
        files[key].parameters.append(parameter)
    return list(files.values())
