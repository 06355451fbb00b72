"""Empirical positivity checks on treatment assignments."""

from collections.abc import Sequence
from itertools import product
from typing import Any

import pandas as pd

from ..models import CausalParameter, to_native

FrequencyTable = dict[tuple[Any, ...], float]


def frequency_table(data: pd.DataFrame, treatments: Sequence[str]) -> FrequencyTable:
    """Joint frequency of every observed treatment value tuple.

    Rows with a missing treatment value are not counted, frequencies are
    relative to the total number of rows.

    Args:
        data: Table holding the treatment columns
        treatments: Treatment columns, in key order

    Returns:
        Mapping from value tuples to count / number of rows
    """
    n_rows = len(data)
    if n_rows == 0:
        return {}

    counts = data[list(treatments)].dropna().value_counts(sort=False)
    freqs: FrequencyTable = {}
    for key, count in counts.items():
        key = key if isinstance(key, tuple) else (key,)
        freqs[tuple(to_native(v) for v in key)] = count / n_rows
    return freqs


def parameter_cells(parameter: CausalParameter) -> list[tuple[Any, ...]]:
    """Treatment value tuples a parameter contrasts.

    Every combination of control and case values across treatments, so an
    ATE with fixed treatments has two cells and an IATE of order k has 2**k.
    """
    values = [
        tuple(dict.fromkeys((to_native(cc.control), to_native(cc.case))))
        for _, cc in parameter.setting
    ]
    return list(product(*values))


def satisfies_positivity(
    parameter: CausalParameter,
    freqs: FrequencyTable,
    positivity_constraint: float = 0.0,
) -> bool:
    """Whether every cell of the parameter is observed often enough.

    A cell never observed always fails, so a constraint of 0 still requires
    nonzero support.
    """
    for cell in parameter_cells(parameter):
        freq = freqs.get(cell)
        if freq is None or freq < positivity_constraint:
            return False
    return True
