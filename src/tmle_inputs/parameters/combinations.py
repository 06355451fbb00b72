"""Treatment combinations built from actor sources.

A combination of order k holds one bQTL (the primary treatment) and k - 1
treatments, each drawn from a distinct unit: one unit per trans-actor file,
plus the extra treatments as one more unit. Combinations are generated
lazily, in a deterministic order.
"""

import logging
from collections.abc import Iterator
from itertools import combinations, product

from ..actors.catalog import ActorSource, SnpTable, SourceKind
from ..models import TreatmentCombination

logger = logging.getLogger(__name__)


def treatment_units(transactors: ActorSource, extra_treatments: ActorSource) -> list[SnpTable]:
    """Units a combination draws its non primary treatments from."""
    units: list[SnpTable] = []
    if transactors.kind is not SourceKind.ABSENT:
        units.extend(transactors.tables)
    if extra_treatments.kind is not SourceKind.ABSENT:
        units.extend(extra_treatments.tables)
    return units


def _make_combination(primary: str, others: tuple[str, ...]) -> TreatmentCombination | None:
    if len({primary, *others}) != 1 + len(others):
        logger.debug("Skipping combination with repeated treatment: %s", (primary, *others))
        return None
    return TreatmentCombination(primary=primary, others=others)


def combine_by_bqtl(
    bqtls: ActorSource,
    transactors: ActorSource,
    extra_treatments: ActorSource,
    order: int,
) -> Iterator[TreatmentCombination]:
    """Generate every treatment combination of the given interaction order.

    Args:
        bqtls: Primary treatments source
        transactors: Trans-actor units
        extra_treatments: Extra treatments unit
        order: Number of treatments per combination

    Yields:
        TreatmentCombination with the bQTL as primary treatment. Without
        bQTLs, the treatment drawn from the first unit is the primary one.
    """
    if order < 1:
        raise ValueError(f"Interaction order must be positive, got {order}")

    units = treatment_units(transactors, extra_treatments)

    if bqtls.is_absent:
        for unit_combination in combinations(units, order):
            for ids in product(*(unit.ids for unit in unit_combination)):
                combination = _make_combination(ids[0], tuple(ids[1:]))
                if combination is not None:
                    yield combination
        return

    if order == 1:
        for bqtl in bqtls.ids:
            yield TreatmentCombination(primary=bqtl)
        return

    for unit_combination in combinations(units, order - 1):
        for bqtl, *others in product(bqtls.ids, *(unit.ids for unit in unit_combination)):
            combination = _make_combination(bqtl, tuple(others))
            if combination is not None:
                yield combination
