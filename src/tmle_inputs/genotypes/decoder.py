"""Genotype calling from BGEN dosage probabilities.

For a bi-allelic diploid variant the probability columns are, in BGEN order:
- class 0: homozygous for the first allele
- class 1: heterozygous
- class 2: homozygous for the second allele

Integer calls count copies of the minor allele, so the class-to-call mapping
depends on which allele is minor.
"""

import logging
from collections.abc import Sequence
from typing import Any, Protocol

import numpy as np
import pandas as pd

from ..models import SAMPLE_ID, Variant

logger = logging.getLogger(__name__)


class VariantNotFoundError(LookupError):
    """Raised when a requested variant is absent from the genotype source."""

    pass


class GenotypeSource(Protocol):
    """Read-only access to per-sample genotype probabilities."""

    @property
    def samples(self) -> list[str]: ...

    def has_variant(self, rsid: str) -> bool: ...

    def read_variant(self, rsid: str) -> tuple[Variant, np.ndarray]:
        """Return the variant and its (n_samples, 3) probability matrix."""
        ...


def minor_allele_index(probabilities: np.ndarray) -> int:
    """Index (0 or 1) of the minor allele given genotype probabilities.

    Expected allele counts are computed over samples with a complete
    probability row. A tie designates the second allele as minor.
    """
    probabilities = np.asarray(probabilities, dtype=np.float64)
    called = probabilities[~np.isnan(probabilities).any(axis=1)]
    first = (2 * called[:, 0] + called[:, 1]).sum()
    second = (called[:, 1] + 2 * called[:, 2]).sum()
    return 0 if first < second else 1


def genotypes_encoding(variant: Variant, as_int: bool = True) -> list[Any]:
    """Value emitted for each probability class of a variant.

    Args:
        variant: Variant with its minor allele designated
        as_int: Encode as count of minor alleles, otherwise as allele strings

    Returns:
        Three values, one per probability class
    """
    if as_int:
        return [2, 1, 0] if variant.minor_allele_first else [0, 1, 2]

    a1, a2 = variant.alleles
    return [a1 + a1, a1 + a2, a2 + a2]


def call_genotypes(
    probabilities: np.ndarray,
    variant_genotypes: Sequence[Any],
    threshold: float,
) -> list[Any]:
    """Hard-call genotypes from a probability matrix.

    A sample is called with the genotype of its most likely class when that
    probability reaches the threshold. Rows with any NaN are never called.

    Args:
        probabilities: Array of shape (n_samples, 3)
        variant_genotypes: Encoding of the three classes
        threshold: Minimum probability to make a call

    Returns:
        One call per sample, None when missing
    """
    probabilities = np.asarray(probabilities, dtype=np.float64)
    if probabilities.ndim != 2 or probabilities.shape[1] != 3:
        raise ValueError(
            f"Expected a (n_samples, 3) probability matrix, got shape {probabilities.shape}"
        )

    missing_rows = np.isnan(probabilities).any(axis=1)
    best = np.argmax(np.nan_to_num(probabilities, nan=-1.0), axis=1)
    best_probability = probabilities[np.arange(len(probabilities)), best]

    calls: list[Any] = []
    for is_missing, klass, p in zip(missing_rows, best, best_probability, strict=True):
        if is_missing or p < threshold:
            calls.append(None)
        else:
            calls.append(variant_genotypes[klass])
    return calls


def call_variants(
    source: GenotypeSource,
    rsids: Sequence[str],
    threshold: float,
    as_int: bool = True,
) -> pd.DataFrame:
    """Call every requested variant into one SAMPLE_ID keyed table.

    Args:
        source: Genotype source
        rsids: Variant identifiers, in output column order
        threshold: Call confidence threshold
        as_int: Integer (minor allele count) or string calls

    Returns:
        DataFrame with SAMPLE_ID then one column per variant

    Raises:
        VariantNotFoundError: If a variant is absent from the source
    """
    missing = [rsid for rsid in rsids if not source.has_variant(rsid)]
    if missing:
        raise VariantNotFoundError(
            f"Variants not found in genotype source: {', '.join(missing)}"
        )

    columns: dict[str, Any] = {SAMPLE_ID: [str(sample) for sample in source.samples]}
    for rsid in rsids:
        variant, probabilities = source.read_variant(rsid)
        calls = call_genotypes(probabilities, genotypes_encoding(variant, as_int), threshold)
        columns[rsid] = pd.Series(calls, dtype="Int64" if as_int else object)
        logger.debug(
            "Called %s: %d/%d samples above threshold %.2f",
            rsid,
            sum(c is not None for c in calls),
            len(calls),
            threshold,
        )

    genotypes = pd.DataFrame(columns)
    logger.info("Called %d variants for %d samples", len(rsids), len(genotypes))
    return genotypes
