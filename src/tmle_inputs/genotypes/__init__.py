"""Genotype calling from dosage probabilities."""

from .bgen_source import BgenGenotypeSource, bgen_files_from_prefix
from .decoder import (
    GenotypeSource,
    VariantNotFoundError,
    call_genotypes,
    call_variants,
    genotypes_encoding,
    minor_allele_index,
)

__all__ = [
    "BgenGenotypeSource",
    "GenotypeSource",
    "VariantNotFoundError",
    "bgen_files_from_prefix",
    "call_genotypes",
    "call_variants",
    "genotypes_encoding",
    "minor_allele_index",
]
