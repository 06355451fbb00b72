"""SNP and actor list readers."""

from .catalog import (
    ActorSource,
    SnpTable,
    SourceKind,
    all_variants,
    asb_snps,
    read_snps_from_csv,
    read_txt_file,
    read_variable_names,
    trans_actors,
    trans_actors_from_prefix,
    treatments_from_actors,
)

__all__ = [
    "ActorSource",
    "SnpTable",
    "SourceKind",
    "all_variants",
    "asb_snps",
    "read_snps_from_csv",
    "read_txt_file",
    "read_variable_names",
    "trans_actors",
    "trans_actors_from_prefix",
    "treatments_from_actors",
]
