"""Dataset assembly from phenotypes, confounders, covariates and treatments."""

from .assembler import (
    BINARY,
    CONTINUOUS,
    DatasetError,
    TMLEDataset,
    Variables,
    assemble_dataset,
    check_outcome_types,
    common_samples,
    get_variables,
    merge_tables,
    read_data,
    select_available_treatments,
)

__all__ = [
    "BINARY",
    "CONTINUOUS",
    "DatasetError",
    "TMLEDataset",
    "Variables",
    "assemble_dataset",
    "check_outcome_types",
    "common_samples",
    "get_variables",
    "merge_tables",
    "read_data",
    "select_available_treatments",
]
