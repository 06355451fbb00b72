"""Export of the data tables and parameter files."""

from .writer import (
    WriteSummary,
    data_outputs,
    data_path,
    parameter_outputs,
    parameter_path,
    write_parameter_file,
    write_tmle_inputs,
)

__all__ = [
    "WriteSummary",
    "data_outputs",
    "data_path",
    "parameter_outputs",
    "parameter_path",
    "write_parameter_file",
    "write_tmle_inputs",
]
