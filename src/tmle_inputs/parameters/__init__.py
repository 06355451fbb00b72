"""Causal parameter enumeration, templates and outcome expansion."""

from .combinations import combine_by_bqtl, treatment_units
from .enumerator import (
    NoRemainingParamsError,
    add_parameters,
    control_case_settings,
    group_parameters,
    optimize_ordering,
    parameters_from_actors,
    sorted_unique_values,
)
from .outcomes import expand_outcomes, outcome_parameter_files, phenotype_batches
from .positivity import frequency_table, parameter_cells, satisfies_positivity
from .templates import (
    ASB_PLACEHOLDER,
    TRANS_PLACEHOLDER,
    TemplateError,
    asb_trans_documents,
    filter_by_positivity,
    parse_template,
    read_parameter_templates,
    substitute_placeholders,
    template_treatments,
)

__all__ = [
    "ASB_PLACEHOLDER",
    "NoRemainingParamsError",
    "TRANS_PLACEHOLDER",
    "TemplateError",
    "add_parameters",
    "asb_trans_documents",
    "combine_by_bqtl",
    "control_case_settings",
    "expand_outcomes",
    "filter_by_positivity",
    "frequency_table",
    "group_parameters",
    "optimize_ordering",
    "outcome_parameter_files",
    "parameter_cells",
    "parameters_from_actors",
    "parse_template",
    "phenotype_batches",
    "read_parameter_templates",
    "satisfies_positivity",
    "sorted_unique_values",
    "substitute_placeholders",
    "template_treatments",
    "treatment_units",
]
