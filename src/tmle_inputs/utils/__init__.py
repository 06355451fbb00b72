"""Shared utility modules."""

from .validators import (
    ValidationError,
    parse_orders,
    validate_batch_size,
    validate_call_threshold,
    validate_positivity_constraint,
)

__all__ = [
    "ValidationError",
    "parse_orders",
    "validate_batch_size",
    "validate_call_threshold",
    "validate_positivity_constraint",
]
