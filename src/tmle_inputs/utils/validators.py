"""Input validation utilities."""

import re


class ValidationError(ValueError):
    """Raised when input validation fails."""

    pass


ORDERS_PATTERN = re.compile(r"^\s*\d+(\s*,\s*\d+)*\s*$")


def validate_call_threshold(value: float | None, default: float = 0.9) -> float:
    """Validate the genotype call confidence threshold.

    Args:
        value: Threshold on the maximum genotype probability
        default: Value used when None

    Returns:
        Threshold as float in [0, 1]

    Raises:
        ValidationError: If the threshold is outside [0, 1]
    """
    if value is None:
        return default

    threshold = float(value)
    if not 0.0 <= threshold <= 1.0:
        raise ValidationError(f"call_threshold must be in [0, 1], got {value}")
    return threshold


def validate_positivity_constraint(value: float | None) -> float:
    """Validate the minimum frequency required for every treatment cell.

    Raises:
        ValidationError: If the constraint is negative or above 1
    """
    if value is None:
        return 0.0

    constraint = float(value)
    if not 0.0 <= constraint <= 1.0:
        raise ValidationError(f"positivity_constraint must be in [0, 1], got {value}")
    return constraint


def validate_batch_size(value: int | None) -> int | None:
    """Validate the phenotype batch size.

    None means a single batch with every phenotype.

    Raises:
        ValidationError: If the batch size is not a positive integer
    """
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"phenotype_batch_size must be an integer, got {type(value).__name__}"
        )
    if value <= 0:
        raise ValidationError(f"phenotype_batch_size must be positive, got {value}")
    return value


def parse_orders(value: str | list[int] | tuple[int, ...]) -> tuple[int, ...]:
    """Parse interaction orders, e.g. "1,2" -> (1, 2).

    Duplicates are removed, first occurrence kept.

    Raises:
        ValidationError: If the value is not a comma separated list of positive integers
    """
    if isinstance(value, str):
        if not ORDERS_PATTERN.match(value):
            raise ValidationError(
                f"Invalid orders: '{value}'. Expected comma separated integers (e.g., 1,2)"
            )
        orders = [int(x) for x in value.split(",")]
    else:
        orders = [int(x) for x in value]

    if not orders:
        raise ValidationError("At least one interaction order is required")
    for order in orders:
        if order < 1:
            raise ValidationError(f"Interaction orders must be positive, got {order}")

    return tuple(dict.fromkeys(orders))
