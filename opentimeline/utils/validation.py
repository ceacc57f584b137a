"""Argument guards shared by services and the composer.

Each guard raises ValueError for a missing or out-of-range argument and
TypeError for an argument of the wrong kind, naming the parameter.
"""


def validate_not_none(value, param_name: str):
    """Reject a missing required argument.

    Raises:
        ValueError: If ``value`` is None.
    """
    if value is None:
        raise ValueError(f"{param_name} is required")


def validate_not_empty(value: str | None, param_name: str) -> None:
    """Require a string with at least one non-blank character.

    Args:
        value: Candidate string, typically a record ID.
        param_name: Name used in the error message.

    Raises:
        ValueError: If the value is None or blank.
        TypeError: If the value is not a string.
    """
    validate_not_none(value, param_name)
    if not isinstance(value, str):
        raise TypeError(f"{param_name} must be str, not {type(value).__name__}")
    if value.strip() == "":
        raise ValueError(f"{param_name} must not be blank")


def validate_positive(value: int | float | None, param_name: str) -> None:
    """Require a number greater than zero. Booleans do not count as numbers.

    Raises:
        ValueError: If the value is None, zero or negative.
        TypeError: If the value is not an int or float.
    """
    validate_not_none(value, param_name)
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise TypeError(f"{param_name} must be a number, not {type(value).__name__}")
    if value <= 0:
        raise ValueError(f"{param_name} must be greater than zero (got {value})")
