# utils/validators.py
from ..database.errors import ValidationError


def non_empty(text) -> bool:
    """
    True if `text` is not None/empty after stripping whitespace.
    """
    return bool(text and str(text).strip())


# ---- Numeric parsing & validators ----

def try_parse_float(x):
    """
    Best-effort parse to float.

    Returns:
        (ok: bool, value: float|None)
    """
    try:
        return True, float(x)
    except (TypeError, ValueError):
        return False, None


def is_non_negative_number(x) -> bool:
    """
    True iff x parses to a float and value >= 0.
    """
    ok, val = try_parse_float(x)
    return bool(ok and val is not None and val >= 0)


def is_strictly_positive_number(x) -> bool:
    """
    True iff x parses to a float and value > 0.
    """
    ok, val = try_parse_float(x)
    return bool(ok and val is not None and val > 0)


def parse_quantity(x, field_label: str = "Quantity") -> float:
    """Quantities must be > 0."""
    if not is_strictly_positive_number(x):
        raise ValidationError(f"{field_label} must be greater than zero.")
    return float(x)


def parse_amount(x, field_label: str = "Amount") -> float:
    """Prices/charges must be >= 0; blank counts as 0."""
    if x is None or (isinstance(x, str) and not x.strip()):
        return 0.0
    if not is_non_negative_number(x):
        raise ValidationError(f"{field_label} cannot be negative.")
    return float(x)
