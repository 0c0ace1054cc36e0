# utils/helpers.py
from datetime import date, datetime
import logging
from typing import Union

NumberLike = Union[float, int, str]

MONEY_PLACES = 2

_log = logging.getLogger(__name__)


def today_str() -> str:
    """Return today's date as ISO string (YYYY-MM-DD)."""
    return date.today().isoformat()


def as_date(value: Union[str, date, datetime, None]) -> date:
    """Coerce an ISO string / date / datetime to a date; None means today."""
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value).strip()).date()


def round_money(v: NumberLike) -> float:
    """Round a monetary figure to paise/cents. Avoids -0.0 in stored values."""
    x = round(float(v), MONEY_PLACES)
    return 0.0 if x == 0 else x


def to_float(v, default: float = 0.0) -> float:
    """float(v), or `default` for None/blank/unparseable input."""
    if v is None:
        return default
    try:
        return float(v)
    except (TypeError, ValueError):
        return default


def fmt_money(v: NumberLike, places: int = 2) -> str:
    """Money with thousands separators and fixed decimals; unparseable input prints as-is."""
    try:
        x = float(v)
    except (TypeError, ValueError):
        _log.debug("fmt_money: %r is not a number", v)
        return str(v)
    return f"{x:,.{places}f}"


def fmt_qty(v: NumberLike) -> str:
    """Quantities print without trailing zeros (10, 2.5)."""
    try:
        return f"{float(v):g}"
    except (TypeError, ValueError):
        return str(v)
