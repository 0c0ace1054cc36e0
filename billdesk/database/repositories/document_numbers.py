# database/repositories/document_numbers.py
"""
Human-readable document numbers (INV-202501-007, PUR-0042, ...).

A number is the series prefix followed by a zero-padded counter. The next
number is derived from the latest existing number that shares the prefix,
so invoice/quotation/challan counters restart every month and POS counters
restart every day. Numbers are advisory; the UNIQUE(user_id, number)
constraint on each table is what rejects a collision.
"""
from __future__ import annotations

from datetime import date, datetime
import logging
import sqlite3

from ...constants import NUMBER_SERIES
from ...utils.helpers import as_date

_log = logging.getLogger(__name__)


def series_prefix(series: str, on_date: date | datetime | str | None = None) -> str:
    try:
        _table, _col, template, _width = NUMBER_SERIES[series]
    except KeyError:
        raise ValueError(f"Unknown number series: {series!r}") from None
    d = as_date(on_date)
    return template.format(ym=d.strftime("%Y%m"), ymd=d.strftime("%Y%m%d"))


def parse_counter(number: str | None, prefix: str) -> int:
    """Trailing counter of `number`; anything unparseable counts as 0."""
    if not number or not number.startswith(prefix):
        return 0
    try:
        return int(number[len(prefix):])
    except ValueError:
        return 0


def format_number(prefix: str, counter: int, width: int) -> str:
    return f"{prefix}{counter:0{width}d}"


def next_document_number(
    conn: sqlite3.Connection,
    series: str,
    *,
    user_id: int,
    on_date: date | datetime | str | None = None,
) -> str:
    """
    Next number in `series` for `user_id` on `on_date` (default: today).

    The latest number is the longest, then lexically highest, among numbers
    with the same prefix and an all-digit counter, so INV-202501-1000 ranks
    above INV-202501-999 and a hand-typed INV-202501-A1 is passed over.
    """
    table, col, _template, width = NUMBER_SERIES[series]
    prefix = series_prefix(series, on_date)
    row = conn.execute(
        f"""
        SELECT {col} AS number
          FROM {table}
         WHERE user_id = ? AND {col} LIKE ?
           AND LENGTH({col}) > ?
           AND SUBSTR({col}, ?) NOT GLOB '*[^0-9]*'
         ORDER BY LENGTH({col}) DESC, {col} DESC
         LIMIT 1
        """,
        (user_id, prefix + "%", len(prefix), len(prefix) + 1),
    ).fetchone()
    last = parse_counter(row["number"] if row else None, prefix)
    number = format_number(prefix, last + 1, width)
    _log.debug("next %s number for user %s: %s", series, user_id, number)
    return number
