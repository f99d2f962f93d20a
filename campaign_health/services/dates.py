"""
Date parsing for delivery and contract terms data.

Upload files carry dates as MM/DD/YYYY, database rows as YYYY-MM-DD, and some
exports use DD-MM-YYYY or DD.MM.YYYY. Everything is parsed to a plain
``datetime.date`` without timezone handling, so a row dated 03/14 always lands
on March 14 regardless of where the service runs.
"""

import logging
import re
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

logger = logging.getLogger(__name__)

TOTALS_SENTINEL = "Totals"

_MDY_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DMY_PATTERN = re.compile(r"^(\d{1,2})[.-](\d{1,2})[.-](\d{4})$")


def parse_campaign_date(value: Any) -> date:
    """
    Parse a date cell into a ``date``.

    Formats are tried in order: MM/DD/YYYY, YYYY-MM-DD, DD-MM-YYYY or
    DD.MM.YYYY, then pandas' parser as a last resort.

    Args:
        value: A string, ``date`` or ``datetime``.

    Returns:
        The parsed date.

    Raises:
        ValueError: If the value is empty or cannot be parsed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or str(value).strip() == "":
        raise ValueError("Date string is empty or undefined")

    text = str(value).strip()

    match = _MDY_PATTERN.match(text)
    if match:
        month, day, year = (int(part) for part in match.groups())
        return _build_date(year, month, day, text)

    match = _ISO_PATTERN.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _build_date(year, month, day, text)

    match = _DMY_PATTERN.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return _build_date(year, month, day, text)

    parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        raise ValueError(f"Invalid date format: {text}")
    return parsed.date()


def parse_delivery_date(value: Any) -> Optional[date]:
    """
    Parse a delivery row DATE cell, returning None instead of raising.

    The "Totals" sentinel and unparseable values both yield None.
    """
    if isinstance(value, str) and value.strip() == TOTALS_SENTINEL:
        return None
    try:
        return parse_campaign_date(value)
    except ValueError:
        logger.debug(f"Unparseable delivery date: {value!r}")
        return None


def _build_date(year: int, month: int, day: int, text: str) -> date:
    try:
        return date(year, month, day)
    except ValueError as e:
        raise ValueError(f"Invalid date format: {text}") from e
