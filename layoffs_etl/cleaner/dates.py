"""
Date Conversion

Turns the raw ``month/day/year`` text of the date column into strict
``datetime.date`` values. A value that cannot be parsed is not fatal: the
record keeps a NULL date and the failure is counted so the validation
report can surface it.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import date, datetime

from layoffs_etl.common.records import WorkingRecord

from .config_loader import DEFAULT_DATE_FORMAT

logger = logging.getLogger(__name__)


class DateParseError(ValueError):
    """Raised when a raw date text does not match the configured format."""
    pass


def parse_date(text: str, fmt: str = DEFAULT_DATE_FORMAT) -> date:
    """
    Parse raw date text.

    Surrounding whitespace is ignored. Impossible calendar dates such as
    2/30/2023 are rejected.

    Examples:
        >>> parse_date("3/14/2023")
        datetime.date(2023, 3, 14)

    Raises:
        DateParseError: If the text does not match ``fmt``
    """
    try:
        return datetime.strptime(text.strip(), fmt).date()
    except (TypeError, ValueError) as e:
        raise DateParseError(f"Cannot parse date {text!r} with format {fmt!r}") from e


def convert_dates(
    records: Sequence[WorkingRecord],
    fmt: str = DEFAULT_DATE_FORMAT,
) -> tuple[list[WorkingRecord], int]:
    """
    Convert the date column of every record.

    None, blank text and values that are already dates pass through
    without counting as failures.

    Args:
        records: Working records (not modified)
        fmt: strptime format of the raw text

    Returns:
        Tuple of (converted records in input order, parse failure count)
    """
    converted: list[WorkingRecord] = []
    failures = 0

    for record in records:
        value = record.date
        if value is None or isinstance(value, date):
            converted.append(record)
            continue

        if not value.strip():
            converted.append(replace(record, date=None))
            continue

        try:
            parsed = parse_date(value, fmt)
        except DateParseError as e:
            failures += 1
            logger.warning(
                "Unparseable date, storing NULL",
                extra={'value': value, 'company': record.company, 'error': str(e)}
            )
            parsed = None

        converted.append(replace(record, date=parsed))

    logger.info(
        "Converted raw dates",
        extra={'records': len(converted), 'parse_failures': failures}
    )
    return converted, failures
