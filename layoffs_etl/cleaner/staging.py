"""
Staging: copy raw records into working records.

The raw list is never modified. Staging produces a separate list of
WorkingRecord objects in the same order, with configured null markers
turned into None and the two numeric columns parsed to integers.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from layoffs_etl.common.records import BUSINESS_FIELDS, RawRecord, WorkingRecord

logger = logging.getLogger(__name__)

NUMERIC_FIELDS = ("total_laid_off", "funds_raised_millions")


def parse_integer(value: Optional[str]) -> Optional[int]:
    """
    Parse a numeric cell into an integer.

    Decimal text is rounded half-up, the way a typed INT column stores it.

    Examples:
        >>> parse_integer(" 120 ")
        120
        >>> parse_integer("2.5")
        3
        >>> parse_integer("")

    Raises:
        ValueError: If the text is not a number
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"not a number: {value!r}") from e
    if not number.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return int(number.to_integral_value(rounding=ROUND_HALF_UP))


def stage_record(
    raw: RawRecord,
    null_markers: tuple[str, ...] = ("NULL",),
) -> tuple[WorkingRecord, list[str]]:
    """
    Build the WorkingRecord for one raw row.

    Returns:
        Tuple of (working record, names of numeric fields that failed to parse)
    """
    values: dict[str, object] = {}
    failed: list[str] = []

    for name in BUSINESS_FIELDS:
        value = getattr(raw, name)
        if value is not None and value in null_markers:
            value = None

        if name in NUMERIC_FIELDS:
            try:
                value = parse_integer(value)
            except ValueError:
                logger.warning(
                    f"Failed to parse {name} as integer, storing NULL",
                    extra={'value': value, 'company': raw.company}
                )
                failed.append(name)
                value = None

        values[name] = value

    return WorkingRecord(**values), failed


def stage_records(
    raw_records: list[RawRecord],
    null_markers: tuple[str, ...] = ("NULL",),
) -> tuple[list[WorkingRecord], dict[str, int]]:
    """
    Copy raw records into a new working set.

    Args:
        raw_records: Records as loaded (left untouched)
        null_markers: Raw values meaning "no value"

    Returns:
        Tuple of (working records in source order, stats). Stats contain
        ``staged`` and ``numeric_parse_failures``.
    """
    staged: list[WorkingRecord] = []
    stats = {'staged': 0, 'numeric_parse_failures': 0}

    for raw in raw_records:
        working, failed = stage_record(raw, null_markers)
        staged.append(working)
        stats['numeric_parse_failures'] += len(failed)

    stats['staged'] = len(staged)

    logger.info(
        "Staged raw records",
        extra={
            'staged': stats['staged'],
            'numeric_parse_failures': stats['numeric_parse_failures'],
        }
    )
    return staged, stats
