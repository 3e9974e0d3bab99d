"""Row filter: drop records without any layoff figure."""

import logging
from collections.abc import Sequence
from typing import Union

from layoffs_etl.common.records import CleanRecord, WorkingRecord, is_blank

logger = logging.getLogger(__name__)


def has_quantitative_signal(record: Union[WorkingRecord, CleanRecord]) -> bool:
    """True when the record has a headcount or a non-blank percentage."""
    return record.total_laid_off is not None or not is_blank(record.percentage_laid_off)


def filter_unusable(
    records: Sequence[WorkingRecord],
) -> tuple[list[WorkingRecord], list[WorkingRecord]]:
    """
    Split records into usable and dropped ones.

    A record is dropped when total_laid_off is NULL and percentage_laid_off
    is NULL or blank.

    Returns:
        Tuple of (kept records, dropped records), both in input order
    """
    kept: list[WorkingRecord] = []
    dropped: list[WorkingRecord] = []

    for record in records:
        if has_quantitative_signal(record):
            kept.append(record)
        else:
            dropped.append(record)

    logger.info(
        "Filtered unusable rows",
        extra={'kept': len(kept), 'dropped': len(dropped)}
    )
    return kept, dropped
