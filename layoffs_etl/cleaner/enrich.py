"""
Industry enrichment from sibling records.

A record with a NULL industry borrows the industry of another record that
has the same (company, location). Matching never crosses company/location
pairs, so a wrong industry is never pulled in from a namesake elsewhere.

The lookup is built once from the complete input before anything is
filled, so the pass runs exactly once: a record filled here never becomes
a donor for another record in the same pass.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import Optional

from layoffs_etl.common.records import WorkingRecord

logger = logging.getLogger(__name__)

IdentityKey = tuple[str, str]


def _identity_key(record: WorkingRecord) -> Optional[IdentityKey]:
    # NULL never equals NULL in the join, so such records cannot match
    if record.company is None or record.location is None:
        return None
    return (record.company, record.location)


def build_industry_lookup(records: Sequence[WorkingRecord]) -> dict[IdentityKey, str]:
    """
    Map each (company, location) to a donor industry.

    When donors disagree, the first non-null industry in input order wins.
    """
    lookup: dict[IdentityKey, str] = {}
    conflicts = 0

    for record in records:
        key = _identity_key(record)
        if key is None or record.industry is None:
            continue
        if key not in lookup:
            lookup[key] = record.industry
        elif lookup[key] != record.industry:
            conflicts += 1
            logger.debug(
                "Conflicting donor industry ignored",
                extra={
                    'company': key[0],
                    'location': key[1],
                    'kept': lookup[key],
                    'ignored': record.industry,
                }
            )

    if conflicts:
        logger.info(
            "Donor industries disagree for some company/location pairs; first seen wins",
            extra={'conflicts': conflicts}
        )
    return lookup


def enrich_industry(records: Sequence[WorkingRecord]) -> tuple[list[WorkingRecord], int]:
    """
    Fill NULL industries from records sharing (company, location).

    Args:
        records: Normalized working records (not modified)

    Returns:
        Tuple of (records in input order, number of industries filled)
    """
    lookup = build_industry_lookup(records)
    enriched: list[WorkingRecord] = []
    filled = 0

    for record in records:
        if record.industry is None:
            key = _identity_key(record)
            donor = lookup.get(key) if key is not None else None
            if donor is not None:
                record = replace(record, industry=donor)
                filled += 1
        enriched.append(record)

    logger.info(
        "Filled missing industries",
        extra={'records': len(enriched), 'filled': filled}
    )
    return enriched, filled
