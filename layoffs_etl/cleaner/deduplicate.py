"""
Deterministic Deduplication

Records that share a duplicate key describe the same layoff event. Within
each key group every record gets a rank from a configurable total order,
and only the rank-1 record survives.

Algorithm:
1. Group records by duplicate key, remembering each record's input position
2. Sort each group by the rank criteria (stable, so ties keep input order)
3. Assign ranks 1..n within the group
4. Keep rank 1, emit survivors in their original input order

Criteria orders:
- present_first: values that are not None/blank come first
- desc: larger values first, None last
- asc: smaller values first, None last
"""

import logging
from collections.abc import Sequence
from typing import Any

from layoffs_etl.common.records import BUSINESS_FIELDS, WorkingRecord, is_blank

from .config_loader import DEFAULT_RANK_ORDER, RankCriterion

logger = logging.getLogger(__name__)


def _sort_pass(
    group: list[tuple[int, WorkingRecord]],
    criterion: RankCriterion,
) -> list[tuple[int, WorkingRecord]]:
    """Stable sort of one group by a single criterion."""
    name = criterion.field

    if criterion.order == "present_first":
        return sorted(group, key=lambda item: is_blank(getattr(item[1], name)))

    present = [item for item in group if getattr(item[1], name) is not None]
    missing = [item for item in group if getattr(item[1], name) is None]
    present = sorted(
        present,
        key=lambda item: getattr(item[1], name),
        reverse=criterion.order == "desc",
    )
    return present + missing


def _rank_group(
    group: list[tuple[int, WorkingRecord]],
    rank_order: Sequence[RankCriterion],
) -> list[tuple[int, WorkingRecord]]:
    """
    Order a duplicate group from most to least preferred.

    Sorting by the least significant criterion first and the most
    significant last yields the lexicographic order over all criteria.
    Python's sort is stable (also with reverse=True), so records that tie
    on every criterion stay in input order.
    """
    ordered = sorted(group, key=lambda item: item[0])
    for criterion in reversed(rank_order):
        ordered = _sort_pass(ordered, criterion)
    return ordered


def rank_duplicates(
    records: Sequence[WorkingRecord],
    key_fields: Sequence[str] = BUSINESS_FIELDS,
    rank_order: Sequence[RankCriterion] = DEFAULT_RANK_ORDER,
) -> list[WorkingRecord]:
    """
    Assign a rank to every record within its duplicate group.

    Args:
        records: Working records (not modified)
        key_fields: Fields forming the duplicate key; None compares equal to None
        rank_order: Criteria, most significant first

    Returns:
        New list in input order, each record carrying its rank (1 = keep)
    """
    key_fields = tuple(key_fields)
    groups: dict[tuple[Any, ...], list[tuple[int, WorkingRecord]]] = {}
    for position, record in enumerate(records):
        groups.setdefault(record.key(key_fields), []).append((position, record))

    ranks: dict[int, int] = {}
    for group in groups.values():
        if len(group) == 1:
            ranks[group[0][0]] = 1
            continue
        for rank, (position, _) in enumerate(_rank_group(group, rank_order), start=1):
            ranks[position] = rank

    return [record.with_rank(ranks[position]) for position, record in enumerate(records)]


def deduplicate(
    records: Sequence[WorkingRecord],
    key_fields: Sequence[str] = BUSINESS_FIELDS,
    rank_order: Sequence[RankCriterion] = DEFAULT_RANK_ORDER,
    stage_name: str = "dedup",
) -> tuple[list[WorkingRecord], int]:
    """
    Keep only the top-ranked record of each duplicate group.

    Running this on its own output returns the same list.

    Args:
        records: Working records (not modified)
        key_fields: Fields forming the duplicate key
        rank_order: Criteria, most significant first
        stage_name: Label used in log messages

    Returns:
        Tuple of (survivors in input order with rank cleared, number removed)
    """
    ranked = rank_duplicates(records, key_fields, rank_order)
    survivors: list[WorkingRecord] = []
    removed = 0

    for record in ranked:
        if record.rank == 1:
            survivors.append(record.with_rank(None))
        else:
            removed += 1
            logger.debug(
                "Discarding lower-ranked duplicate",
                extra={
                    'stage': stage_name,
                    'rank': record.rank,
                    'company': record.company,
                    'date': str(record.date),
                }
            )

    logger.info(
        "Deduplication completed",
        extra={
            'stage': stage_name,
            'input': len(records),
            'kept': len(survivors),
            'removed': removed,
        }
    )
    return survivors, removed


def count_duplicate_groups(
    records: Sequence[Any],
    key_fields: Sequence[str] = BUSINESS_FIELDS,
) -> int:
    """Count key groups with more than one member (works for any record type)."""
    sizes: dict[tuple[Any, ...], int] = {}
    for record in records:
        key = tuple(getattr(record, name) for name in key_fields)
        sizes[key] = sizes.get(key, 0) + 1
    return sum(1 for size in sizes.values() if size > 1)
