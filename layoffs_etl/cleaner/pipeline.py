"""
Cleaning Pipeline

Runs the cleaning stages over an in-memory record set in fixed order:

    stage -> deduplicate -> normalize -> convert dates -> enrich industry
          -> filter unusable rows -> consolidate duplicates -> validate

Each stage takes the complete output of its predecessor and returns a new
list, so every stage can be tested in isolation and the raw input is never
modified. Given identical input and configuration, the output is identical.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from layoffs_etl.common.records import CleanRecord, RawRecord

from .config_loader import CleaningConfig
from .dates import convert_dates
from .deduplicate import deduplicate
from .enrich import enrich_industry
from .filters import filter_unusable
from .normalize import normalize_records
from .staging import stage_records
from .validate import ValidationReport, validate_clean_records

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outcome of one pipeline run."""

    clean_records: list[CleanRecord]
    report: ValidationReport
    stats: dict[str, int] = field(default_factory=dict)


def run_pipeline(
    raw_records: Sequence[RawRecord],
    config: CleaningConfig,
) -> PipelineResult:
    """
    Clean a raw record set.

    Args:
        raw_records: Records as loaded from the source (not modified)
        config: Cleaning configuration

    Returns:
        PipelineResult with the clean records, the validation report and
        per-stage counters:
        - raw: Records received
        - staged: Records copied into staging
        - duplicates_removed: Lower-ranked duplicates discarded
        - date_parse_failures: Dates nulled because they could not be parsed
        - numeric_parse_failures: Numeric cells nulled because they could not be parsed
        - industries_filled: NULL industries filled from sibling records
        - rows_dropped: Records without any layoff figure
        - consolidated: Duplicates that only appeared after normalization
        - clean: Records in the final set
    """
    stats = {
        'raw': len(raw_records),
        'staged': 0,
        'duplicates_removed': 0,
        'date_parse_failures': 0,
        'numeric_parse_failures': 0,
        'industries_filled': 0,
        'rows_dropped': 0,
        'consolidated': 0,
        'clean': 0,
    }

    logger.info("Starting cleaning pipeline", extra={'raw': stats['raw']})

    staged, staging_stats = stage_records(list(raw_records), config.null_markers)
    stats['staged'] = staging_stats['staged']
    stats['numeric_parse_failures'] = staging_stats['numeric_parse_failures']

    records, stats['duplicates_removed'] = deduplicate(
        staged, config.duplicate_key, config.rank_order, stage_name="dedup"
    )

    records, _ = normalize_records(records, config)

    records, stats['date_parse_failures'] = convert_dates(records, config.date_format)

    records, stats['industries_filled'] = enrich_industry(records)

    records, dropped = filter_unusable(records)
    stats['rows_dropped'] = len(dropped)

    if config.consolidate_duplicates:
        records, stats['consolidated'] = deduplicate(
            records, config.duplicate_key, config.rank_order, stage_name="consolidate"
        )

    clean_records = [CleanRecord.from_working(record) for record in records]
    stats['clean'] = len(clean_records)

    report = validate_clean_records(
        clean_records,
        raw_rows=stats['raw'],
        staging_rows=stats['staged'],
        date_parse_failures=stats['date_parse_failures'],
        numeric_parse_failures=stats['numeric_parse_failures'],
    )

    logger.info("=" * 60)
    logger.info("CLEANING RUN COMPLETE - SUMMARY")
    logger.info("=" * 60)
    logger.info(
        "Rows:          raw=%s, staged=%s, clean=%s",
        stats['raw'], stats['staged'], stats['clean'],
    )
    logger.info(
        "Removed:       duplicates=%s, consolidated=%s, unusable=%s",
        stats['duplicates_removed'], stats['consolidated'], stats['rows_dropped'],
    )
    logger.info(
        "Repaired:      industries_filled=%s",
        stats['industries_filled'],
    )
    logger.info(
        "Failures:      date_parse=%s, numeric_parse=%s",
        stats['date_parse_failures'], stats['numeric_parse_failures'],
    )
    logger.info(
        "Null audit:    company=%s, date=%s, industry=%s, country=%s",
        report.null_company, report.null_date, report.null_industry, report.null_country,
    )
    logger.info("=" * 60)

    return PipelineResult(clean_records=clean_records, report=report, stats=stats)
