"""
Post-run Validation

Read-only quality checks over the final clean record set, mirroring the QA
queries run after every cleaning pass:
- Row counts at the raw, staging and clean checkpoints
- Duplicate check across all nine business fields (must be zero)
- Null audit for company, date, industry and country

On top of that the report re-checks the remaining clean-set invariants
(every row has a layoff figure, industries were filled where a donor
existed, dates are real dates) and carries the per-record parse failure
counts of the run.

A failing check does not stop the run. The report is returned and logged,
and callers decide how strict to be. Tests call raise_for_consistency().
"""

import logging
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any

from layoffs_etl.common.records import BUSINESS_FIELDS, CleanRecord

from .deduplicate import count_duplicate_groups
from .enrich import build_industry_lookup
from .filters import has_quantitative_signal

logger = logging.getLogger(__name__)


class ConsistencyError(Exception):
    """Raised when a completed run produced a clean set violating its invariants."""
    pass


@dataclass(frozen=True)
class ValidationReport:
    """Structured result of the validation stage."""

    raw_rows: int
    staging_rows: int
    clean_rows: int
    duplicate_groups: int
    null_company: int
    null_date: int
    null_industry: int
    null_country: int
    rows_without_signal: int = 0
    unfilled_industry: int = 0
    invalid_dates: int = 0
    date_parse_failures: int = 0
    numeric_parse_failures: int = 0

    @property
    def problems(self) -> list[str]:
        """Human-readable description of every violated invariant."""
        checks = [
            (self.duplicate_groups, "duplicate groups across all business fields"),
            (self.rows_without_signal, "rows without total_laid_off or percentage_laid_off"),
            (self.unfilled_industry, "NULL industries with an available donor"),
            (self.invalid_dates, "non-date values in the date column"),
        ]
        return [f"{count} {label}" for count, label in checks if count]

    @property
    def is_consistent(self) -> bool:
        return not self.problems

    def raise_for_consistency(self) -> None:
        """
        Raises:
            ConsistencyError: If any invariant check failed
        """
        if self.problems:
            raise ConsistencyError("Clean set is inconsistent: " + "; ".join(self.problems))

    def to_dict(self) -> dict[str, Any]:
        report = asdict(self)
        report['is_consistent'] = self.is_consistent
        return report


def _count_unfilled_industry(records: Sequence[CleanRecord]) -> int:
    lookup = build_industry_lookup(records)
    return sum(
        1
        for record in records
        if record.industry is None
        and record.company is not None
        and record.location is not None
        and (record.company, record.location) in lookup
    )


def validate_clean_records(
    clean_records: Sequence[CleanRecord],
    raw_rows: int,
    staging_rows: int,
    date_parse_failures: int = 0,
    numeric_parse_failures: int = 0,
) -> ValidationReport:
    """
    Build the validation report for a finished run.

    Args:
        clean_records: Final output records (not modified)
        raw_rows: Number of records loaded from the source
        staging_rows: Number of records copied into staging
        date_parse_failures: Dates nulled because they could not be parsed
        numeric_parse_failures: Numeric cells nulled because they could not be parsed

    Returns:
        ValidationReport
    """
    report = ValidationReport(
        raw_rows=raw_rows,
        staging_rows=staging_rows,
        clean_rows=len(clean_records),
        duplicate_groups=count_duplicate_groups(clean_records, BUSINESS_FIELDS),
        null_company=sum(1 for r in clean_records if r.company is None or r.company == ""),
        null_date=sum(1 for r in clean_records if r.date is None),
        null_industry=sum(1 for r in clean_records if r.industry is None),
        null_country=sum(1 for r in clean_records if r.country is None),
        rows_without_signal=sum(1 for r in clean_records if not has_quantitative_signal(r)),
        unfilled_industry=_count_unfilled_industry(clean_records),
        invalid_dates=sum(
            1 for r in clean_records if r.date is not None and not isinstance(r.date, date)
        ),
        date_parse_failures=date_parse_failures,
        numeric_parse_failures=numeric_parse_failures,
    )

    if report.is_consistent:
        logger.info("Validation passed", extra=report.to_dict())
    else:
        logger.error(
            "Validation found consistency problems: %s",
            "; ".join(report.problems),
            extra=report.to_dict(),
        )

    if report.date_parse_failures:
        logger.warning(
            f"{report.date_parse_failures} date(s) could not be parsed and were set to NULL"
        )

    return report
