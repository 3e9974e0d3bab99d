"""
Record Types for the Layoffs Cleaning Pipeline

Three shapes flow through the pipeline:
- RawRecord: one row exactly as ingested (all text, never modified)
- WorkingRecord: the staged copy every cleaning stage transforms
- CleanRecord: the typed, analysis-ready output row

All three are frozen dataclasses. Stages build new records with
dataclasses.replace() instead of mutating them in place.
"""

from dataclasses import dataclass, field, replace
import datetime as dt
from typing import Any, Optional, Union

# Canonical column order of the source and output tables
BUSINESS_FIELDS: tuple[str, ...] = (
    "company",
    "location",
    "industry",
    "total_laid_off",
    "percentage_laid_off",
    "date",
    "stage",
    "country",
    "funds_raised_millions",
)


def is_blank(value: Any) -> bool:
    """
    Check whether a value carries no information.

    None and whitespace-only strings are blank. Numbers and dates never are.

    Examples:
        >>> is_blank(None)
        True
        >>> is_blank("   ")
        True
        >>> is_blank("10%")
        False
        >>> is_blank(0)
        False
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


@dataclass(frozen=True)
class RawRecord:
    """One source row, holding the original text of every column.

    Cells that were NULL in a database source are None. Cells read from a
    CSV file are always strings (possibly empty).
    """

    company: Optional[str] = None
    location: Optional[str] = None
    industry: Optional[str] = None
    total_laid_off: Optional[str] = None
    percentage_laid_off: Optional[str] = None
    date: Optional[str] = None
    stage: Optional[str] = None
    country: Optional[str] = None
    funds_raised_millions: Optional[str] = None

    @classmethod
    def from_mapping(cls, row: dict[str, Any]) -> "RawRecord":
        """Build a RawRecord from a column-name keyed mapping."""
        return cls(**{name: row.get(name) for name in BUSINESS_FIELDS})


@dataclass(frozen=True)
class WorkingRecord:
    """Staged copy of a RawRecord used during cleaning.

    Numeric columns are already parsed. ``date`` holds the raw text until
    the date converter runs, then a ``datetime.date`` (or None).

    ``rank`` is only meaningful inside the deduplicator and is excluded
    from equality.
    """

    company: Optional[str] = None
    location: Optional[str] = None
    industry: Optional[str] = None
    total_laid_off: Optional[int] = None
    percentage_laid_off: Optional[str] = None
    date: Union[str, dt.date, None] = None
    stage: Optional[str] = None
    country: Optional[str] = None
    funds_raised_millions: Optional[int] = None
    rank: Optional[int] = field(default=None, compare=False)

    def key(self, key_fields: tuple[str, ...] = BUSINESS_FIELDS) -> tuple[Any, ...]:
        """Return the values of ``key_fields`` as a hashable tuple."""
        return tuple(getattr(self, name) for name in key_fields)

    def with_rank(self, rank: Optional[int]) -> "WorkingRecord":
        return replace(self, rank=rank)


@dataclass(frozen=True)
class CleanRecord:
    """Final, typed output row."""

    company: Optional[str] = None
    location: Optional[str] = None
    industry: Optional[str] = None
    total_laid_off: Optional[int] = None
    percentage_laid_off: Optional[str] = None
    date: Optional[dt.date] = None
    stage: Optional[str] = None
    country: Optional[str] = None
    funds_raised_millions: Optional[int] = None

    @classmethod
    def from_working(cls, record: WorkingRecord) -> "CleanRecord":
        """
        Project a fully cleaned WorkingRecord into the output shape.

        Raises:
            ValueError: If the record's date was never converted
        """
        if isinstance(record.date, str):
            raise ValueError(
                f"date must be converted before projection, got text {record.date!r}"
            )
        return cls(**{name: getattr(record, name) for name in BUSINESS_FIELDS})

    def as_row(self) -> tuple[Any, ...]:
        """Return the business fields in canonical column order."""
        return tuple(getattr(self, name) for name in BUSINESS_FIELDS)
