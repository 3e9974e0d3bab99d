"""
Layoff Record Normalization Logic

This module standardizes the categorical text columns of working records.
It handles whitespace, blank values and known spelling variants.

Key Responsibilities:
- Trim leading/trailing whitespace on company, location, industry, stage, country
- Turn empty industry/stage/country into NULL (company/location keep "")
- Canonicalize industry, location and country through the configured rule tables

Every operation is idempotent: normalizing a normalized record changes nothing.

Rules match by prefix/suffix/pattern rather than exact value so unseen
variants are absorbed too. The price is possible over-merging of distinct
values sharing a prefix (e.g. any location starting with "Malm" becomes
"Malmo"). The rule tables in cleaning.yml are the place to tighten that.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import Optional

from layoffs_etl.common.records import WorkingRecord

from .config_loader import CanonicalRule, CleaningConfig

logger = logging.getLogger(__name__)


TRIMMED_FIELDS = ("company", "location", "industry", "stage", "country")
NULLABLE_FIELDS = ("industry", "stage", "country")


def _trim(value: Optional[str]) -> Optional[str]:
    """Strip surrounding whitespace, passing None through."""
    if value is None:
        return None
    return value.strip()


def _blank_to_null(value: Optional[str]) -> Optional[str]:
    """Return None for empty strings."""
    if value == "":
        return None
    return value


def apply_rules(value: Optional[str], rules: Sequence[CanonicalRule]) -> Optional[str]:
    """
    Rewrite a value through a rule table.

    Rules run in order; each sees the output of the previous one.
    CleaningConfig rejects tables in which an earlier rule matches a later
    replacement, so a second run leaves the result unchanged.

    Examples:
        >>> rules = [CanonicalRule("prefix", "Crypto", "Crypto")]
        >>> apply_rules("Crypto Currency", rules)
        'Crypto'
        >>> apply_rules("Fintech", rules)
        'Fintech'
    """
    if value is None:
        return None
    for rule in rules:
        if rule.matches(value):
            value = rule.replacement
    return value


def strip_trailing(value: Optional[str], chars: str) -> Optional[str]:
    """Remove trailing ``chars`` (e.g. the dot in "United States.")."""
    if value is None or not chars:
        return value
    return value.rstrip(chars)


def normalize_record(record: WorkingRecord, config: CleaningConfig) -> WorkingRecord:
    """
    Normalize the categorical fields of one record.

    Args:
        record: Working record (not modified)
        config: Cleaning configuration holding the rule tables

    Returns:
        New WorkingRecord with trimmed, null-coerced and canonicalized fields
    """
    values = {name: _trim(getattr(record, name)) for name in TRIMMED_FIELDS}

    for name in NULLABLE_FIELDS:
        values[name] = _blank_to_null(values[name])

    values["industry"] = apply_rules(values["industry"], config.rules_for("industry"))
    values["location"] = apply_rules(values["location"], config.rules_for("location"))

    country = strip_trailing(values["country"], config.country_strip_trailing)
    # "United States ." would otherwise keep a trailing space
    country = _blank_to_null(_trim(country))
    values["country"] = apply_rules(country, config.rules_for("country"))

    return replace(record, **values)


def normalize_records(
    records: Sequence[WorkingRecord],
    config: CleaningConfig,
) -> tuple[list[WorkingRecord], dict[str, int]]:
    """
    Normalize every record of the working set.

    Args:
        records: Working records (not modified)
        config: Cleaning configuration

    Returns:
        Tuple of (normalized records in input order, stats). Stats count the
        number of records whose value changed, per field.
    """
    normalized: list[WorkingRecord] = []
    stats = {name: 0 for name in TRIMMED_FIELDS}

    for record in records:
        result = normalize_record(record, config)
        for name in TRIMMED_FIELDS:
            if getattr(result, name) != getattr(record, name):
                stats[name] += 1
        normalized.append(result)

    logger.info(
        "Normalized categorical fields",
        extra={'records': len(normalized), 'changed': stats}
    )
    return normalized, stats
