"""
Configuration Loader for the Cleaner Service

This module loads and validates the cleaning configuration from cleaning.yml.
Every tunable of the pipeline lives there as data: canonicalization rule
tables, the date input format, the duplicate key and the rank order used to
choose which duplicate survives.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from layoffs_etl.common.records import BUSINESS_FIELDS

logger = logging.getLogger(__name__)

VALID_MATCH_TYPES = {"prefix", "suffix", "exact", "contains"}
VALID_RANK_ORDERS = {"present_first", "desc", "asc"}
CANONICALIZED_FIELDS = ("industry", "location", "country")

DEFAULT_DATE_FORMAT = "%m/%d/%Y"
DEFAULT_INDEX_COLUMNS = ("date", "company", "country", "industry")


@dataclass(frozen=True)
class CanonicalRule:
    """A pattern-to-replacement mapping for one categorical field."""

    match: str
    pattern: str
    replacement: str
    case_sensitive: bool = True

    def __post_init__(self) -> None:
        if self.match not in VALID_MATCH_TYPES:
            raise ValueError(
                f"Invalid rule match type '{self.match}', expected one of {sorted(VALID_MATCH_TYPES)}"
            )
        if not self.pattern:
            raise ValueError("Canonicalization rule pattern cannot be empty")
        if not self.replacement or self.replacement != self.replacement.strip():
            raise ValueError(
                f"Canonicalization replacement {self.replacement!r} must be non-empty "
                "text without surrounding whitespace"
            )

    def matches(self, value: str) -> bool:
        """Check whether ``value`` is covered by this rule."""
        pattern = self.pattern
        if not self.case_sensitive:
            value = value.casefold()
            pattern = pattern.casefold()

        if self.match == "prefix":
            return value.startswith(pattern)
        if self.match == "suffix":
            return value.endswith(pattern)
        if self.match == "exact":
            return value == pattern
        return pattern in value

    @classmethod
    def from_dict(cls, rule_dict: dict[str, Any]) -> "CanonicalRule":
        try:
            return cls(
                match=str(rule_dict["match"]),
                pattern=str(rule_dict["pattern"]),
                replacement=str(rule_dict["replacement"]),
                case_sensitive=_flag(rule_dict, "case_sensitive", True),
            )
        except KeyError as e:
            raise ValueError(f"Canonicalization rule is missing key {e}") from e


@dataclass(frozen=True)
class RankCriterion:
    """One step of the duplicate rank order."""

    field: str
    order: str

    def __post_init__(self) -> None:
        if self.field not in BUSINESS_FIELDS:
            raise ValueError(f"Unknown rank field '{self.field}'")
        if self.order not in VALID_RANK_ORDERS:
            raise ValueError(
                f"Invalid rank order '{self.order}', expected one of {sorted(VALID_RANK_ORDERS)}"
            )


DEFAULT_RANK_ORDER = (
    RankCriterion("industry", "present_first"),
    RankCriterion("total_laid_off", "present_first"),
    RankCriterion("percentage_laid_off", "present_first"),
    RankCriterion("funds_raised_millions", "desc"),
    RankCriterion("date", "desc"),
)


def _default_rank_order() -> list[RankCriterion]:
    return list(DEFAULT_RANK_ORDER)


def _default_rules() -> dict[str, list[CanonicalRule]]:
    return {
        "industry": [
            CanonicalRule("prefix", "Crypto", "Crypto"),
        ],
        "location": [
            CanonicalRule("suffix", "sseldorf", "Dusseldorf"),
            CanonicalRule("prefix", "Florian", "Florianapolis"),
            CanonicalRule("exact", "Ferdericton", "Fredericton"),
            CanonicalRule("prefix", "Malm", "Malmo"),
        ],
        "country": [
            CanonicalRule("prefix", "United States", "United States"),
        ],
    }


def _check_rule_chain(field_name: str, rules: list[CanonicalRule]) -> None:
    """
    Reject rule tables whose result could change on a second pass.

    Rules run in order on the output of the previous rule. As long as no
    replacement is matched by an earlier rule, the last replacement applied
    is left alone when the table runs again.
    """
    for position, rule in enumerate(rules):
        for earlier in rules[:position]:
            if earlier.matches(rule.replacement):
                raise ValueError(
                    f"{field_name} rule {position + 1} replaces with {rule.replacement!r}, "
                    f"which an earlier rule ({earlier.match} {earlier.pattern!r}) rewrites "
                    "again on the next run; reorder or tighten the rules"
                )


def _string_tuple(config_dict: dict[str, Any], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = config_dict.get(key)
    if value is None:
        return default
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"`{key}` must be a list of strings, got {value!r}")
    return tuple(value)


def _flag(config_dict: dict[str, Any], key: str, default: bool) -> bool:
    value = config_dict.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"`{key}` must be true or false, got {value!r}")
    return value


@dataclass
class CleaningConfig:
    """Complete cleaning configuration."""

    rules: dict[str, list[CanonicalRule]] = field(default_factory=_default_rules)
    country_strip_trailing: str = "."
    date_format: str = DEFAULT_DATE_FORMAT
    null_markers: tuple[str, ...] = ("NULL",)
    duplicate_key: tuple[str, ...] = BUSINESS_FIELDS
    rank_order: list[RankCriterion] = field(default_factory=_default_rank_order)
    consolidate_duplicates: bool = True
    index_columns: tuple[str, ...] = DEFAULT_INDEX_COLUMNS

    def __post_init__(self) -> None:
        self.validate()

    def rules_for(self, field_name: str) -> list[CanonicalRule]:
        return self.rules.get(field_name, [])

    def validate(self) -> None:
        """
        Validate cross-field consistency.

        Raises:
            ValueError: If a field list names an unknown column, or a rule
                table would not be stable when applied twice
        """
        if isinstance(self.null_markers, str) or not all(
            isinstance(marker, str) for marker in self.null_markers
        ):
            raise ValueError(f"null_markers must be a list of strings, got {self.null_markers!r}")
        if not self.duplicate_key:
            raise ValueError("duplicate_key must name at least one field")
        for name in self.duplicate_key:
            if name not in BUSINESS_FIELDS:
                raise ValueError(f"Unknown duplicate_key field '{name}'")
        for name in self.index_columns:
            if name not in BUSINESS_FIELDS:
                raise ValueError(f"Unknown index column '{name}'")
        for name, rules in self.rules.items():
            if name not in CANONICALIZED_FIELDS:
                raise ValueError(
                    f"Canonicalization is not supported for field '{name}', "
                    f"expected one of {list(CANONICALIZED_FIELDS)}"
                )
            _check_rule_chain(name, rules)

        if self.country_strip_trailing:
            for rule in self.rules_for("country"):
                if rule.replacement.endswith(tuple(self.country_strip_trailing)):
                    raise ValueError(
                        f"Country replacement {rule.replacement!r} ends with a character "
                        f"stripped from country values ({self.country_strip_trailing!r})"
                    )

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "CleaningConfig":
        """Create CleaningConfig from dictionary, filling gaps with defaults."""
        defaults = cls()

        # Parse rule tables; a field present in the file replaces its default table
        rules = dict(defaults.rules)
        rules_dict = config_dict.get("canonicalization") or {}
        if not isinstance(rules_dict, dict):
            raise ValueError("`canonicalization` must be a mapping of field -> rule list")
        for field_name, rule_list in rules_dict.items():
            if not isinstance(rule_list, list):
                raise ValueError(f"Rules for '{field_name}' must be a list")
            rules[field_name] = [CanonicalRule.from_dict(rule) for rule in rule_list]

        # Parse rank order
        rank_list = config_dict.get("rank_order")
        if rank_list is None:
            rank_order = defaults.rank_order
        else:
            if not isinstance(rank_list, list) or not all(isinstance(item, dict) for item in rank_list):
                raise ValueError("`rank_order` must be a list of {field, order} mappings")
            rank_order = [
                RankCriterion(field=str(item.get("field")), order=str(item.get("order")))
                for item in rank_list
            ]

        return cls(
            rules=rules,
            country_strip_trailing=str(
                config_dict.get("country_strip_trailing", defaults.country_strip_trailing)
            ),
            date_format=str(config_dict.get("date_format", defaults.date_format)),
            null_markers=_string_tuple(config_dict, "null_markers", defaults.null_markers),
            duplicate_key=_string_tuple(config_dict, "duplicate_key", defaults.duplicate_key),
            rank_order=rank_order,
            consolidate_duplicates=_flag(
                config_dict, "consolidate_duplicates", defaults.consolidate_duplicates
            ),
            index_columns=_string_tuple(config_dict, "index_columns", defaults.index_columns),
        )


def _project_root() -> Path:
    """Return the project root path based on this file's location."""
    return Path(__file__).resolve().parent.parent.parent


def load_cleaning_config(config_path: Optional[str] = None) -> CleaningConfig:
    """
    Load cleaning configuration from YAML file.

    Args:
        config_path: Path to cleaning.yml. If None, CLEANING_CONFIG_PATH is
            consulted, then ``config/cleaning.yml`` under the project root.
            Only the implicit default may be absent, in which case the
            built-in defaults are returned.

    Returns:
        CleaningConfig object

    Raises:
        FileNotFoundError: If an explicitly requested config file doesn't exist
        ValueError: If config is invalid

    Example:
        >>> config = load_cleaning_config('config/cleaning.yml')
        >>> config.date_format
        '%m/%d/%Y'
    """
    explicit = config_path or os.getenv("CLEANING_CONFIG_PATH")
    path = Path(explicit) if explicit else _project_root() / "config" / "cleaning.yml"

    if not path.exists():
        if explicit:
            logger.error("Cleaning configuration file not found: %s", path)
            raise FileNotFoundError(f"Cleaning configuration file not found: {path}")
        logger.warning("No cleaning configuration at %s, using built-in defaults", path)
        return CleaningConfig()

    logger.info("Loading cleaning configuration", extra={'config_path': str(path)})

    try:
        with path.open("r", encoding="utf-8") as handle:
            config_dict = yaml.safe_load(handle)
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML: {e}")
        raise ValueError(f"Invalid YAML in config file: {e}") from e

    if not config_dict:
        logger.warning("Empty configuration file, using defaults")
        config_dict = {}

    if not isinstance(config_dict, dict):
        raise ValueError("Cleaning configuration must be a mapping at the top level")

    config = CleaningConfig.from_dict(config_dict)

    logger.info(
        "Cleaning configuration loaded successfully",
        extra={
            'rule_counts': {name: len(rules) for name, rules in config.rules.items()},
            'duplicate_key': list(config.duplicate_key),
            'date_format': config.date_format,
        }
    )

    return config


__all__ = ["CanonicalRule", "CleaningConfig", "RankCriterion", "load_cleaning_config"]
