"""
Pytest configuration and shared fixtures

This file contains test fixtures that can be used across all tests.
Fixtures are reusable components that set up test preconditions.

Learn more: https://docs.pytest.org/en/stable/fixture.html
"""

import csv
import os
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from layoffs_etl.cleaner.config_loader import CleaningConfig
from layoffs_etl.common.records import BUSINESS_FIELDS, RawRecord, WorkingRecord


def make_raw(**overrides: Any) -> RawRecord:
    """Build a RawRecord with realistic defaults; keyword arguments override fields."""
    values = {
        "company": "Acme",
        "location": "NYC",
        "industry": "Retail",
        "total_laid_off": "100",
        "percentage_laid_off": "0.1",
        "date": "1/2/2023",
        "stage": "Series B",
        "country": "United States",
        "funds_raised_millions": "5",
    }
    values.update(overrides)
    return RawRecord(**values)


def make_working(**overrides: Any) -> WorkingRecord:
    """Build a WorkingRecord (numeric fields typed) with realistic defaults."""
    values: dict[str, Any] = {
        "company": "Acme",
        "location": "NYC",
        "industry": "Retail",
        "total_laid_off": 100,
        "percentage_laid_off": "0.1",
        "date": "1/2/2023",
        "stage": "Series B",
        "country": "United States",
        "funds_raised_millions": 5,
    }
    values.update(overrides)
    return WorkingRecord(**values)


@pytest.fixture(scope="session")
def database_url() -> Optional[str]:
    """
    Provide database URL for integration tests.

    Integration tests only run against a dedicated database named in
    TEST_DATABASE_URL; they are skipped otherwise.

    Scope: session (created once per test run)
    """
    return os.getenv("TEST_DATABASE_URL")


@pytest.fixture(scope="function")
def config() -> CleaningConfig:
    """Default cleaning configuration (same rules as config/cleaning.yml)."""
    return CleaningConfig()


@pytest.fixture(scope="function")
def sample_raw_batch() -> list[RawRecord]:
    """
    Provide a small raw batch that exercises every cleaning stage.

    - Rows 0/1 are exact duplicates
    - Row 2 differs from row 0 only by industry spelling ("CryptoCurrency")
    - Row 3 has no industry but shares company/location with a donor (row 4)
    - Row 5 has no layoff figures and must be dropped
    - Row 6 has an unparseable date and a dotted country

    Scope: function (created fresh for each test)
    """
    return [
        make_raw(industry="Crypto Currency", percentage_laid_off="10%"),
        make_raw(industry="Crypto Currency", percentage_laid_off="10%"),
        make_raw(industry="CryptoCurrency", percentage_laid_off="10%"),
        make_raw(company="Airbnb", location="SF", industry="", total_laid_off="1900",
                 date="5/5/2020", funds_raised_millions="5400"),
        make_raw(company="Airbnb", location="SF", industry="Travel", total_laid_off="30",
                 date="3/1/2023", funds_raised_millions="6400"),
        make_raw(company="Ghost Co", total_laid_off="", percentage_laid_off=""),
        make_raw(company=" Bolt ", location="Tallinn", industry="Transportation",
                 date="not-a-date", country="United States."),
    ]


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper that writes rows to a CSV file under tmp_path."""

    def _write(rows: list[dict[str, str]], name: str = "raw.csv",
               header: Optional[list[str]] = None) -> Path:
        path = tmp_path / name
        columns = header or list(BUSINESS_FIELDS)
        with path.open("w", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=columns)
            writer.writeheader()
            for row in rows:
                writer.writerow(row)
        return path

    return _write


# Mark tests based on their type for selective running
def pytest_configure(config):
    """
    Register custom pytest markers.

    This allows us to run specific test categories:
    - pytest -m unit        (run only unit tests)
    - pytest -m integration (run only integration tests)
    - pytest -m "not slow"  (skip slow tests)
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test (isolated, fast)"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires services)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (>1 second)"
    )
