"""
Unit Tests for the Cleaning Pipeline

End-to-end runs over in-memory record sets: stage ordering, the counters
of every stage and the properties of the final clean set.
"""

from datetime import date

import pytest

from layoffs_etl.cleaner.config_loader import CleaningConfig
from layoffs_etl.cleaner.deduplicate import count_duplicate_groups
from layoffs_etl.cleaner.filters import has_quantitative_signal
from layoffs_etl.cleaner.pipeline import run_pipeline
from layoffs_etl.common.records import CleanRecord
from tests.conftest import make_raw


@pytest.mark.unit
class TestRunPipeline:

    def test_sample_batch_counters(self, config, sample_raw_batch):
        result = run_pipeline(sample_raw_batch, config)

        assert result.stats == {
            'raw': 7,
            'staged': 7,
            'duplicates_removed': 1,
            'date_parse_failures': 1,
            'numeric_parse_failures': 0,
            'industries_filled': 1,
            'rows_dropped': 1,
            'consolidated': 1,
            'clean': 4,
        }

    def test_sample_batch_records(self, config, sample_raw_batch):
        result = run_pipeline(sample_raw_batch, config)

        assert [(r.company, r.industry) for r in result.clean_records] == [
            ("Acme", "Crypto"),
            ("Airbnb", "Travel"),
            ("Airbnb", "Travel"),
            ("Bolt", "Transportation"),
        ]
        assert all(isinstance(r, CleanRecord) for r in result.clean_records)

        bolt = result.clean_records[3]
        assert bolt.date is None
        assert bolt.country == "United States"

        airbnb = result.clean_records[1]
        assert airbnb.date == date(2020, 5, 5)
        assert airbnb.total_laid_off == 1900
        assert airbnb.funds_raised_millions == 5400

    def test_sample_batch_report(self, config, sample_raw_batch):
        report = run_pipeline(sample_raw_batch, config).report

        assert report.raw_rows == 7
        assert report.staging_rows == 7
        assert report.clean_rows == 4
        assert report.duplicate_groups == 0
        assert report.null_company == 0
        assert report.null_date == 1
        assert report.null_industry == 0
        assert report.null_country == 0
        assert report.date_parse_failures == 1
        report.raise_for_consistency()

    def test_deterministic(self, config, sample_raw_batch):
        first = run_pipeline(sample_raw_batch, config)
        second = run_pipeline(list(sample_raw_batch), config)

        assert first.clean_records == second.clean_records
        assert first.stats == second.stats
        assert first.report == second.report

    def test_raw_input_not_modified(self, config, sample_raw_batch):
        snapshot = list(sample_raw_batch)

        run_pipeline(sample_raw_batch, config)

        assert sample_raw_batch == snapshot
        assert sample_raw_batch[6].company == " Bolt "

    def test_clean_set_invariants(self, config, sample_raw_batch):
        records = run_pipeline(sample_raw_batch, config).clean_records

        assert count_duplicate_groups(records) == 0
        assert all(has_quantitative_signal(r) for r in records)
        assert all(r.date is None or isinstance(r.date, date) for r in records)

    def test_no_data_loss_without_defects(self, config):
        raw = [
            make_raw(company="A", date="1/5/2023"),
            make_raw(company="B", industry="Travel", date="2/6/2023"),
            make_raw(company="C", country="Canada", date="3/7/2023"),
        ]

        result = run_pipeline(raw, config)

        assert len(result.clean_records) == len(raw)
        assert [r.company for r in result.clean_records] == ["A", "B", "C"]
        assert result.stats['duplicates_removed'] == 0
        assert result.stats['rows_dropped'] == 0

    def test_consolidation_can_be_disabled(self, sample_raw_batch):
        config = CleaningConfig(consolidate_duplicates=False)

        result = run_pipeline(sample_raw_batch, config)

        assert result.stats['consolidated'] == 0
        assert result.stats['clean'] == 5
        assert result.report.duplicate_groups == 1
        assert not result.report.is_consistent

    def test_null_markers_and_numeric_failures(self, config):
        raw = [
            make_raw(industry="NULL", total_laid_off="NULL", percentage_laid_off="0.5"),
            make_raw(company="B", funds_raised_millions="lots"),
        ]

        result = run_pipeline(raw, config)

        assert result.clean_records[0].industry is None
        assert result.clean_records[0].total_laid_off is None
        assert result.clean_records[1].funds_raised_millions is None
        assert result.stats['numeric_parse_failures'] == 1
        assert result.report.numeric_parse_failures == 1

    def test_empty_input(self, config):
        result = run_pipeline([], config)

        assert result.clean_records == []
        assert result.stats['clean'] == 0
        assert result.report.is_consistent
