"""
Unit Tests for Deterministic Deduplication

With the default key (all nine business fields) duplicate groups are
identical records, so the rank criteria are exercised with a narrower key
("company", "location") where group members actually differ.
"""

import pytest

from layoffs_etl.cleaner.config_loader import RankCriterion
from layoffs_etl.cleaner.deduplicate import (
    count_duplicate_groups,
    deduplicate,
    rank_duplicates,
)
from tests.conftest import make_working

NARROW_KEY = ("company", "location")


@pytest.mark.unit
class TestDeduplicateFullKey:
    """Tests with the default duplicate key"""

    def test_exact_duplicates_collapse(self):
        records = [make_working(), make_working(), make_working(company="Beta")]

        survivors, removed = deduplicate(records)

        assert removed == 1
        assert [r.company for r in survivors] == ["Acme", "Beta"]

    def test_nulls_compare_equal(self):
        records = [
            make_working(industry=None, stage=None),
            make_working(industry=None, stage=None),
        ]

        survivors, removed = deduplicate(records)

        assert len(survivors) == 1
        assert removed == 1

    def test_empty_string_and_null_are_different(self):
        records = [make_working(industry=""), make_working(industry=None)]

        survivors, removed = deduplicate(records)

        assert removed == 0
        assert len(survivors) == 2

    def test_unique_records_untouched(self):
        records = [make_working(company=name) for name in ("A", "B", "C")]

        survivors, removed = deduplicate(records)

        assert survivors == records
        assert removed == 0

    def test_rank_cleared_on_survivors(self):
        survivors, _ = deduplicate([make_working(), make_working()])

        assert survivors[0].rank is None

    def test_empty_input(self):
        assert deduplicate([]) == ([], 0)


@pytest.mark.unit
class TestRankCriteria:
    """Tests for the five-step rank order"""

    def test_non_null_industry_wins(self):
        records = [make_working(industry=None), make_working(industry="Travel")]

        survivors, _ = deduplicate(records, NARROW_KEY)

        assert [r.industry for r in survivors] == ["Travel"]

    def test_blank_industry_ranks_like_null(self):
        records = [make_working(industry="  "), make_working(industry="Travel")]

        survivors, _ = deduplicate(records, NARROW_KEY)

        assert survivors[0].industry == "Travel"

    def test_total_laid_off_breaks_industry_tie(self):
        records = [make_working(total_laid_off=None), make_working(total_laid_off=50)]

        survivors, _ = deduplicate(records, NARROW_KEY)

        assert survivors[0].total_laid_off == 50

    def test_industry_outranks_total_laid_off(self):
        records = [
            make_working(industry=None, total_laid_off=50),
            make_working(industry="Travel", total_laid_off=None),
        ]

        survivors, _ = deduplicate(records, NARROW_KEY)

        assert survivors[0].industry == "Travel"
        assert survivors[0].total_laid_off is None

    def test_percentage_present_wins(self):
        records = [
            make_working(percentage_laid_off=""),
            make_working(percentage_laid_off="0.2"),
        ]

        survivors, _ = deduplicate(records, NARROW_KEY)

        assert survivors[0].percentage_laid_off == "0.2"

    def test_higher_funds_win_and_null_funds_last(self):
        records = [
            make_working(funds_raised_millions=None),
            make_working(funds_raised_millions=10),
            make_working(funds_raised_millions=300),
        ]

        ranked = rank_duplicates(records, NARROW_KEY)

        assert [r.rank for r in ranked] == [3, 2, 1]

    def test_later_date_text_wins(self):
        records = [make_working(date="2023-01-05"), make_working(date="2023-03-01")]

        survivors, _ = deduplicate(records, NARROW_KEY)

        assert survivors[0].date == "2023-03-01"

    def test_date_comparison_is_lexicographic_on_raw_text(self):
        # "9/1/2022" sorts after "12/1/2022" as text
        records = [make_working(date="12/1/2022"), make_working(date="9/1/2022")]

        survivors, _ = deduplicate(records, NARROW_KEY)

        assert survivors[0].date == "9/1/2022"

    def test_full_tie_keeps_first_input(self):
        records = [make_working(stage="Seed"), make_working(stage="Series A")]

        survivors, _ = deduplicate(records, NARROW_KEY)

        assert survivors[0].stage == "Seed"

    def test_configured_ascending_order(self):
        records = [
            make_working(funds_raised_millions=300),
            make_working(funds_raised_millions=None),
            make_working(funds_raised_millions=10),
        ]

        survivors, _ = deduplicate(
            records, NARROW_KEY, [RankCriterion("funds_raised_millions", "asc")]
        )

        assert survivors[0].funds_raised_millions == 10

    def test_survivors_keep_input_order(self):
        records = [
            make_working(company="B", industry=None),
            make_working(company="A"),
            make_working(company="B", industry="Travel"),
        ]

        survivors, _ = deduplicate(records, NARROW_KEY)

        assert [(r.company, r.industry) for r in survivors] == [("A", "Retail"), ("B", "Travel")]


@pytest.mark.unit
class TestDeduplicateProperties:
    """Determinism and idempotence"""

    @pytest.fixture
    def messy(self):
        return [
            make_working(industry=None),
            make_working(),
            make_working(),
            make_working(company="Beta", funds_raised_millions=None),
            make_working(company="Beta", funds_raised_millions=None),
            make_working(company="Beta", total_laid_off=None),
        ]

    @pytest.mark.parametrize("key", [None, NARROW_KEY])
    def test_idempotent(self, messy, key):
        args = (key,) if key else ()
        once, _ = deduplicate(messy, *args)
        twice, removed = deduplicate(once, *args)

        assert twice == once
        assert removed == 0

    def test_deterministic(self, messy):
        assert rank_duplicates(messy, NARROW_KEY) == rank_duplicates(list(messy), NARROW_KEY)
        assert [r.rank for r in rank_duplicates(messy, NARROW_KEY)] == \
            [r.rank for r in rank_duplicates(messy, NARROW_KEY)]

    def test_input_not_modified(self, messy):
        snapshot = list(messy)
        deduplicate(messy, NARROW_KEY)

        assert messy == snapshot
        assert all(r.rank is None for r in messy)

    def test_no_duplicate_groups_after_dedup(self, messy):
        survivors, _ = deduplicate(messy)

        assert count_duplicate_groups(messy) == 2
        assert count_duplicate_groups(survivors) == 0
