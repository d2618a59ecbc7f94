"""
Unit tests for page-range parsing and job pricing.
"""

import pytest

from models.job import Priority
from modules.pricing import JobPricer, count_requested_pages


# Tests for count_requested_pages

class TestCountRequestedPages:
    """Test page-range parsing."""

    @pytest.mark.parametrize("pages, expected", [
        ("1-3,5", 4),
        ("5-1", 5),
        ("abc", 0),
        ("7", 1),
        ("1-1", 1),
        ("1-3, 5 ,8-9", 6),
    ])
    def test_known_values(self, pages, expected):
        assert count_requested_pages(pages) == expected

    def test_empty_selection_is_zero(self):
        assert count_requested_pages("") == 0
        assert count_requested_pages(None) == 0

    def test_blank_tokens_skipped(self):
        """Trailing and doubled commas add nothing."""
        assert count_requested_pages("1-3,") == 3
        assert count_requested_pages("1,,2") == 2

    def test_malformed_tokens_contribute_nothing(self):
        assert count_requested_pages("1-3,x,5") == 4
        assert count_requested_pages("1-") == 0
        assert count_requested_pages("1-2-3") == 0
        assert count_requested_pages("a-b,2") == 1


# Tests for JobPricer

class TestJobPricer:
    """Test cost calculation and quotes."""

    def test_normal_priority_cost(self):
        """M1 at 2/page, pages 1-3,5, normal -> 8.00."""
        pricer = JobPricer(2.0)
        quote = pricer.quote("1-3,5", Priority.NORMAL, 2.0)
        assert quote["pagesRequested"] == 4
        assert quote["cost"] == 8.00

    def test_urgent_priority_cost(self):
        """Same selection, urgent -> 12.00."""
        pricer = JobPricer(2.0)
        assert pricer.quote("1-3,5", Priority.URGENT, 2.0)["cost"] == 12.00

    def test_urgent_is_one_and_a_half_times_normal(self):
        for pages in (1, 3, 7, 20):
            normal = JobPricer.calculate_cost(pages, 1.75, Priority.NORMAL)
            urgent = JobPricer.calculate_cost(pages, 1.75, Priority.URGENT)
            assert urgent == pytest.approx(normal * 1.5, abs=0.01)

    def test_cost_monotonic_in_pages(self):
        costs = [JobPricer.calculate_cost(pages, 2.5, Priority.NORMAL) for pages in range(0, 30)]
        assert costs == sorted(costs)

    def test_cost_rounded_to_two_decimals(self):
        assert JobPricer.calculate_cost(3, 0.333, Priority.NORMAL) == 1.0

    def test_default_rate_used_when_none_given(self):
        pricer = JobPricer(3.0)
        quote = pricer.quote("1-2")
        assert quote["ratePerPage"] == 3.0
        assert quote["cost"] == 6.0
        assert quote["priority"] == 2
        assert quote["priorityMultiplier"] == 1.0

    def test_priority_multiplier_accepts_plain_int(self):
        assert JobPricer.priority_multiplier(1) == 1.5
        assert JobPricer.priority_multiplier(2) == 1.0
