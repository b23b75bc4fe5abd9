"""Unit tests for billing period helpers."""

from datetime import date

import pytest

from hostel_billing.services.errors import ValidationError
from hostel_billing.services.periods import (
    current_period,
    format_period,
    parse_period,
    previous_period,
    rent_due_date,
)


class TestParsePeriod:
    """Tests for parse_period."""

    def test_parse_valid_period(self):
        assert parse_period("2024-03") == (2024, 3)

    @pytest.mark.parametrize("bad", ["2024-3", "2024/03", "24-03", "2024-13", "2024-00", "", "March"])
    def test_parse_malformed_period(self, bad):
        """Malformed or out-of-range periods raise ValidationError."""
        with pytest.raises(ValidationError, match="Invalid period"):
            parse_period(bad)

    def test_parse_non_string(self):
        with pytest.raises(ValidationError):
            parse_period(202403)


class TestPeriodArithmetic:
    """Tests for previous/current period and due dates."""

    def test_previous_period_same_year(self):
        assert previous_period("2024-03") == "2024-02"

    def test_previous_period_wraps_year(self):
        assert previous_period("2024-01") == "2023-12"

    def test_current_period_from_reference_date(self):
        assert current_period(date(2024, 11, 30)) == "2024-11"

    def test_format_period_pads(self):
        assert format_period(2024, 5) == "2024-05"

    def test_rent_due_date_fixed_day(self):
        assert rent_due_date("2024-02", 5) == date(2024, 2, 5)
