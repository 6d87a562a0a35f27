"""Tests for timestamp normalization."""

from datetime import UTC, date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from revenue_pulse.core.timestamps import EPOCH, parse_timestamp


class TestUnknownValues:
    @pytest.mark.parametrize(
        "value",
        [None, "", "   ", "not-a-date", "nan", "inf", "-inf", "1e400", True, False, [], {}],
    )
    def test_returns_none(self, value) -> None:
        assert parse_timestamp(value) is None

    def test_float_nan_returns_none(self) -> None:
        assert parse_timestamp(float("nan")) is None

    def test_out_of_range_seconds_returns_none(self) -> None:
        # 1e12 is not above the threshold, so it is read as seconds: year 33000+
        assert parse_timestamp(10**12) is None


class TestEpochNumbers:
    def test_epoch_seconds(self) -> None:
        assert parse_timestamp(1_700_000_000) == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)

    def test_epoch_milliseconds(self) -> None:
        assert parse_timestamp(1_700_000_000_000) == datetime(
            2023, 11, 14, 22, 13, 20, tzinfo=UTC
        )

    @pytest.mark.parametrize(
        "seconds", [1_000_000_001, 1_600_000_000, 1_700_000_000, 1_999_999_999]
    )
    def test_seconds_and_milliseconds_agree(self, seconds: int) -> None:
        assert parse_timestamp(seconds) == parse_timestamp(seconds * 1000)

    def test_just_above_threshold_is_milliseconds(self) -> None:
        value = 10**12 + 1
        assert parse_timestamp(value) == EPOCH + timedelta(milliseconds=value)

    def test_fractional_seconds(self) -> None:
        result = parse_timestamp(1_700_000_000.5)
        assert result is not None
        assert result.microsecond == 500000

    def test_decimal(self) -> None:
        assert parse_timestamp(Decimal("1700000000")) == parse_timestamp(1_700_000_000)

    def test_numeric_string(self) -> None:
        assert parse_timestamp("1700000000") == parse_timestamp(1_700_000_000)

    def test_numeric_string_with_whitespace(self) -> None:
        assert parse_timestamp(" 1700000000 ") == parse_timestamp(1_700_000_000)

    def test_millisecond_string(self) -> None:
        assert parse_timestamp("1700000000000") == parse_timestamp(1_700_000_000)

    def test_result_is_utc(self) -> None:
        result = parse_timestamp(1_700_000_000)
        assert result is not None
        assert result.tzinfo == UTC


class TestDateStrings:
    def test_iso_with_z(self) -> None:
        assert parse_timestamp("2024-03-01T10:30:00Z") == datetime(2024, 3, 1, 10, 30, tzinfo=UTC)

    def test_iso_with_offset_converted_to_utc(self) -> None:
        assert parse_timestamp("2024-03-01T10:30:00+02:00") == datetime(
            2024, 3, 1, 8, 30, tzinfo=UTC
        )

    def test_naive_iso_taken_as_utc(self) -> None:
        assert parse_timestamp("2024-03-01T10:30:00") == datetime(2024, 3, 1, 10, 30, tzinfo=UTC)

    def test_date_only(self) -> None:
        assert parse_timestamp("2024-03-01") == datetime(2024, 3, 1, tzinfo=UTC)

    def test_rfc_2822(self) -> None:
        assert parse_timestamp("Tue, 15 Nov 1994 12:45:26 GMT") == datetime(
            1994, 11, 15, 12, 45, 26, tzinfo=UTC
        )

    def test_comparable_with_epoch_values(self) -> None:
        iso = parse_timestamp("2023-11-14T22:13:20Z")
        assert iso == parse_timestamp(1_700_000_000)


class TestDatetimeValues:
    def test_aware_datetime_converted(self) -> None:
        value = datetime(2024, 1, 1, 5, 0, tzinfo=timezone(timedelta(hours=5)))
        assert parse_timestamp(value) == datetime(2024, 1, 1, 0, 0, tzinfo=UTC)

    def test_naive_datetime_taken_as_utc(self) -> None:
        assert parse_timestamp(datetime(2024, 1, 1, 9)) == datetime(2024, 1, 1, 9, tzinfo=UTC)

    def test_date_is_midnight_utc(self) -> None:
        assert parse_timestamp(date(2024, 1, 1)) == datetime(2024, 1, 1, tzinfo=UTC)

    def test_deterministic(self) -> None:
        assert parse_timestamp("2024-03-01T10:30:00Z") == parse_timestamp("2024-03-01T10:30:00Z")
