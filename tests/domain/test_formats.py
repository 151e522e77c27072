"""Tests for shared wire-format parsers."""

from __future__ import annotations

import pytest

from tripcheck.domain.formats import is_iso_duration, is_valid_gps, parse_timestamp


class TestParseTimestamp:
    @pytest.mark.parametrize(
        "value",
        ["2023-12-10T08:03:34.294Z", "2023-12-10T13:33:34+05:30", "2023-12-10T08:03:34Z"],
    )
    def test_valid(self, value: str) -> None:
        assert parse_timestamp(value) is not None

    @pytest.mark.parametrize(
        "value", ["2023-12-10T08:03:34", "2023-12-10 08:03:34Z", "yesterday", 1702195414, None]
    )
    def test_invalid(self, value: object) -> None:
        assert parse_timestamp(value) is None

    def test_offsets_compare_as_instants(self) -> None:
        a = parse_timestamp("2023-12-10T08:00:00Z")
        b = parse_timestamp("2023-12-10T13:30:00+05:30")
        assert a == b


class TestGps:
    @pytest.mark.parametrize("value", ["12.9716,77.5946", "-33.8688, 151.2093", "0,0"])
    def test_valid(self, value: str) -> None:
        assert is_valid_gps(value)

    @pytest.mark.parametrize("value", ["91,0", "0,181", "12.97", "a,b", "", None, [12.9, 77.5]])
    def test_invalid(self, value: object) -> None:
        assert not is_valid_gps(value)


class TestDuration:
    @pytest.mark.parametrize("value", ["PT30S", "P1D", "PT1H30M", "P1Y2M", "PT0.5S"])
    def test_valid(self, value: str) -> None:
        assert is_iso_duration(value)

    @pytest.mark.parametrize("value", ["P", "PT", "30S", "PT1H30", "", None])
    def test_invalid(self, value: object) -> None:
        assert not is_iso_duration(value)
