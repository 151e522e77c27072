"""Tests for protocol step and vocabulary enums."""

from __future__ import annotations

from tripcheck.domain.types import (
    ON_DEMAND_VEHICLES,
    PAIRED_REQUEST,
    Step,
    VehicleCategory,
    is_response,
)


class TestStep:
    def test_values_are_wire_actions(self) -> None:
        assert [str(s) for s in Step] == ["search", "on_search", "select", "on_select"]

    def test_compares_as_string(self) -> None:
        assert Step.ON_SELECT == "on_select"
        assert f"/{Step.SELECT}" == "/select"

    def test_is_response(self) -> None:
        assert is_response(Step.ON_SELECT)
        assert not is_response(Step.SELECT)

    def test_pairs(self) -> None:
        assert PAIRED_REQUEST[Step.ON_SELECT] is Step.SELECT


class TestVehicles:
    def test_on_demand_categories(self) -> None:
        assert ON_DEMAND_VEHICLES == ("AUTO_RICKSHAW", "CAB", "TWO_WHEELER")
        assert VehicleCategory("CAB") is VehicleCategory.CAB
