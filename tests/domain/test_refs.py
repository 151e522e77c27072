"""Tests for referential-integrity helpers."""

from __future__ import annotations

import pytest

from tripcheck.domain.refs import (
    RefStatus,
    extra_keys,
    is_declared,
    resolve_reference,
    validate_item_ref_ids,
    validate_provider_id,
)


class TestResolveReference:
    @pytest.mark.parametrize("candidate", [None, ""])
    def test_absent_is_missing(self, candidate: object) -> None:
        assert resolve_reference(candidate, {"f1"}) is RefStatus.MISSING

    def test_declared(self) -> None:
        assert resolve_reference("f1", {"f1", "f2"}) is RefStatus.OK

    def test_undeclared(self) -> None:
        assert resolve_reference("f3", {"f1"}) is RefStatus.UNDECLARED

    def test_empty_known_required(self) -> None:
        assert resolve_reference("f1", set()) is RefStatus.UNDECLARED

    def test_empty_known_not_required(self) -> None:
        assert resolve_reference("f1", set(), required_when_empty=False) is RefStatus.OK

    def test_non_string_never_accepted(self) -> None:
        assert resolve_reference(7, set(), required_when_empty=False) is RefStatus.UNDECLARED

    def test_is_declared(self) -> None:
        assert is_declared("a", ["a"])
        assert not is_declared("b", ["a"])


class TestExtraKeys:
    def test_reports_unknown_keys_in_order(self) -> None:
        obj = {"id": "P1", "descriptor": {}, "rating": "4", "locations": []}
        assert extra_keys(obj, {"id", "descriptor"}) == ["rating", "locations"]

    def test_non_mapping(self) -> None:
        assert extra_keys("P1", {"id"}) == []


class TestValidateProviderId:
    def _check(self, provider_id: object, **kwargs: object):
        defaults: dict[str, object] = {
            "selected_id": None,
            "catalog_ids": frozenset(),
            "previous_step": "select",
            "current_step": "on_select",
        }
        defaults.update(kwargs)
        return validate_provider_id(provider_id, **defaults)  # type: ignore[arg-type]

    def test_missing(self) -> None:
        report = self._check(None)
        assert report.messages("provider.id") == ["provider.id is missing in /on_select"]

    def test_matches_selected(self) -> None:
        assert not self._check("P1", selected_id="P1", catalog_ids={"P2"})

    def test_mismatch_with_selected(self) -> None:
        report = self._check("P2", selected_id="P1")
        assert "does not match provider.id P1 sent in /select" in report.messages("provider.id")[0]

    def test_falls_back_to_catalog(self) -> None:
        assert not self._check("P2", catalog_ids={"P1", "P2"})
        assert "provider.id" in self._check("P3", catalog_ids={"P1"})

    def test_nothing_recorded_accepts_any(self) -> None:
        assert not self._check("P9")


class TestValidateItemRefIds:
    def test_all_declared(self) -> None:
        item = {"fulfillment_ids": ["f1"], "location_ids": ["loc1"]}
        assert not validate_item_ref_ids(item, "on_select", 0, {"f1"}, {"loc1"}, set())

    def test_fulfillment_ids_required(self) -> None:
        report = validate_item_ref_ids({}, "on_select", 2, {"f1"}, set(), set())
        assert report.paths() == ["items[2].fulfillment_ids"]
        assert report.messages("items[2].fulfillment_ids") == [
            "fulfillment_ids are missing at items[2] in /on_select"
        ]

    def test_fulfillment_ids_must_not_be_empty(self) -> None:
        report = validate_item_ref_ids(
            {"fulfillment_ids": []}, "on_select", 0, {"f1"}, set(), set()
        )
        assert "must not be empty" in report.messages("items[0].fulfillment_ids")[0]

    def test_not_an_array(self) -> None:
        report = validate_item_ref_ids(
            {"fulfillment_ids": "f1"}, "on_select", 0, {"f1"}, set(), set()
        )
        assert "must be an array" in report.messages("items[0].fulfillment_ids")[0]

    def test_each_undeclared_id_reported(self) -> None:
        item = {"fulfillment_ids": ["f1", "f2", "f3"]}
        report = validate_item_ref_ids(item, "on_select", 0, {"f1"}, set(), set())
        assert report.messages("items[0].fulfillment_ids") == [
            "f2 in fulfillment_ids is not previously declared in /on_select",
            "f3 in fulfillment_ids is not previously declared in /on_select",
        ]

    def test_optional_lists_checked_when_present(self) -> None:
        item = {"fulfillment_ids": ["f1"], "location_ids": ["loc9"], "payment_ids": ["pay1"]}
        report = validate_item_ref_ids(item, "on_select", 0, {"f1"}, {"loc1"}, set())
        assert "items[0].location_ids" in report
        assert "items[0].payment_ids" in report
        assert "items[0].fulfillment_ids" not in report
