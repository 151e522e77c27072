"""Tests for version-keyed constraint documents."""

from __future__ import annotations

from typing import Any

import pytest
from jsonschema.exceptions import SchemaError

from tripcheck.domain.extensions import ExtensionRegistry, validate_payload_against_document

REQUIRES_TTL: dict[str, Any] = {
    "type": "object",
    "properties": {
        "context": {"type": "object", "required": ["ttl"]},
        "message": {
            "type": "object",
            "properties": {
                "order": {
                    "type": "object",
                    "properties": {
                        "items": {
                            "type": "array",
                            "items": {"type": "object", "required": ["id"]},
                        }
                    },
                }
            },
        },
    },
}


class TestValidateAgainstDocument:
    def test_conforming(self) -> None:
        payload = {"context": {"ttl": "PT30S"}}
        assert not validate_payload_against_document(REQUIRES_TTL, payload)

    def test_findings_keyed_by_instance_path(self) -> None:
        payload = {"context": {}, "message": {"order": {"items": [{"id": "i1"}, {}]}}}
        report = validate_payload_against_document(REQUIRES_TTL, payload)
        assert set(report.paths()) == {"context", "message.order.items[1]"}
        assert report.messages("context") == ["'ttl' is a required property"]

    def test_root_finding(self) -> None:
        report = validate_payload_against_document({"type": "object"}, [])
        assert report.paths() == ["payload"]

    def test_prefix(self) -> None:
        report = validate_payload_against_document(
            REQUIRES_TTL, {"context": {}}, prefix="extensions"
        )
        assert report.paths() == ["extensions.context"]


class TestExtensionRegistry:
    def test_lookup_by_version_and_step(self) -> None:
        registry = ExtensionRegistry({"2.0.1": {"on_select": REQUIRES_TTL}})
        assert registry.lookup("2.0.1", "on_select") is REQUIRES_TTL
        assert registry.lookup("2.0.0", "on_select") is None
        assert registry.lookup(None, "on_select") is None
        assert registry.versions() == ["2.0.1"]

    def test_lookup_ignores_non_string_version(self) -> None:
        registry = ExtensionRegistry({"2.0.1": {"on_select": REQUIRES_TTL}})
        assert registry.lookup(["2.0.1"], "on_select") is None  # type: ignore[arg-type]
        assert not registry.check({"v": 1}, "on_select", {})  # type: ignore[arg-type]

    def test_unknown_version_adds_nothing(self) -> None:
        registry = ExtensionRegistry({"2.0.1": {"on_select": REQUIRES_TTL}})
        assert not registry.check("2.1.0", "on_select", {"context": {}})

    def test_check_applies_document(self) -> None:
        registry = ExtensionRegistry({"2.0.1": {"on_select": REQUIRES_TTL}})
        assert "context" in registry.check("2.0.1", "on_select", {"context": {}})

    def test_register_replaces(self) -> None:
        registry = ExtensionRegistry({"2.0.1": {"on_select": REQUIRES_TTL}})
        registry.register("2.0.1", "on_select", {"type": "object"})
        assert not registry.check("2.0.1", "on_select", {"context": {}})

    def test_invalid_document_rejected(self) -> None:
        registry = ExtensionRegistry()
        with pytest.raises(SchemaError):
            registry.register("2.0.1", "on_select", {"type": "objekt"})
