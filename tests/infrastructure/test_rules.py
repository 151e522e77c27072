"""Tests for loading built-in and plugin constraint documents."""

from __future__ import annotations

from typing import Any

from tripcheck.infrastructure.rules import build_extension_registry, load_builtin_documents
from tripcheck.plugins import PluginManager, hookimpl


class _Plugin:
    def __init__(self, documents: Any) -> None:
        self._documents = documents

    @hookimpl
    def tripcheck_extension_documents(self) -> Any:
        return self._documents


class TestBuiltinDocuments:
    def test_ships_2_0_1_on_select(self) -> None:
        documents = load_builtin_documents()
        assert "on_select" in documents["2.0.1"]

    def test_conforming_payload_passes(self, on_select_payload: dict[str, Any]) -> None:
        registry = build_extension_registry()
        assert not registry.check("2.0.1", "on_select", on_select_payload)

    def test_2_0_1_requires_ttls(self, on_select_payload: dict[str, Any]) -> None:
        del on_select_payload["context"]["ttl"]
        del on_select_payload["message"]["order"]["quote"]["ttl"]
        report = build_extension_registry().check("2.0.1", "on_select", on_select_payload)
        assert set(report.paths()) == {"context", "message.order.quote"}


class TestPluginDocuments:
    def test_plugin_adds_version(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_Plugin({"2.1.0": {"on_select": {"required": ["context"]}}}), "v210")
        registry = build_extension_registry(pm)
        assert registry.versions() == ["2.0.1", "2.1.0"]
        assert "payload" in registry.check("2.1.0", "on_select", {})

    def test_invalid_plugin_document_skipped(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_Plugin({"2.1.0": {"on_select": {"type": 42}}}), "broken")
        registry = build_extension_registry(pm)
        assert registry.versions() == ["2.0.1"]

    def test_non_mapping_steps_skipped(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_Plugin({"2.1.0": ["on_select"]}), "odd")
        assert build_extension_registry(pm).versions() == ["2.0.1"]
