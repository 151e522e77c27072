"""Tests for PluginManager — discovery, registration, and document collection."""

from __future__ import annotations

from typing import Any

import pluggy

from tripcheck.plugins import PluginManager, hookimpl


class _DummyPlugin:
    """Minimal plugin for registration tests."""

    @hookimpl
    def tripcheck_extension_documents(self) -> dict[str, Any]:
        return {"2.1.0": {"on_select": {"type": "object"}}}


class _SilentPlugin:
    @hookimpl
    def tripcheck_extension_documents(self) -> None:
        return None


class _BrokenPlugin:
    @hookimpl
    def tripcheck_extension_documents(self) -> dict[str, Any]:
        raise RuntimeError("boom")


class _ListPlugin:
    @hookimpl
    def tripcheck_extension_documents(self) -> Any:
        return ["2.1.0"]


class TestPluginManager:
    """Tests for the PluginManager class."""

    def test_hook_relay_accessible(self) -> None:
        pm = PluginManager()
        assert hasattr(pm._pm.hook, "tripcheck_extension_documents")

    def test_register_plugin(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin(), name="dummy")
        assert "dummy" in pm.list_plugin_names()

    def test_register_plugin_default_name(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin())
        assert "_DummyPlugin" in pm.list_plugin_names()

    def test_unregister_plugin(self) -> None:
        pm = PluginManager()
        plugin = _DummyPlugin()
        pm.register_plugin(plugin, name="dummy")
        pm.unregister(plugin)
        assert "dummy" not in pm.list_plugin_names()

    def test_not_loaded_initially(self) -> None:
        assert PluginManager().is_loaded is False

    def test_discover_and_load_marks_loaded(self) -> None:
        pm = PluginManager()
        pm.discover_and_load()
        assert pm.is_loaded is True


class TestCollectExtensionDocuments:
    def test_collects_from_plugin(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin(), name="dummy")
        assert pm.collect_extension_documents() == [
            ("dummy", {"2.1.0": {"on_select": {"type": "object"}}})
        ]

    def test_none_is_ignored(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_SilentPlugin(), name="silent")
        assert pm.collect_extension_documents() == []

    def test_failing_plugin_skipped(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_BrokenPlugin(), name="broken")
        pm.register_plugin(_DummyPlugin(), name="dummy")
        assert [name for name, _ in pm.collect_extension_documents()] == ["dummy"]

    def test_non_dict_skipped(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_ListPlugin(), name="odd")
        assert pm.collect_extension_documents() == []


class TestNormalizePluginInstances:
    def test_class_registration_is_instantiated(self) -> None:
        pm = PluginManager()
        pm._pm.register(_DummyPlugin, name="entry")
        pm._normalize_plugin_instances()
        plugins = pm._pm.get_plugins()
        assert len(plugins) == 1
        assert isinstance(next(iter(plugins)), _DummyPlugin)
        assert pm.collect_extension_documents()[0][0] == "entry"

    def test_has_hook_impls(self) -> None:
        assert PluginManager._has_hook_impls(_DummyPlugin) is True
        assert PluginManager._has_hook_impls(object) is False

    def test_marker_project_name(self) -> None:
        assert isinstance(hookimpl, pluggy.HookimplMarker)
