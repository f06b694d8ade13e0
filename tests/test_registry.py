from __future__ import annotations

import pytest

from parley.kernel.registry import CommandPlugin, PluginRegistry


def _plugin(name: str, parents=("ai",)) -> CommandPlugin:
    return CommandPlugin(name=name, description=name, parents=tuple(parents), version="0.1.0", run=lambda **_: 0)


def test_register_and_lookup():
    registry = PluginRegistry()
    chat = _plugin("chat")
    registry.register(chat)

    assert registry.get(("ai",), "chat") is chat
    assert registry.get(("ai",), "missing") is None
    assert registry.list_plugin_ids() == ["ai/chat"]


def test_duplicate_registration_is_rejected():
    registry = PluginRegistry()
    registry.register(_plugin("chat"))

    with pytest.raises(ValueError):
        registry.register(_plugin("chat"))


def test_plugins_grouped_by_parent():
    registry = PluginRegistry()
    registry.register(_plugin("chat"))
    registry.register(_plugin("ask"))
    registry.register(_plugin("status", parents=("tools",)))

    assert registry.parent_groups() == ["ai", "tools"]
    assert [plugin.name for plugin in registry.by_parent("ai")] == ["ask", "chat"]
