"""Registry of command plugins mounted under the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

PluginRun = Callable[..., int]


@dataclass(frozen=True)
class CommandPlugin:
    name: str
    description: str
    parents: Tuple[str, ...]
    version: str
    run: PluginRun

    @property
    def plugin_id(self) -> str:
        return "/".join(self.parents + (self.name,))


@dataclass
class PluginRegistry:
    plugins: Dict[str, CommandPlugin] = field(default_factory=dict)

    def register(self, plugin: CommandPlugin) -> None:
        if plugin.plugin_id in self.plugins:
            raise ValueError("plugin already registered: {0}".format(plugin.plugin_id))
        self.plugins[plugin.plugin_id] = plugin

    def get(self, parents: Sequence[str], name: str) -> Optional[CommandPlugin]:
        return self.plugins.get("/".join(tuple(parents) + (name,)))

    def list_plugin_ids(self) -> List[str]:
        return sorted(self.plugins.keys())

    def by_parent(self, parent: str) -> List[CommandPlugin]:
        return [
            self.plugins[plugin_id]
            for plugin_id in self.list_plugin_ids()
            if self.plugins[plugin_id].parents[:1] == (parent,)
        ]

    def parent_groups(self) -> List[str]:
        return sorted({plugin.parents[0] for plugin in self.plugins.values() if plugin.parents})
