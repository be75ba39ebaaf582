"""Plugin interfaces and the registry that manages them."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .item import Item
from .request import Request
from .response import Response

_LOG = logging.getLogger(__name__)


class PluginType(str, Enum):
    FETCHER = "fetcher"
    PARSER = "parser"
    MIDDLEWARE = "middleware"
    STORAGE = "storage"
    HOOK = "hook"


class Plugin(ABC):
    """Base for every plugin: identified by name, type and version."""

    name: str = ""
    plugin_type: PluginType = PluginType.HOOK
    version: str = ""

    @abstractmethod
    def init(self, cfg: Mapping[str, Any]) -> None:
        """Configure the plugin."""

    @abstractmethod
    def close(self) -> None:
        """Release the plugin's resources."""


class HookPlugin(Plugin):
    """A plugin notified of crawl lifecycle events."""

    plugin_type = PluginType.HOOK

    @abstractmethod
    def on_start(self) -> None: ...

    @abstractmethod
    def on_stop(self) -> None: ...

    @abstractmethod
    def on_request(self, request: Request) -> None: ...

    @abstractmethod
    def on_response(self, response: Response) -> None: ...

    @abstractmethod
    def on_item(self, item: Item) -> None: ...

    @abstractmethod
    def on_error(self, error: BaseException) -> None: ...


@dataclass(frozen=True)
class PluginInfo:
    name: str
    plugin_type: PluginType
    version: str


class Registry:
    """Holds registered plugins, indexed by name and by type."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._plugins: dict[str, Plugin] = {}
        self._by_type: dict[PluginType, list[Plugin]] = {}
        self._lock = threading.RLock()
        self._log = logger or _LOG

    def register(self, plugin: Plugin) -> None:
        """Add a plugin; raises ValueError if the name is taken."""
        with self._lock:
            if plugin.name in self._plugins:
                raise ValueError(f"plugin {plugin.name!r} already registered")
            self._plugins[plugin.name] = plugin
            self._by_type.setdefault(plugin.plugin_type, []).append(plugin)
        self._log.info(
            "plugin registered: name=%s type=%s version=%s",
            plugin.name,
            plugin.plugin_type.value,
            plugin.version,
        )

    def get(self, name: str) -> Plugin | None:
        with self._lock:
            return self._plugins.get(name)

    def get_by_type(self, plugin_type: PluginType) -> list[Plugin]:
        with self._lock:
            return list(self._by_type.get(plugin_type, ()))

    def unregister(self, name: str) -> None:
        """Close and remove a plugin; raises KeyError if it is unknown."""
        with self._lock:
            plugin = self._plugins.get(name)
            if plugin is None:
                raise KeyError(f"plugin {name!r} not found")
            try:
                plugin.close()
            except Exception as exc:
                self._log.warning("plugin close error: name=%s error=%s", name, exc)
            same_type = self._by_type.get(plugin.plugin_type, [])
            self._by_type[plugin.plugin_type] = [p for p in same_type if p.name != name]
            del self._plugins[name]
        self._log.info("plugin unregistered: name=%s", name)

    def list_plugins(self) -> list[PluginInfo]:
        with self._lock:
            return [PluginInfo(p.name, p.plugin_type, p.version) for p in self._plugins.values()]

    def init_all(self, configs: Mapping[str, Mapping[str, Any]]) -> None:
        """Initialise every plugin with its entry in ``configs``."""
        with self._lock:
            for name, plugin in self._plugins.items():
                try:
                    plugin.init(configs.get(name) or {})
                except Exception as exc:
                    raise RuntimeError(f"init plugin {name!r}: {exc}") from exc

    def close_all(self) -> None:
        with self._lock:
            for name, plugin in self._plugins.items():
                try:
                    plugin.close()
                except Exception as exc:
                    self._log.error("plugin close error: name=%s error=%s", name, exc)

    def run_hooks(self, fn: Callable[[HookPlugin], None]) -> None:
        """Call ``fn`` on every hook plugin, logging rather than raising failures."""
        for plugin in self.get_by_type(PluginType.HOOK):
            if not isinstance(plugin, HookPlugin):
                continue
            try:
                fn(plugin)
            except Exception as exc:
                self._log.warning("hook error: plugin=%s error=%s", plugin.name, exc)