"""Item processing pipeline and its core middleware."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from .errors import PipelineError
from .item import Item

_LOG = logging.getLogger(__name__)


class Middleware(ABC):
    """One stage of the pipeline."""

    name: str = ""

    @abstractmethod
    def process(self, item: Item) -> Item | None:
        """Transform an item; return None to drop it."""


class Pipeline:
    """Runs items through a chain of middleware in order."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._middlewares: list[Middleware] = []
        self._log = logger or _LOG

    def use(self, middleware: Middleware) -> None:
        self._middlewares.append(middleware)
        self._log.debug(
            "middleware added: name=%s position=%d", middleware.name, len(self._middlewares)
        )

    def process(self, item: Item) -> Item | None:
        """Return the processed item, or None if a stage dropped it."""
        current = item
        for middleware in self._middlewares:
            try:
                result = middleware.process(current)
            except Exception as exc:
                raise PipelineError(middleware.name, current, exc) from exc
            if result is None:
                self._log.debug("item dropped: stage=%s url=%s", middleware.name, item.url)
                return None
            current = result
        return current

    def __len__(self) -> int:
        return len(self._middlewares)


class FieldFilterMiddleware(Middleware):
    """Keeps only the listed fields; an empty list keeps everything."""

    name = "field_filter"

    def __init__(self, fields: Iterable[str] = ()) -> None:
        self.fields = set(fields)

    def process(self, item: Item) -> Item | None:
        if not self.fields:
            return item
        for key in item.keys():
            if key not in self.fields:
                item.delete(key)
        return item


class FieldRenameMiddleware(Middleware):
    """Renames fields according to an old-name to new-name mapping."""

    name = "field_rename"

    def __init__(self, mapping: Mapping[str, str]) -> None:
        self.mapping = dict(mapping)

    def process(self, item: Item) -> Item | None:
        for old_key, new_key in self.mapping.items():
            if item.has(old_key):
                value = item.get(old_key)
                item.set(new_key, value)
                item.delete(old_key)
        return item


class RequiredFieldsMiddleware(Middleware):
    """Drops items that lack any of the required fields."""

    name = "required_fields"

    def __init__(self, fields: Iterable[str]) -> None:
        self.fields = list(fields)

    def process(self, item: Item) -> Item | None:
        for key in self.fields:
            if not item.has(key):
                return None
            if item.get_string(key) == "" and item.get(key) is None:
                return None
        return item


class DedupMiddleware(Middleware):
    """Drops items whose key field (or URL) has been seen before."""

    name = "dedup"

    def __init__(self, key: str) -> None:
        self.key = key
        self._seen: set[str] = set()
        self._lock = threading.Lock()

    def process(self, item: Item) -> Item | None:
        value = item.get_string(self.key) or item.url
        with self._lock:
            if value in self._seen:
                return None
            self._seen.add(value)
        return item


class DefaultValueMiddleware(Middleware):
    """Fills in missing fields with default values."""

    name = "default_values"

    def __init__(self, defaults: Mapping[str, Any]) -> None:
        self.defaults = dict(defaults)

    def process(self, item: Item) -> Item | None:
        for key, value in self.defaults.items():
            if not item.has(key):
                item.set(key, value)
        return item


class TrimMiddleware(Middleware):
    """Strips surrounding whitespace from every string field."""

    name = "trim"

    def process(self, item: Item) -> Item | None:
        for key in item.keys():
            text = item.get_string(key)
            if text:
                item.set(key, text.strip())
        return item