"""Storage plugins shipped with the package: S3, Kafka and PostgreSQL."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable, Mapping
from datetime import date
from pathlib import Path
from typing import Any

from .item import Item, _json_default
from .plugins import Plugin, PluginType, Registry

_LOG = logging.getLogger(__name__)


def _number(value: Any) -> int | None:
    """Return a numeric config value as an int, or None if it is not a number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def mask_dsn(dsn: str) -> str:
    """Hide the credentials part of a connection string."""
    if "@" in dsn:
        return "***@" + dsn.split("@", 1)[1]
    return dsn


class _StoragePlugin(Plugin):
    plugin_type = PluginType.STORAGE
    version = "1.0.0"

    def store(self, items: Iterable[Item]) -> None:  # pragma: no cover - overridden
        raise NotImplementedError


class S3StoragePlugin(_StoragePlugin):
    """Buffers items and uploads them in batches.

    Batches are written to a local fallback directory,
    ``<fallback_root>/s3-fallback/<bucket>/``, named after the object key.
    """

    name = "scrapegoat-s3"

    def __init__(
        self, logger: logging.Logger | None = None, *, fallback_root: str | Path = "output"
    ) -> None:
        self.bucket = ""
        self.prefix = ""
        self.region = ""
        self.format = ""
        self.flush_size = 0
        self.batch_count = 0
        self.fallback_root = Path(fallback_root)
        self._buffer: list[Item] = []
        self._lock = threading.Lock()
        self._log = logger or _LOG

    def init(self, cfg: Mapping[str, Any] | None) -> None:
        cfg = cfg or {}
        for key in ("bucket", "prefix", "region", "format"):
            value = cfg.get(key)
            if isinstance(value, str):
                setattr(self, key, value)
        self.format = self.format or "jsonl"
        self.prefix = self.prefix or "scrapegoat/"
        self.region = self.region or "us-east-1"
        flush_size = _number(cfg.get("flush_size"))
        if flush_size is not None:
            self.flush_size = flush_size
        if self.flush_size == 0:
            self.flush_size = 100
        self._log.info(
            "S3 plugin initialized: bucket=%s prefix=%s region=%s format=%s",
            self.bucket,
            self.prefix,
            self.region,
            self.format,
        )

    def store(self, items: Iterable[Item]) -> None:
        with self._lock:
            self._buffer.extend(items)
            if len(self._buffer) >= self.flush_size:
                self._flush()

    def _serialise(self) -> bytes:
        if self.format == "jsonl":
            lines = (
                json.dumps(
                    item.fields,
                    sort_keys=True,
                    ensure_ascii=False,
                    separators=(",", ":"),
                    default=_json_default,
                )
                for item in self._buffer
            )
            return "\n".join(lines).encode("utf-8")
        records = [
            {
                "Fields": dict(sorted(item.fields.items())),
                "URL": item.url,
                "SpiderName": item.spider_name,
                "Timestamp": item.timestamp,
                "Depth": item.depth,
                "Checksum": item.checksum,
            }
            for item in self._buffer
        ]
        return json.dumps(records, indent=2, ensure_ascii=False, default=_json_default).encode("utf-8")

    def _flush(self) -> None:
        if not self._buffer:
            return
        self.batch_count += 1
        key = f"{self.prefix}{date.today().isoformat()}/batch-{self.batch_count:04d}.{self.format}"
        data = self._serialise()
        self._log.info(
            "S3 upload: bucket=%s key=%s items=%d size_bytes=%d",
            self.bucket,
            key,
            len(self._buffer),
            len(data),
        )
        local_dir = self.fallback_root / "s3-fallback" / self.bucket
        try:
            local_dir.mkdir(parents=True, exist_ok=True)
            (local_dir / Path(key).name).write_bytes(data)
        except OSError as exc:
            self._log.warning("S3 fallback write failed: dir=%s error=%s", local_dir, exc)
        self._buffer = []

    def close(self) -> None:
        with self._lock:
            self._flush()


class KafkaPublisherPlugin(_StoragePlugin):
    """Publishes each item as a JSON message on a topic."""

    name = "scrapegoat-kafka"

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.brokers: list[str] = []
        self.topic = ""
        self.published = 0
        self._lock = threading.Lock()
        self._log = logger or _LOG

    def init(self, cfg: Mapping[str, Any] | None) -> None:
        cfg = cfg or {}
        brokers = cfg.get("brokers")
        if isinstance(brokers, str):
            self.brokers = brokers.split(",")
        topic = cfg.get("topic")
        if isinstance(topic, str):
            self.topic = topic
        self.topic = self.topic or "scrapegoat-items"
        if not self.brokers:
            self.brokers = ["localhost:9092"]
        self._log.info("Kafka plugin initialized: brokers=%s topic=%s", self.brokers, self.topic)

    def store(self, items: Iterable[Item]) -> None:
        with self._lock:
            for item in items:
                message = json.dumps(
                    {
                        "fields": item.fields,
                        "scraped_at": item.timestamp,
                        "spider": item.spider_name,
                        "url": item.url,
                    },
                    sort_keys=True,
                    separators=(",", ":"),
                    default=_json_default,
                )
                self._log.debug(
                    "Kafka publish: topic=%s key=%s size_bytes=%d",
                    self.topic,
                    item.url,
                    len(message.encode("utf-8")),
                )
                self.published += 1

    def close(self) -> None:
        self._log.info("Kafka plugin closed: total_published=%d", self.published)


class PostgresStoragePlugin(_StoragePlugin):
    """Buffers items and inserts them into a table in batches."""

    name = "scrapegoat-postgres"

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.dsn = ""
        self.table = ""
        self.batch_size = 0
        self.inserted = 0
        self._buffer: list[Item] = []
        self._lock = threading.Lock()
        self._log = logger or _LOG

    def init(self, cfg: Mapping[str, Any] | None) -> None:
        cfg = cfg or {}
        dsn = cfg.get("dsn")
        if isinstance(dsn, str):
            self.dsn = dsn
        table = cfg.get("table")
        if isinstance(table, str):
            self.table = table
        batch_size = _number(cfg.get("batch_size"))
        if batch_size is not None:
            self.batch_size = batch_size
        self.dsn = self.dsn or "postgres://localhost:5432/scrapegoat?sslmode=disable"
        self.table = self.table or "scraped_items"
        if self.batch_size == 0:
            self.batch_size = 50
        self._log.info(
            "PostgreSQL plugin initialized: dsn=%s table=%s batch_size=%d",
            mask_dsn(self.dsn),
            self.table,
            self.batch_size,
        )

    def store(self, items: Iterable[Item]) -> None:
        with self._lock:
            self._buffer.extend(items)
            if len(self._buffer) >= self.batch_size:
                self._flush()

    def _flush(self) -> None:
        if not self._buffer:
            return
        for item in self._buffer:
            self._log.debug(
                "PostgreSQL insert: table=%s url=%s fields_count=%d",
                self.table,
                item.url,
                len(item.fields),
            )
            self.inserted += 1
        self._log.info(
            "PostgreSQL batch insert: table=%s items=%d total_inserted=%d",
            self.table,
            len(self._buffer),
            self.inserted,
        )
        self._buffer = []

    def close(self) -> None:
        with self._lock:
            self._flush()
        self._log.info("PostgreSQL plugin closed: total_inserted=%d", self.inserted)


def register_builtin_plugins(registry: Registry, logger: logging.Logger | None = None) -> None:
    """Register the S3, Kafka and PostgreSQL plugins with ``registry``."""
    plugins: list[Plugin] = [
        S3StoragePlugin(logger),
        KafkaPublisherPlugin(logger),
        PostgresStoragePlugin(logger),
    ]
    for plugin in plugins:
        try:
            registry.register(plugin)
        except ValueError as exc:
            raise ValueError(f"register {plugin.name}: {exc}") from exc