"""Storage backends that persist scraped items."""

from __future__ import annotations

import csv
import json
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from .errors import StorageError
from .item import Item, _json_default

_LOG = logging.getLogger(__name__)


class Storage(ABC):
    """A destination for batches of items; usable as a context manager."""

    name: str = ""

    @abstractmethod
    def store(self, items: Iterable[Item]) -> None:
        """Persist a batch of items."""

    @abstractmethod
    def close(self) -> None:
        """Flush pending writes and release resources."""

    def __enter__(self) -> Storage:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _record(item: Item) -> dict[str, Any]:
    entry: dict[str, Any] = {"_url": item.url, "_timestamp": item.timestamp}
    if item.spider_name:
        entry["_spider"] = item.spider_name
    entry.update(item.fields)
    return entry


def _ensure_parent(backend: str, path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StorageError(backend, exc) from exc


class JSONStorage(Storage):
    """Buffers items and writes them as one JSON array on close."""

    name = "json"

    def __init__(self, output_path: str | Path, logger: logging.Logger | None = None) -> None:
        self.path = Path(output_path)
        _ensure_parent(self.name, self.path)
        self._items: list[Item] = []
        self._lock = threading.Lock()
        self._log = logger or _LOG

    def store(self, items: Iterable[Item]) -> None:
        with self._lock:
            batch = list(items)
            self._items.extend(batch)
            self._log.debug("items buffered: count=%d total=%d", len(batch), len(self._items))

    def close(self) -> None:
        with self._lock:
            output = [_record(item) for item in self._items]
            try:
                with self.path.open("w", encoding="utf-8") as fh:
                    json.dump(
                        output, fh, indent=2, sort_keys=True, ensure_ascii=False, default=_json_default
                    )
                    fh.write("\n")
            except OSError as exc:
                raise StorageError(self.name, exc) from exc
            self._log.info("JSON written: path=%s items=%d", self.path, len(self._items))


class JSONLStorage(Storage):
    """Streams items as one JSON object per line."""

    name = "jsonl"

    def __init__(self, output_path: str | Path, logger: logging.Logger | None = None) -> None:
        self.path = Path(output_path)
        _ensure_parent(self.name, self.path)
        try:
            self._file = self.path.open("w", encoding="utf-8")
        except OSError as exc:
            raise StorageError(self.name, exc) from exc
        self._lock = threading.Lock()
        self._count = 0
        self._log = logger or _LOG

    def store(self, items: Iterable[Item]) -> None:
        with self._lock:
            for item in items:
                line = json.dumps(
                    _record(item),
                    sort_keys=True,
                    ensure_ascii=False,
                    separators=(",", ":"),
                    default=_json_default,
                )
                self._file.write(line + "\n")
                self._count += 1
            self._file.flush()

    def close(self) -> None:
        self._log.info("JSONL written: path=%s items=%d", self.path, self._count)
        if not self._file.closed:
            self._file.close()


class CSVStorage(Storage):
    """Writes items as CSV rows; the first item fixes the columns."""

    name = "csv"

    def __init__(self, output_path: str | Path, logger: logging.Logger | None = None) -> None:
        self.path = Path(output_path)
        _ensure_parent(self.name, self.path)
        try:
            self._file = self.path.open("w", encoding="utf-8", newline="")
        except OSError as exc:
            raise StorageError(self.name, exc) from exc
        self._writer = csv.writer(self._file, lineterminator="\n")
        self._headers: list[str] | None = None
        self._lock = threading.Lock()
        self._count = 0
        self._log = logger or _LOG

    def store(self, items: Iterable[Item]) -> None:
        with self._lock:
            for item in items:
                flat = item.to_flat_map()
                if self._headers is None:
                    self._headers = sorted(flat)
                    self._writer.writerow(self._headers)
                self._writer.writerow([flat.get(header, "") for header in self._headers])
                self._count += 1
            self._file.flush()

    def close(self) -> None:
        self._log.info("CSV written: path=%s items=%d", self.path, self._count)
        if not self._file.closed:
            self._file.close()


class MongoStorage(Storage):
    """Inserts items into a MongoDB collection."""

    name = "mongodb"

    def __init__(
        self,
        uri: str,
        database: str,
        collection: str,
        logger: logging.Logger | None = None,
        *,
        client: Any = None,
    ) -> None:
        self._log = logger or _LOG
        try:
            if client is None:
                client = MongoClient(uri, serverSelectionTimeoutMS=10_000)
            client.admin.command("ping")
        except PyMongoError as exc:
            raise StorageError(self.name, exc) from exc
        self._client = client
        self._collection = client[database][collection]
        self._lock = threading.Lock()
        self._count = 0

    def store(self, items: Iterable[Item]) -> None:
        with self._lock:
            docs = []
            for item in items:
                doc: dict[str, Any] = {
                    "_source_url": item.url,
                    "_timestamp": item.timestamp,
                    "_spider": item.spider_name,
                }
                doc.update(item.fields)
                docs.append(doc)
            try:
                self._collection.insert_many(docs)
            except (PyMongoError, TypeError) as exc:
                raise StorageError(self.name, exc) from exc
            self._count += len(docs)
            self._log.debug("items stored in mongodb: count=%d total=%d", len(docs), self._count)

    def close(self) -> None:
        self._log.info("mongodb storage closing: total_items=%d", self._count)
        try:
            self._client.close()
        except PyMongoError as exc:
            raise StorageError(self.name, exc) from exc


class MultiStorage(Storage):
    """Fans each batch out to several backends."""

    name = "multi"

    def __init__(self, backends: Sequence[Storage], logger: logging.Logger | None = None) -> None:
        self.backends = list(backends)
        self._log = logger or _LOG

    def store(self, items: Iterable[Item]) -> None:
        batch = list(items)
        first_error: Exception | None = None
        for backend in self.backends:
            try:
                backend.store(batch)
            except Exception as exc:
                self._log.error("backend store failed: backend=%s error=%s", backend.name, exc)
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error

    def close(self) -> None:
        first_error: Exception | None = None
        for backend in self.backends:
            try:
                backend.close()
            except Exception as exc:
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error


_FILE_BACKENDS: dict[str, tuple[type[Storage], str]] = {
    "json": (JSONStorage, "results.json"),
    "jsonl": (JSONLStorage, "results.jsonl"),
    "csv": (CSVStorage, "results.csv"),
}


def new_file_storage(
    storage_type: str, output_dir: str | Path, logger: logging.Logger | None = None
) -> Storage:
    """Create the file backend for ``storage_type`` inside ``output_dir``."""
    try:
        cls, filename = _FILE_BACKENDS[storage_type]
    except KeyError:
        raise ValueError(f"unsupported storage type: {storage_type}") from None
    return cls(Path(output_dir) / filename, logger)