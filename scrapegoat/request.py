"""Requests queued for fetching."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import IntEnum
from typing import Any
from urllib.parse import urlsplit

from .errors import InvalidURL


class Priority(IntEnum):
    """Scheduling priority; lower values are fetched first."""

    HIGHEST = 0
    HIGH = 1
    NORMAL = 2
    LOW = 3
    LOWEST = 4


_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def _validate_url(raw_url: str) -> None:
    if _CONTROL_CHARS.search(raw_url):
        raise InvalidURL(f"invalid URL {raw_url!r}: invalid control character in URL")
    try:
        parts = urlsplit(raw_url)
        parts.port  # noqa: B018 - raises on a malformed port
    except ValueError as exc:
        raise InvalidURL(f"invalid URL {raw_url!r}: {exc}") from exc


@dataclass
class Request:
    """A URL to fetch, with scheduling and retry metadata."""

    url: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    depth: int = 0
    priority: int = Priority.NORMAL
    max_retries: int = 3
    retry_count: int = 0
    timeout: float | None = None
    meta: dict[str, Any] = field(default_factory=dict)
    tag: str = ""
    fetcher_type: str = "http"
    callbacks: list[str] = field(default_factory=list)
    parent_url: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now().astimezone())
    id: str = ""

    def __post_init__(self) -> None:
        _validate_url(self.url)
        if not self.id:
            self.id = f"{self.url}-{time.time_ns()}"

    def domain(self) -> str:
        """Return the host name of the URL, without port or brackets."""
        host = urlsplit(self.url).netloc.rpartition("@")[2]
        if host.startswith("["):
            return host[1:].partition("]")[0]
        return host.partition(":")[0]

    def clone(self) -> Request:
        """Copy the request with independent headers, meta and callbacks."""
        return replace(
            self,
            headers=dict(self.headers),
            meta=dict(self.meta),
            callbacks=list(self.callbacks),
        )