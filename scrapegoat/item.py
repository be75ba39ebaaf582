"""Scraped data records."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any


def _now() -> datetime:
    return datetime.now().astimezone()


def _rfc3339(moment: datetime, fractional: bool = False) -> str:
    """Format a timestamp as RFC 3339, optionally with trimmed fractional seconds."""
    if moment.tzinfo is None:
        moment = moment.astimezone()
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if fractional and moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if not offset:
        return text + "Z"
    minutes_total = int(offset.total_seconds() // 60)
    sign = "+" if minutes_total >= 0 else "-"
    hours, minutes = divmod(abs(minutes_total), 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


def _json_default(value: Any) -> Any:
    """Encode values the json module does not know natively."""
    if isinstance(value, datetime):
        return _rfc3339(value, fractional=True)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def _compact_json(value: Any) -> str:
    return json.dumps(value, default=_json_default, ensure_ascii=False, separators=(",", ":"))


@dataclass
class Item:
    """A single scraped record: named fields plus provenance."""

    url: str = ""
    fields: dict[str, Any] = field(default_factory=dict)
    spider_name: str = ""
    timestamp: datetime = field(default_factory=_now)
    depth: int = 0
    checksum: str = ""

    def set(self, key: str, value: Any) -> None:
        self.fields[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def get_string(self, key: str) -> str:
        """Return the field if it is a string, else an empty string."""
        value = self.fields.get(key)
        return value if isinstance(value, str) else ""

    def has(self, key: str) -> bool:
        return key in self.fields

    def delete(self, key: str) -> None:
        self.fields.pop(key, None)

    def keys(self) -> list[str]:
        return list(self.fields)

    def to_json(self) -> str:
        """Serialise the item, its fields and metadata, as compact JSON."""
        payload: dict[str, Any] = {
            "fields": dict(sorted(self.fields.items())),
            "url": self.url,
        }
        if self.spider_name:
            payload["spider_name"] = self.spider_name
        payload["timestamp"] = self.timestamp
        payload["depth"] = self.depth
        return _compact_json(payload)

    def to_flat_map(self) -> dict[str, str]:
        """Flatten into string values suitable for CSV export."""
        flat = {
            "_url": self.url,
            "_spider": self.spider_name,
            "_timestamp": _rfc3339(self.timestamp),
        }
        for key, value in self.fields.items():
            if isinstance(value, str):
                flat[key] = value
            elif isinstance(value, (bytes, bytearray)):
                flat[key] = bytes(value).decode("utf-8", errors="replace")
            else:
                flat[key] = _compact_json(value)
        return flat

    def clone(self) -> Item:
        """Copy the item; the field mapping is new, its values are shared."""
        return replace(self, fields=dict(self.fields))