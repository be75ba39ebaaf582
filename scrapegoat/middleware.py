"""Additional middleware: cleaning, normalising, validating and redacting fields."""

from __future__ import annotations

import html
import logging
import re
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from .item import Item, _rfc3339
from .pipeline import Middleware

_LOG = logging.getLogger(__name__)


class HTMLSanitizeMiddleware(Middleware):
    """Strips tags, decodes entities and collapses whitespace in string fields."""

    name = "html_sanitize"
    _TAG = re.compile(r"<[^>]*>")

    def process(self, item: Item) -> Item | None:
        for key in item.keys():
            text = item.get_string(key)
            if text:
                cleaned = html.unescape(self._TAG.sub("", text))
                item.set(key, " ".join(cleaned.split()))
        return item


_RFC3339 = re.compile(
    r"(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})"
)


def _parse_rfc3339(text: str) -> datetime:
    match = _RFC3339.fullmatch(text)
    if match is None:
        raise ValueError(f"not RFC 3339: {text!r}")
    stamp, fraction, zone = match.groups()
    moment = datetime.strptime(stamp, "%Y-%m-%dT%H:%M:%S")
    if fraction:
        moment = moment.replace(microsecond=int(fraction[:6].ljust(6, "0")))
    if zone == "Z":
        tz = timezone.utc
    else:
        sign = -1 if zone[0] == "-" else 1
        hours, minutes = int(zone[1:3]), int(zone[4:6])
        if hours > 23 or minutes > 59:
            raise ValueError(f"bad offset: {zone!r}")
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    return moment.replace(tzinfo=tz)


def _strptime(fmt: str) -> Callable[[str], datetime]:
    def parse(text: str) -> datetime:
        moment = datetime.strptime(text, fmt)
        return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)

    return parse


def _strptime_zone_name(fmt: str) -> Callable[[str], datetime]:
    """Parse a format followed by a zone abbreviation, taken as zero offset."""

    def parse(text: str) -> datetime:
        head, _, zone = text.rpartition(" ")
        if not (zone.isalpha() and zone.isupper()):
            raise ValueError(f"bad zone name: {zone!r}")
        return datetime.strptime(head, fmt).replace(tzinfo=timezone.utc)

    return parse


_DATE_PARSERS: list[Callable[[str], datetime]] = [
    _parse_rfc3339,
    _strptime_zone_name("%a, %d %b %Y %H:%M:%S"),
    _strptime("%a, %d %b %Y %H:%M:%S %z"),
    _strptime_zone_name("%d %b %y %H:%M"),
    _strptime("%d %b %y %H:%M %z"),
    _strptime("%Y-%m-%d"),
    _strptime("%Y-%m-%dT%H:%M:%S"),
    _strptime("%Y-%m-%d %H:%M:%S"),
    _strptime("%m/%d/%Y"),
    _strptime("%d/%m/%Y"),
    _strptime("%B %d, %Y"),
    _strptime("%b %d, %Y"),
    _strptime("%d %B %Y"),
    _strptime("%d %b %Y"),
    _strptime("%a, %d %b %Y"),
    _strptime("%d-%b-%Y"),
    _strptime("%Y/%m/%d"),
    _strptime("%m-%d-%Y"),
    _strptime("%a %b %d %H:%M:%S %Y"),
]


def _parse_date(text: str) -> datetime | None:
    for parse in _DATE_PARSERS:
        try:
            return parse(text)
        except ValueError:
            continue
    return None


class DateNormalizeMiddleware(Middleware):
    """Rewrites recognised dates in a standard format.

    ``out_format`` is a ``strftime`` pattern; when omitted, RFC 3339 is used.
    Unrecognised values are left untouched.
    """

    name = "date_normalize"

    def __init__(self, fields: Iterable[str], out_format: str | None = None) -> None:
        self.fields = list(fields)
        self.out_format = out_format or None

    def _format(self, moment: datetime) -> str:
        if self.out_format is None:
            return _rfc3339(moment)
        return moment.strftime(self.out_format)

    def process(self, item: Item) -> Item | None:
        for key in self.fields:
            text = item.get_string(key)
            if not text:
                continue
            moment = _parse_date(text.strip())
            if moment is not None:
                item.set(key, self._format(moment))
        return item


class CurrencyNormalizeMiddleware(Middleware):
    """Reduces currency strings to a plain decimal number string."""

    name = "currency_normalize"
    _STRIP = re.compile(r"[^0-9.,\-]")

    def __init__(self, fields: Iterable[str]) -> None:
        self.fields = list(fields)

    def process(self, item: Item) -> Item | None:
        for key in self.fields:
            text = item.get_string(key)
            if not text:
                continue
            numeric = self._STRIP.sub("", text)
            if "," in numeric:
                if numeric.rfind(",") > numeric.rfind("."):
                    numeric = numeric.replace(".", "").replace(",", ".", 1)
                else:
                    numeric = numeric.replace(",", "")
            item.set(key, numeric)
        return item


_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def _display(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _to_int(text: str) -> int:
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def _to_float(text: str) -> float:
    match = _FLOAT_PREFIX.match(text)
    return float(match.group(1)) if match else 0.0


class TypeCoercionMiddleware(Middleware):
    """Converts fields to "int", "float", "bool" or "string"."""

    name = "type_coercion"

    def __init__(self, coercions: Mapping[str, str]) -> None:
        self.coercions = dict(coercions)

    def process(self, item: Item) -> Item | None:
        for key, target in self.coercions.items():
            if not item.has(key):
                continue
            text = _display(item.get(key))
            if target == "int":
                item.set(key, _to_int(text))
            elif target == "float":
                item.set(key, _to_float(text))
            elif target == "bool":
                item.set(key, text.lower() in ("true", "1", "yes"))
            elif target == "string":
                item.set(key, text)
        return item


_PII_PATTERNS: dict[str, re.Pattern[str]] = {
    "email": re.compile(r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}", re.ASCII),
    "phone_us": re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b", re.ASCII),
    "phone_intl": re.compile(r"\+\d{1,3}[-.\s]?\(?\d{1,4}\)?[-.\s]?\d{1,4}[-.\s]?\d{1,9}", re.ASCII),
    "ssn": re.compile(r"\b\d{3}-\d{2}-\d{4}\b", re.ASCII),
    "credit_card": re.compile(r"\b(?:\d{4}[-\s]?){3}\d{4}\b", re.ASCII),
    "ip_v4": re.compile(r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b", re.ASCII),
}


class PIIRedactMiddleware(Middleware):
    """Replaces personal data in string fields with ``[REDACTED_<TYPE>]``."""

    name = "pii_redact"

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.patterns = dict(_PII_PATTERNS)
        self._log = logger or _LOG

    def process(self, item: Item) -> Item | None:
        for key in item.keys():
            text = item.get_string(key)
            if not text:
                continue
            for pii_type, pattern in self.patterns.items():
                if pattern.search(text):
                    text = pattern.sub(f"[REDACTED_{pii_type.upper()}]", text)
                    self._log.debug("PII redacted: field=%s type=%s", key, pii_type)
            item.set(key, text)
        return item


class FieldValidateMiddleware(Middleware):
    """Checks fields against regular expressions.

    Invalid fields are removed, or the whole item is dropped when
    ``drop_invalid`` is set.
    """

    name = "field_validate"

    def __init__(self, patterns: Mapping[str, str], drop_invalid: bool = False) -> None:
        compiled: dict[str, re.Pattern[str]] = {}
        for key, pattern in patterns.items():
            try:
                compiled[key] = re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"invalid validation regex for {key!r}: {exc}") from exc
        self.validations = compiled
        self.drop_invalid = drop_invalid

    def process(self, item: Item) -> Item | None:
        for key, pattern in self.validations.items():
            text = item.get_string(key)
            if not text:
                continue
            if pattern.search(text) is None:
                if self.drop_invalid:
                    return None
                item.delete(key)
        return item


class WordCountMiddleware(Middleware):
    """Adds ``<field>_word_count`` for each listed text field."""

    name = "word_count"
    suffix = "_word_count"

    def __init__(self, fields: Iterable[str]) -> None:
        self.fields = list(fields)

    def process(self, item: Item) -> Item | None:
        for key in self.fields:
            text = item.get_string(key)
            if text:
                item.set(key + self.suffix, len(text.split()))
        return item