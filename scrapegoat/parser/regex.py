"""Regular-expression extraction over the raw response body."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence

from ..errors import ParseError
from ..item import Item
from ..response import Response
from .base import ParseRule, Parser

_LOG = logging.getLogger(__name__)


class _PartialParseError(ParseError):
    """Some rules failed; ``items`` holds what the other rules produced."""

    def __init__(self, url: str, cause: BaseException, items: list[Item]) -> None:
        super().__init__(url, cause)
        self.items = items


class RegexParser(Parser):
    """Extracts fields with regular expressions; compiled patterns are cached.

    With named groups, every non-empty named group of every match is taken;
    with unnamed groups, the first group; otherwise the whole match.
    Invalid patterns raise ParseError once all rules are applied; the error's
    ``items`` attribute holds the items from the valid rules.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or _LOG
        self._cache: dict[str, re.Pattern[str]] = {}

    def parse(
        self, response: Response, rules: Sequence[ParseRule]
    ) -> tuple[list[Item], list[str]]:
        body = response.body.decode("utf-8", errors="replace")
        item = Item(url=response.request.url)
        errors = []

        for rule in rules:
            if rule.type != "regex":
                continue
            try:
                pattern = self._compile(rule.pattern)
            except ValueError as exc:
                errors.append(f"rule {json.dumps(rule.name)}: {exc}")
                continue
            values = _extract(pattern, body)
            if len(values) == 1:
                item.set(rule.name, values[0])
            elif values:
                item.set(rule.name, values)

        items = [item] if item.fields else []
        if errors:
            raise _PartialParseError(
                response.request.url, ValueError("regex errors: " + "; ".join(errors)), items
            )
        return items, []

    def _compile(self, pattern: str) -> re.Pattern[str]:
        compiled = self._cache.get(pattern)
        if compiled is None:
            try:
                compiled = re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"invalid regex {json.dumps(pattern)}: {exc}") from exc
            self._cache[pattern] = compiled
        return compiled


def _extract(pattern: re.Pattern[str], body: str) -> list[str]:
    if pattern.groupindex:
        names = [name for name, _ in sorted(pattern.groupindex.items(), key=lambda kv: kv[1])]
        return [
            value
            for match in pattern.finditer(body)
            for value in (match.group(name) for name in names)
            if value
        ]
    if pattern.groups:
        return [match.group(1) or "" for match in pattern.finditer(body)]
    return [match.group(0) for match in pattern.finditer(body)]