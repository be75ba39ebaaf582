"""Parse rules and the interface every parser implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from ..item import Item
from ..response import Response


@dataclass(frozen=True)
class ParseRule:
    """One extraction rule.

    ``type`` is "css" (also the meaning of an empty type), "xpath" or "regex".
    CSS and XPath rules use ``selector``; regex rules use ``pattern``.
    ``attribute`` picks what is taken from a matched element: text (default),
    "html"/"innerHTML", "outerHTML", or the name of an attribute.
    """

    name: str
    type: str = ""
    selector: str = ""
    pattern: str = ""
    attribute: str = ""


class Parser(ABC):
    """Extracts items and follow-up links from a response."""

    @abstractmethod
    def parse(
        self, response: Response, rules: Sequence[ParseRule]
    ) -> tuple[list[Item], list[str]]:
        """Return the scraped items and the discovered links."""