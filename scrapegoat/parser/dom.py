"""Parent, child and sibling navigation over a response's DOM."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from bs4 import Tag

from ..response import Response
from .autoselector import _children, _parent, _select

_LOG = logging.getLogger(__name__)


@dataclass
class TraversalResult:
    """An element reached by traversal; empty fields mean no element."""

    text: str = ""
    html: str = ""
    attribute: str = ""
    tag: str = ""
    children: list[TraversalResult] = field(default_factory=list)


def _to_result(element: Tag | None) -> TraversalResult:
    if element is None:
        return TraversalResult()
    return TraversalResult(
        text=element.get_text().strip(),
        html=element.decode_contents(),
        tag=element.name or "",
    )


def _siblings(element: Tag, direction: str) -> list[Tag]:
    if direction == "next":
        sibling = element.find_next_sibling()
        return [sibling] if sibling is not None else []
    if direction == "prev":
        sibling = element.find_previous_sibling()
        return [sibling] if sibling is not None else []
    if direction == "all-next":
        return list(element.find_next_siblings())
    if direction == "all-prev":
        return list(element.find_previous_siblings())
    parent = element.parent
    if parent is None:
        return []
    return [c for c in parent.children if isinstance(c, Tag) and c is not element]


class DOMTraverser:
    """Navigates from matched elements to related elements."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or _LOG

    def find_parent(self, response: Response, selector: str, levels: int) -> list[TraversalResult]:
        """Return the ancestor ``levels`` steps up from each match."""
        results = []
        for element in _select(response.document(), selector):
            current: Tag | None = element
            for _ in range(levels):
                current = _parent(current)
            results.append(_to_result(current))
        return results

    def find_children(
        self, response: Response, selector: str, child_selector: str
    ) -> list[TraversalResult]:
        """Return each match with its children.

        With ``child_selector``, the children are the matching descendants;
        otherwise they are the direct child elements.
        """
        results = []
        for element in _select(response.document(), selector):
            if child_selector:
                children = _select(element, child_selector)
            else:
                children = _children(element)
            result = _to_result(element)
            result.children = [_to_result(child) for child in children]
            results.append(result)
        return results

    def find_siblings(
        self, response: Response, selector: str, direction: str
    ) -> list[TraversalResult]:
        """Return siblings of each match.

        ``direction`` is "next", "prev", "all-next", "all-prev", or anything
        else for all siblings.
        """
        return [
            _to_result(sibling)
            for element in _select(response.document(), selector)
            for sibling in _siblings(element, direction)
        ]

    def find_closest(
        self, response: Response, start_selector: str, ancestor_selector: str
    ) -> list[TraversalResult]:
        """Return the nearest element, itself included, matching ``ancestor_selector``."""
        doc = response.document()
        candidates = {id(tag) for tag in _select(doc, ancestor_selector)}
        results = []
        for element in _select(doc, start_selector):
            current: Tag | None = element
            while current is not None and id(current) not in candidates:
                current = _parent(current)
            if current is not None:
                results.append(_to_result(current))
        return results

    def extract_table(self, response: Response, table_selector: str) -> list[list[str]]:
        """Return the cell texts of the first matching table, row by row."""
        tables = _select(response.document(), table_selector)
        if not tables:
            return []
        rows = []
        for row in tables[0].select("tr"):
            cells = [cell.get_text().strip() for cell in row.select("td, th")]
            if cells:
                rows.append(cells)
        return rows

    def extract_list(self, response: Response, list_selector: str) -> list[str]:
        """Return the texts of the ``li`` elements inside the matching lists."""
        seen: dict[int, Tag] = {}
        for container in _select(response.document(), list_selector):
            for li in container.select("li"):
                seen.setdefault(id(li), li)
        return [li.get_text().strip() for li in seen.values()]