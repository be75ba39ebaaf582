"""Tracking of elements across page changes by several matching strategies."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag

from ..errors import EmptyResponse, InvalidURL, ParseError
from ..response import Response
from .autoselector import _attr, _select, build_element_path, css_escape

_LOG = logging.getLogger(__name__)


@dataclass
class _Snapshot:
    tag: str
    element_id: str
    classes: list[str]
    text: str
    attributes: dict[str, str]
    path: str
    selector: str


@dataclass
class SimilarElement:
    """An element found by similarity, scored from 0 to 1."""

    selector: str
    text: str
    similarity: float
    tag: str


def _attributes(element: Tag) -> dict[str, str]:
    return {
        key: " ".join(value) if isinstance(value, list) else value
        for key, value in element.attrs.items()
    }


def truncate(s: str, max_len: int) -> str:
    """Shorten ``s`` to ``max_len`` characters, ending with an ellipsis."""
    if len(s) <= max_len:
        return s
    return s[: max_len - 3] + "..."


def text_similarity(a: str, b: str) -> float:
    """Jaccard similarity of the lower-cased words of two texts."""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    a_words = set(a.lower().split())
    b_words = set(b.lower().split())
    if not a_words or not b_words:
        return 0.0
    union = a_words | b_words
    return len(a_words & b_words) / len(union)


def set_overlap(a: Sequence[str], b: Sequence[str]) -> float:
    """Jaccard similarity of two string lists; two empty lists are identical."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    a_set = set(a)
    intersection = sum(1 for s in b if s in a_set)
    return intersection / (len(a) + len(b) - intersection)


def map_overlap(a: dict[str, str], b: dict[str, str]) -> float:
    """Share of equal key/value pairs, relative to the larger mapping."""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    matching = sum(1 for key, value in a.items() if key in b and b[key] == value)
    return matching / max(len(a), len(b))


def _similarity(
    element: Tag, ref_tag: str, ref_classes: list[str], ref_text: str, ref_attrs: dict[str, str]
) -> float:
    if element.name != ref_tag:
        return 0.0
    classes = (_attr(element, "class") or "").split()
    return (
        set_overlap(ref_classes, classes) * 0.3
        + text_similarity(ref_text, element.get_text().strip()) * 0.3
        + map_overlap(ref_attrs, _attributes(element)) * 0.2
    )


class SmartTracker:
    """Remembers elements by name and finds them again on changed pages."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or _LOG
        self._snapshots: dict[str, _Snapshot] = field(default_factory=dict) if False else {}

    def take_snapshot(self, response: Response, selector: str, name: str) -> None:
        """Record the first element matching ``selector`` under ``name``.

        Raises ParseError if nothing matches.
        """
        doc = response.document()
        matches = _select(doc, selector)
        if not matches:
            raise ParseError(response.request.url, EmptyResponse(), selector)
        element = matches[0]
        snapshot = _Snapshot(
            tag=element.name or "",
            element_id=_attr(element, "id") or "",
            classes=(_attr(element, "class") or "").split(),
            text=element.get_text().strip(),
            attributes=_attributes(element),
            path=build_element_path(element, 5),
            selector=selector,
        )
        self._snapshots[name] = snapshot
        self._log.debug(
            "snapshot taken: name=%s selector=%s tag=%s", name, selector, snapshot.tag
        )

    def relocate(self, response: Response, name: str) -> tuple[str, Tag]:
        """Find a recorded element again; return the selector used and the element.

        Tries the original selector, the id, data attributes, the class
        combination, the element path and finally text similarity.
        Raises ParseError if the name is unknown or nothing is found.
        """
        snapshot = self._snapshots.get(name)
        if snapshot is None:
            raise ParseError(response.request.url, InvalidURL())
        doc = response.document()

        for strategy, selector in self._candidate_selectors(snapshot):
            matches = _select(doc, selector)
            if len(matches) == 1:
                self._log.debug("relocated via %s: name=%s", strategy, name)
                return selector, matches[0]

        if snapshot.text:
            selector, element, score = self._best_text_match(doc, snapshot)
            if element is not None and score > 0.7:
                self._log.debug(
                    "relocated via text similarity: name=%s score=%s selector=%s",
                    name,
                    score,
                    selector,
                )
                return selector, element

        raise ParseError(response.request.url, EmptyResponse(), snapshot.selector)

    @staticmethod
    def _candidate_selectors(snapshot: _Snapshot):
        yield "original selector", snapshot.selector
        if snapshot.element_id:
            yield "ID", "#" + css_escape(snapshot.element_id)
        for attr, value in snapshot.attributes.items():
            if attr.startswith("data-") or attr in ("name", "aria-label"):
                yield "data attribute", f'{snapshot.tag}[{attr}="{value}"]'
        if snapshot.classes:
            yield "classes", snapshot.tag + "".join("." + css_escape(c) for c in snapshot.classes)
        if snapshot.path:
            yield "path", snapshot.path

    @staticmethod
    def _best_text_match(
        doc: BeautifulSoup, snapshot: _Snapshot
    ) -> tuple[str, Tag | None, float]:
        best_selector, best_element, best_score = "", None, 0.0
        for element in doc.find_all(snapshot.tag):
            score = text_similarity(snapshot.text, element.get_text().strip())
            if score > best_score:
                best_selector = build_element_path(element, 3)
                best_element = element
                best_score = score
        return best_selector, best_element, best_score

    def find_similar(
        self, response: Response, selector: str, max_results: int
    ) -> list[SimilarElement]:
        """Return elements resembling the first match of ``selector``, most similar first."""
        doc = response.document()
        matches = _select(doc, selector)
        if not matches:
            return []
        reference = matches[0]
        ref_tag = reference.name or ""
        ref_classes = (_attr(reference, "class") or "").split()
        ref_text = reference.get_text().strip()
        ref_attrs = _attributes(reference)

        results = []
        for element in doc.find_all(ref_tag):
            if element is reference:
                continue
            score = _similarity(element, ref_tag, ref_classes, ref_text, ref_attrs)
            if score > 0.3:
                results.append(
                    SimilarElement(
                        selector=build_element_path(element, 3),
                        text=truncate(element.get_text().strip(), 100),
                        similarity=score,
                        tag=ref_tag,
                    )
                )
        results.sort(key=lambda r: -r.similarity)
        return results[:max_results]