"""Automatic generation of CSS selectors for page elements."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

from ..response import Response

_LOG = logging.getLogger(__name__)

_ESCAPES = str.maketrans(
    {
        ":": r"\:",
        ".": r"\.",
        "[": r"\[",
        "]": r"\]",
        "(": r"\(",
        ")": r"\)",
        "/": r"\/",
        " ": r"\ ",
    }
)

_DATA_ATTRIBUTES = (
    "data-testid",
    "data-id",
    "data-name",
    "data-type",
    "role",
    "aria-label",
    "name",
)


def _attr(tag: Tag | None, name: str) -> str | None:
    """Return an attribute as a plain string, or None if it is absent."""
    if tag is None:
        return None
    value = tag.get(name)
    if value is None:
        return None
    return " ".join(value) if isinstance(value, list) else value


def _parent(tag: Tag | None) -> Tag | None:
    """Return the parent element, or None at the top of the document."""
    if tag is None:
        return None
    parent = tag.parent
    if parent is None or isinstance(parent, BeautifulSoup):
        return None
    return parent


def _children(tag: Tag) -> list[Tag]:
    return [child for child in tag.children if isinstance(child, Tag)]


def _select(root: Tag, selector: str) -> list[Tag]:
    """Select matching elements; an invalid selector matches nothing."""
    try:
        return root.select(selector)
    except Exception:
        return []


def css_escape(s: str) -> str:
    """Escape characters that have a meaning in CSS selectors."""
    return s.translate(_ESCAPES)


def build_element_path(element: Tag | None, max_depth: int) -> str:
    """Build a ``parent > child`` path of at most ``max_depth`` steps.

    The walk stops at ``html``/``body`` and at the first ancestor with an id.
    """
    parts: list[str] = []
    current = element
    for _ in range(max_depth):
        tag = current.name if current is not None else ""
        if not tag or tag in ("html", "body"):
            break
        element_id = _attr(current, "id")
        if element_id:
            parts.insert(0, "#" + css_escape(element_id))
            break
        part = tag
        classes = (_attr(current, "class") or "").split()
        if classes:
            part += "." + css_escape(classes[0])
        parts.insert(0, part)
        current = _parent(current)
    return " > ".join(parts)


@dataclass
class SelectorCandidate:
    """A generated selector with how specific it is and how well it matched."""

    selector: str
    specificity: int
    match_count: int = 0
    score: float = 0.0


def _candidates_for(element: Tag) -> list[SelectorCandidate]:
    tag = element.name or ""
    candidates: list[SelectorCandidate] = []

    element_id = _attr(element, "id")
    if element_id:
        candidates.append(SelectorCandidate("#" + css_escape(element_id), 100))

    classes = (_attr(element, "class") or "").split()
    candidates.extend(SelectorCandidate(f"{tag}.{css_escape(c)}", 20) for c in classes)
    if len(classes) > 1:
        combined = tag + "".join("." + css_escape(c) for c in classes)
        candidates.append(SelectorCandidate(combined, 10 + len(classes) * 10))

    for name in _DATA_ATTRIBUTES:
        value = _attr(element, name)
        if value:
            candidates.append(SelectorCandidate(f'{tag}[{name}="{value}"]', 50))

    path = build_element_path(element, 3)
    if path:
        candidates.append(SelectorCandidate(path, 30))

    parent = _parent(element)
    if parent is not None and parent.name not in ("", "html", "body"):
        index = next(i for i, child in enumerate(_children(parent)) if child is element) + 1
        candidates.append(SelectorCandidate(f"{parent.name} > {tag}:nth-child({index})", 25))

    return candidates


def _sorted(candidates: list[SelectorCandidate]) -> list[SelectorCandidate]:
    return sorted(candidates, key=lambda c: (-c.score, -c.specificity))


def _text_match_score(count: int) -> float:
    if count == 1:
        return 1.0
    if count <= 3:
        return 0.8
    if count <= 10:
        return 0.5
    return 0.2


def _element_match_score(count: int) -> float:
    if count == 1:
        return 1.0
    if count <= 3:
        return 0.8
    return 1.0 / count


class AutoSelectorGenerator:
    """Suggests CSS selectors for elements, best candidates first."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or _LOG

    def generate_for_text(self, response: Response, text: str) -> list[SelectorCandidate]:
        """Return up to ten selectors for elements whose text contains ``text``."""
        doc = response.document()
        candidates: list[SelectorCandidate] = []
        for element in doc.find_all(True):
            node_text = element.get_text().strip()
            if not node_text or text not in node_text:
                continue
            if len(_children(element)) > 5:
                continue
            for candidate in _candidates_for(element):
                candidate.match_count = len(_select(doc, candidate.selector))
                candidate.score = _text_match_score(candidate.match_count)
                candidates.append(candidate)
        return _sorted(candidates)[:10]

    def generate_for_element(
        self, response: Response, basic_selector: str
    ) -> list[SelectorCandidate]:
        """Return selectors for the first element matched by ``basic_selector``."""
        doc = response.document()
        matches = _select(doc, basic_selector)
        if not matches:
            return []
        candidates = _candidates_for(matches[0])
        for candidate in candidates:
            candidate.match_count = len(_select(doc, candidate.selector))
            candidate.score = _element_match_score(candidate.match_count)
        return _sorted(candidates)