"""Fetched responses and their lazily parsed documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from bs4 import BeautifulSoup

from .request import Request


@dataclass
class Response:
    """The result of fetching a request."""

    request: Request
    status_code: int = 0
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)
    content_type: str = ""
    content_length: int | None = None
    final_url: str = ""
    fetch_duration: float = 0.0
    fetched_at: datetime = field(default_factory=lambda: datetime.now().astimezone())
    meta: dict[str, Any] = field(default_factory=dict)
    _doc: BeautifulSoup | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.content_length is None:
            self.content_length = len(self.body)

    @classmethod
    def from_http(cls, request: Request, http_response: Any, body: bytes, duration: float) -> Response:
        """Build a response from a ``requests.Response`` and its body."""
        headers = dict(http_response.headers)
        return cls(
            request=request,
            status_code=http_response.status_code,
            body=body,
            headers=headers,
            content_type=http_response.headers.get("Content-Type", ""),
            content_length=len(body),
            final_url=http_response.url or request.url,
            fetch_duration=duration,
        )

    def document(self) -> BeautifulSoup:
        """Return the parsed HTML document, parsing it on first use."""
        if self._doc is None:
            self._doc = BeautifulSoup(self.body, "lxml")
        return self._doc

    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400

    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    def is_server_error(self) -> bool:
        return 500 <= self.status_code < 600


def browser_response(
    request: Request, status_code: int, body: bytes, final_url: str, duration: float
) -> Response:
    """Build a response from rendered browser output."""
    return Response(
        request=request,
        status_code=status_code,
        body=body,
        content_type="text/html",
        content_length=len(body),
        final_url=final_url,
        fetch_duration=duration,
    )