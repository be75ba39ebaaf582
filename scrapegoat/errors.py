"""Exception types raised while crawling, parsing and storing."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .item import Item


class ScrapeError(Exception):
    """Base class for every error raised by the package."""

    message = "scrape error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.message)


class RequestTimeout(ScrapeError):
    message = "request timed out"


class MaxRetriesExceeded(ScrapeError):
    message = "max retries exceeded"


class BlockedByRobots(ScrapeError):
    message = "blocked by robots.txt"


class MaxDepthExceeded(ScrapeError):
    message = "max depth exceeded"


class DuplicateURL(ScrapeError):
    message = "duplicate URL"


class EmptyResponse(ScrapeError):
    message = "empty response body"


class InvalidURL(ScrapeError):
    message = "invalid URL"


class CrawlStopped(ScrapeError):
    message = "crawl has been stopped"


class NoFetcher(ScrapeError):
    message = "no fetcher available for request"


class ProxiesExhausted(ScrapeError):
    message = "all proxies exhausted"


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


class FetchError(ScrapeError):
    """A page could not be fetched."""

    def __init__(
        self,
        url: str,
        cause: BaseException,
        *,
        status_code: int = 0,
        retryable: bool = False,
        retry_after: float = 0.0,
    ) -> None:
        self.url = url
        self.cause = cause
        self.status_code = status_code
        self.retryable = retryable
        self.retry_after = retry_after
        if status_code > 0:
            text = f"fetch error for {url} (status {status_code}): {cause}"
        else:
            text = f"fetch error for {url}: {cause}"
        super().__init__(text)
        self.__cause__ = cause


class ParseError(ScrapeError):
    """A response could not be parsed."""

    def __init__(self, url: str, cause: BaseException, selector: str = "") -> None:
        self.url = url
        self.cause = cause
        self.selector = selector
        super().__init__(f"parse error for {url} (selector={_quote(selector)}): {cause}")
        self.__cause__ = cause


class StorageError(ScrapeError):
    """A storage backend failed to persist or flush items."""

    def __init__(self, backend: str, cause: BaseException) -> None:
        self.backend = backend
        self.cause = cause
        super().__init__(f"storage error ({backend}): {cause}")
        self.__cause__ = cause


class PipelineError(ScrapeError):
    """A pipeline stage failed while processing an item."""

    def __init__(self, stage: str, item: Item | None, cause: BaseException) -> None:
        self.stage = stage
        self.item = item
        self.cause = cause
        super().__init__(f"pipeline error at stage {_quote(stage)}: {cause}")
        self.__cause__ = cause