"""SEO tools: sitemap crawling, meta tag auditing and backlink extraction."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime
from urllib.parse import urljoin, urlsplit

import requests
from bs4 import BeautifulSoup

from .errors import FetchError, ParseError, ScrapeError
from .response import Response

_LOG = logging.getLogger(__name__)


@dataclass
class SitemapURL:
    loc: str
    lastmod: str = ""
    changefreq: str = ""
    priority: float = 0.0


@dataclass
class Sitemap:
    urls: list[SitemapURL] = field(default_factory=list)
    sitemaps: list[str] = field(default_factory=list)


def _local(tag: str) -> str:
    return tag.rpartition("}")[2]


def _text(element: ET.Element) -> str:
    return "".join(element.itertext())


def parse_sitemap(data: bytes | str) -> Sitemap:
    """Parse a sitemap or sitemap index; raises ValueError on bad input."""
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise ValueError(f"invalid sitemap XML: {exc}") from exc
    sitemap = Sitemap()
    for child in root:
        kind = _local(child.tag)
        values = {_local(sub.tag): _text(sub) for sub in child}
        if kind == "url":
            priority_text = values.get("priority", "").strip()
            try:
                priority = float(priority_text) if priority_text else 0.0
            except ValueError as exc:
                raise ValueError(f"invalid priority {priority_text!r}") from exc
            sitemap.urls.append(
                SitemapURL(
                    loc=values.get("loc", ""),
                    lastmod=values.get("lastmod", ""),
                    changefreq=values.get("changefreq", ""),
                    priority=priority,
                )
            )
        elif kind == "sitemap":
            sitemap.sitemaps.append(values.get("loc", ""))
    return sitemap


class SitemapCrawler:
    """Fetches sitemaps, following sitemap indexes recursively."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        *,
        session: requests.Session | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._session = session or requests.Session()
        self.timeout = timeout
        self._log = logger or _LOG

    def crawl(self, sitemap_url: str) -> list[SitemapURL]:
        """Return every URL listed in the sitemap and its sub-sitemaps."""
        self._log.info("crawling sitemap: url=%s", sitemap_url)
        try:
            body = self._session.get(sitemap_url, timeout=self.timeout).content
        except requests.RequestException as exc:
            raise FetchError(sitemap_url, exc) from exc
        try:
            sitemap = parse_sitemap(body)
        except ValueError as exc:
            raise ParseError(sitemap_url, exc) from exc

        urls = list(sitemap.urls)
        for sub in sitemap.sitemaps:
            try:
                urls.extend(self.crawl(sub))
            except ScrapeError as exc:
                self._log.warning("sub-sitemap error: url=%s error=%s", sub, exc)
        self._log.info("sitemap crawled: url=%s urls=%d", sitemap_url, len(urls))
        return urls

    def discover_sitemap(self, domain: str) -> str:
        """Return the first well-known sitemap URL that answers 200, or ''."""
        candidates = [
            f"https://{domain}/sitemap.xml",
            f"https://{domain}/sitemap_index.xml",
            f"https://{domain}/sitemap.xml.gz",
        ]
        for url in candidates:
            try:
                resp = self._session.head(url, timeout=self.timeout, allow_redirects=True)
            except requests.RequestException:
                continue
            if resp.status_code == 200:
                return url
        return ""


@dataclass
class AuditIssue:
    severity: str
    category: str
    message: str


@dataclass
class MetaAuditResult:
    url: str
    score: int = 100
    issues: list[AuditIssue] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)


def _meta_attr(doc: BeautifulSoup, attr: str, value: str) -> str:
    tag = doc.find("meta", attrs={attr: value})
    if tag is None:
        return ""
    content = tag.get("content")
    return content if isinstance(content, str) else ""


class MetaAuditor:
    """Scores pages against common SEO practices."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or _LOG

    def audit(self, response: Response) -> MetaAuditResult:
        doc = response.document()
        result = MetaAuditResult(url=response.request.url)
        issues = result.issues
        score = 100

        title_tag = doc.find("title")
        title = title_tag.get_text().strip() if title_tag else ""
        result.tags["title"] = title
        title_len = len(title.encode("utf-8"))
        if not title:
            issues.append(AuditIssue("error", "title", "Missing title tag"))
            score -= 20
        elif title_len > 60:
            issues.append(
                AuditIssue("warning", "title", f"Title too long ({title_len} chars, max 60)")
            )
            score -= 5
        elif title_len < 10:
            issues.append(AuditIssue("warning", "title", "Title too short"))
            score -= 5

        desc = _meta_attr(doc, "name", "description")
        result.tags["description"] = desc
        desc_len = len(desc.encode("utf-8"))
        if not desc:
            issues.append(AuditIssue("error", "description", "Missing meta description"))
            score -= 15
        elif desc_len > 160:
            issues.append(
                AuditIssue(
                    "warning", "description", f"Description too long ({desc_len} chars, max 160)"
                )
            )
            score -= 5

        canonical_tag = doc.select_one('link[rel="canonical"]')
        canonical = canonical_tag.get("href", "") if canonical_tag else ""
        result.tags["canonical"] = canonical
        if not canonical:
            issues.append(AuditIssue("warning", "canonical", "Missing canonical URL"))
            score -= 5

        h1_count = len(doc.find_all("h1"))
        if h1_count == 0:
            issues.append(AuditIssue("error", "headings", "Missing H1 tag"))
            score -= 10
        elif h1_count > 1:
            issues.append(AuditIssue("warning", "headings", f"Multiple H1 tags ({h1_count})"))
            score -= 5

        for prop in ("og:title", "og:image"):
            value = _meta_attr(doc, "property", prop)
            result.tags[prop] = value
            if not value:
                issues.append(AuditIssue("info", "opengraph", f"Missing {prop}"))
                score -= 3

        missing_alt = sum(
            1 for img in doc.find_all("img") if not (img.get("alt") or "").strip()
        )
        if missing_alt:
            issues.append(AuditIssue("warning", "images", f"{missing_alt} images without alt text"))
            score -= min(missing_alt * 2, 10)

        robots = _meta_attr(doc, "name", "robots")
        result.tags["robots"] = robots
        if "noindex" in robots:
            issues.append(AuditIssue("warning", "robots", "Page is set to noindex"))

        viewport = _meta_attr(doc, "name", "viewport")
        result.tags["viewport"] = viewport
        if not viewport:
            issues.append(AuditIssue("warning", "mobile", "Missing viewport meta tag"))
            score -= 5

        result.score = max(score, 0)
        return result


@dataclass
class Backlink:
    source_url: str
    target_url: str
    anchor_text: str
    nofollow: bool
    external: bool


def _host(url: str) -> str:
    return urlsplit(url).netloc.rpartition("@")[2]


def extract_backlinks(response: Response) -> list[Backlink]:
    """Return every outgoing link on the page, resolved against its URL."""
    doc = response.document()
    source_url = response.request.url
    source_host = _host(source_url)
    backlinks = []
    for anchor in doc.find_all("a", href=True):
        href = anchor["href"]
        if not href or href.startswith("#") or href.startswith("javascript:"):
            continue
        try:
            target = urljoin(source_url, href)
            target_host = _host(target)
        except ValueError:
            continue
        rel = anchor.get("rel") or ""
        if isinstance(rel, list):
            rel = " ".join(rel)
        backlinks.append(
            Backlink(
                source_url=source_url,
                target_url=target,
                anchor_text=anchor.get_text().strip(),
                nofollow="nofollow" in rel,
                external=target_host != source_host,
            )
        )
    return backlinks


@dataclass
class PricePoint:
    url: str
    product_id: str
    price: str
    currency: str
    available: bool
    timestamp: datetime