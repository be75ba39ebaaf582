# scrapegoat

A library for pulling data out of HTML pages you already have, cleaning it,
and storing it.

- **Parsers** (`scrapegoat.parser`): `CSSParser`, `XPathParser`,
  `RegexParser`, and `CompositeParser`, which sends each rule to the right
  parser, always collects the page's links, adds structured data and merges
  everything into one item per page.
- **Structured data** (`scrapegoat.parser.structured`): JSON-LD, OpenGraph,
  Twitter Card, microdata and standard meta tags, via
  `StructuredDataExtractor` and `structured_data_to_item`.
- **Automatic extraction** (`scrapegoat.parser.extract`): `AutoExtractor`
  finds meta data, JSON-LD, OpenGraph, tables, products, articles, links and
  images without selectors, and classifies the page as `product`, `listing`,
  `article`, `data` or `generic`.
- **Selector tools**: `AutoSelectorGenerator` (ranked CSS selectors for a
  text or an element), `DOMTraverser` (parents, children, siblings, closest
  ancestor, tables, lists) and `SmartTracker` (find a remembered element again
  after the markup changes, or find similar elements).
- **Pipelines** (`scrapegoat.pipeline`, `scrapegoat.middleware`).
- **Storage** (`scrapegoat.storage`): JSON, JSON Lines, CSV, MongoDB, and
  `MultiStorage` for several backends at once.
- **Plugins** (`scrapegoat.plugins`, `scrapegoat.builtin_plugins`).
- **SEO** (`scrapegoat.seo`): sitemap crawling, meta tag audits, backlinks.

Install with `pip install .`; the test tools come with the `test` extra.

## Requests, responses and items

A `Response` wraps a page body; its HTML is parsed on first use of
`document()` (a BeautifulSoup tree, lxml parser).

```python
from scrapegoat.request import Request
from scrapegoat.response import Response

html = b"<html><head><title>Demo</title></head><body><h1>Hello World</h1>" \
       b'<a href="/next">Next</a></body></html>'
response = Response(
    request=Request("https://example.com"),
    status_code=200,
    body=html,
    final_url="https://example.com",
)
```

`Request` raises `InvalidURL` for a URL with control characters or a bad
port. `Response.from_http` builds a response from a `requests.Response`, and
`browser_response` from rendered output.

An `Item` is one scraped record: named fields plus the URL it came from.

```python
from scrapegoat.item import Item

item = Item("https://example.com/page")
item.set("title", "  Hello World  ")
item.get_string("title")   # '  Hello World  '
item.has("price")          # False
item.to_flat_map()         # string values, as used for CSV
item.to_json()             # compact JSON with fields, url, timestamp, depth
```

## Parsing

Every parser's `parse(response, rules)` returns `(items, links)`.

```python
from scrapegoat.parser.base import ParseRule
from scrapegoat.parser.composite import CompositeParser

rules = [
    ParseRule(name="heading", type="css", selector="h1"),
    ParseRule(name="page_title", type="regex", pattern=r"<title>([^<]+)</title>"),
    ParseRule(name="xpath_heading", type="xpath", selector="//h1"),
]
items, links = CompositeParser().parse(response, rules)
items[0].get_string("heading")   # 'Hello World'
links                            # ['https://example.com/next']
```

A rule's `attribute` chooses what is taken from a match: the text (default),
`"html"`/`"innerHTML"`, `"outerHTML"`, or an attribute name. One match gives a
string, several give a list. Links are resolved against `final_url`; only
unique `http`/`https` links are kept, without fragments. `RegexParser` raises
`ParseError` for invalid patterns after applying the valid ones.

## Pipelines

Middleware runs in the order added. Returning `None` drops the item; an
exception stops the pipeline with a `PipelineError`.

```python
from scrapegoat.pipeline import Pipeline, TrimMiddleware
from scrapegoat.middleware import HTMLSanitizeMiddleware, CurrencyNormalizeMiddleware

pipeline = Pipeline()
pipeline.use(TrimMiddleware())
pipeline.use(HTMLSanitizeMiddleware())
pipeline.use(CurrencyNormalizeMiddleware(["price"]))
cleaned = pipeline.process(item)
```

In `scrapegoat.pipeline`: `FieldFilterMiddleware`, `FieldRenameMiddleware`,
`RequiredFieldsMiddleware`, `DedupMiddleware`, `DefaultValueMiddleware`,
`TrimMiddleware`. In `scrapegoat.middleware`: `HTMLSanitizeMiddleware`,
`DateNormalizeMiddleware` (output as a `strftime` pattern, RFC 3339 by
default), `CurrencyNormalizeMiddleware`, `TypeCoercionMiddleware` (`"int"`,
`"float"`, `"bool"`, `"string"`), `PIIRedactMiddleware` (e-mail, phone, SSN,
card and IPv4 patterns become `[REDACTED_<TYPE>]`), `FieldValidateMiddleware`
and `WordCountMiddleware`.

## Storage

`new_file_storage` picks a file backend (`"json"`, `"jsonl"` or `"csv"`) and
writes `results.<ext>` into the directory; other types raise `ValueError`.
Backends are context managers.

```python
from scrapegoat.storage import new_file_storage

with new_file_storage("jsonl", "./output") as store:
    store.store([item])
```

JSON is written on close; JSON Lines and CSV as items arrive. CSV columns come
from the first item stored. `MongoStorage(uri, database, collection)` inserts
into a collection. `MultiStorage` writes to every backend and re-raises the
first failure.

## Plugins

`Registry` holds `Plugin` objects by name and by `PluginType`; `register`
raises `ValueError` for a taken name, `unregister` closes the plugin and
raises `KeyError` if it is unknown. `run_hooks` calls a function on every
`HookPlugin`, logging failures. `register_builtin_plugins` adds the S3,
Kafka and PostgreSQL storage plugins.

## SEO

```python
from scrapegoat.seo import MetaAuditor, extract_backlinks

report = MetaAuditor().audit(response)
report.score    # 0-100
report.issues   # AuditIssue(severity, category, message)
extract_backlinks(response)
```

`SitemapCrawler.crawl` fetches a sitemap with `requests`, following sitemap
indexes; `discover_sitemap` probes the usual sitemap paths of a domain.
`parse_sitemap` parses sitemap XML you already have.

## Errors

All errors derive from `scrapegoat.errors.ScrapeError`. Stage failures are
`FetchError`, `ParseError`, `StorageError` or `PipelineError`, each keeping
its cause.

## What it does not do

- It has no crawler: no fetching of pages (apart from sitemaps), no
  scheduling, robots.txt handling, politeness delays or proxies. Bring your
  own responses.
- There is no command-line tool or interactive shell.
- The built-in plugins do not talk to external services: the S3 plugin
  writes its batches to `output/s3-fallback/<bucket>/` on local disk, and
  the Kafka and PostgreSQL plugins only count and log what they are given.