import pytest

from scrapegoat.parser.structured import (
    StructuredData,
    StructuredDataExtractor,
    StructuredDataType,
    structured_data_to_item,
)
from scrapegoat.request import Request
from scrapegoat.response import Response

TEST_HTML = """<!DOCTYPE html>
<html>
<head>
    <title>Test Page</title>
    <meta name="description" content="A test page for parsing">
    <meta property="og:title" content="OG Test Title">
    <meta property="og:image" content="https://example.com/image.png">
    <meta name="twitter:card" content="summary">
    <meta name="twitter:title" content="Twitter Title">
    <script type="application/ld+json">
    {"@context":"https://schema.org","@type":"Article","name":"Test Article","author":"Bob"}
    </script>
</head>
<body>
    <h1 class="title">Hello World</h1>
</body>
</html>"""


def make_resp(url, body):
    return Response(
        request=Request(url), status_code=200, body=body.encode("utf-8"), content_type="text/html"
    )


def by_type(results, kind):
    return [r for r in results if r.type is kind]


@pytest.fixture
def extractor():
    return StructuredDataExtractor()


def test_structured_data_extraction(extractor):
    results = extractor.extract(make_resp("https://example.com", TEST_HTML))
    jsonld = by_type(results, StructuredDataType.JSONLD)
    og = by_type(results, StructuredDataType.OPENGRAPH)
    twitter = by_type(results, StructuredDataType.TWITTER_CARD)
    meta = by_type(results, StructuredDataType.META_TAGS)
    assert jsonld and jsonld[0].data["name"] == "Test Article"
    assert og and og[0].data["title"] == "OG Test Title"
    assert twitter and twitter[0].data["card"] == "summary"
    assert meta and meta[0].data["title"] == "Test Page"
    assert meta[0].data["description"] == "A test page for parsing"


def test_result_order(extractor):
    results = extractor.extract(make_resp("https://example.com", TEST_HTML))
    assert [r.type for r in results] == [
        StructuredDataType.JSONLD,
        StructuredDataType.OPENGRAPH,
        StructuredDataType.TWITTER_CARD,
        StructuredDataType.META_TAGS,
    ]


def test_json_ld_array_and_invalid(extractor):
    html = """<html><head>
    <script type="application/ld+json">[{"@type":"A"},{"@type":"B"}]</script>
    <script type="application/ld+json">{not json</script>
    </head><body></body></html>"""
    results = by_type(extractor.extract(make_resp("https://example.com", html)), StructuredDataType.JSONLD)
    assert [r.data["@type"] for r in results] == ["A", "B"]
    assert results[0].raw == results[1].raw == '[{"@type":"A"},{"@type":"B"}]'


def test_microdata_top_level_only(extractor):
    html = """<html><body>
    <div itemscope itemtype="https://schema.org/Product">
      <span itemprop="name">Widget</span>
      <a itemprop="url" href="/w">x</a>
      <meta itemprop="sku" content="W-1">
      <div itemscope><span itemprop="brand">Acme</span></div>
    </div></body></html>"""
    results = by_type(extractor.extract(make_resp("https://example.com", html)), StructuredDataType.MICRODATA)
    assert len(results) == 1
    assert results[0].data == {
        "@type": "https://schema.org/Product",
        "name": "Widget",
        "url": "/w",
        "sku": "W-1",
        "brand": "Acme",
    }


def test_link_tags_and_twitter_property(extractor):
    html = """<html><head>
    <link rel="canonical" href="https://example.com/c">
    <link rel="icon" href="/favicon.ico">
    <link rel="alternate" hreflang="de" href="https://example.com/de">
    <meta property="twitter:site" content="@example">
    </head><body></body></html>"""
    results = extractor.extract(make_resp("https://example.com", html))
    meta = by_type(results, StructuredDataType.META_TAGS)[0].data
    assert meta["canonical"] == "https://example.com/c"
    assert meta["favicon"] == "/favicon.ico"
    assert meta["hreflang"] == [{"lang": "de", "href": "https://example.com/de"}]
    assert by_type(results, StructuredDataType.TWITTER_CARD)[0].data == {"site": "@example"}


def test_empty_page_has_no_results(extractor):
    assert extractor.extract(make_resp("https://example.com", "<html><body><p>x</p></body></html>")) == []


def test_structured_data_to_item(extractor):
    results = extractor.extract(make_resp("https://example.com", TEST_HTML))
    item = structured_data_to_item(results, "https://example.com")
    assert item.url == "https://example.com"
    assert item.get("meta_title") == "Test Page"
    assert item.get("json_ld")["author"] == "Bob"
    assert item.get("opengraph")["title"] == "OG Test Title"
    assert item.get("twitter_card")["card"] == "summary"


def test_structured_data_to_item_empty_and_microdata():
    assert structured_data_to_item([], "https://example.com") is None
    item = structured_data_to_item(
        [StructuredData(StructuredDataType.MICRODATA, {"name": "x"})], "https://example.com"
    )
    assert item.get("microdata") == {"name": "x"}