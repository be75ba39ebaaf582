"""Web scraping toolkit: items, parsers, pipelines, storage, plugins and SEO tools."""

__version__ = "0.1.0"