[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "scrapegoat"
version = "0.1.0"
description = "Web scraping toolkit: HTML parsing, structured data extraction, item pipelines, storage backends and SEO auditing"
requires-python = ">=3.10"
keywords = [
    "scraping",
    "html",
    "css-selectors",
    "xpath",
    "json-ld",
    "opengraph",
    "microdata",
    "seo",
    "sitemap",
    "pipeline",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Indexing/Search",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: Text Processing :: Markup :: HTML",
]
dependencies = [
    "beautifulsoup4>=4.12",
    "lxml>=4.9",
    "requests>=2.31",
    "pymongo>=4.6",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "responses>=0.24",
]

[tool.hatch.build.targets.wheel]
packages = ["scrapegoat"]

[tool.hatch.build.targets.sdist]
include = ["scrapegoat", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
