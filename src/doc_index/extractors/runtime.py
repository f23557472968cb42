"""Runtime extractor registry construction."""

from __future__ import annotations

from doc_index.extractors.html import HtmlExtractor
from doc_index.extractors.plain import PlainTextExtractor
from doc_index.extractors.registry import ExtractorRegistry

HTML_SUFFIXES = (".htm", ".html")


def build_extractor_registry() -> ExtractorRegistry:
    """Build the default registry: HTML by suffix, plain text otherwise."""
    registry = ExtractorRegistry()
    html = HtmlExtractor()
    for suffix in HTML_SUFFIXES:
        registry.register(suffix, html)
    registry.set_default(PlainTextExtractor())
    return registry
