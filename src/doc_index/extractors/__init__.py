"""Content extractors and suffix-based dispatch."""

from .base import ExtractionError, Extractor, read_text
from .html import HtmlExtractor
from .plain import PlainTextExtractor
from .registry import ExtractorRegistry
from .runtime import HTML_SUFFIXES, build_extractor_registry

__all__ = [
    "ExtractionError",
    "Extractor",
    "ExtractorRegistry",
    "HTML_SUFFIXES",
    "HtmlExtractor",
    "PlainTextExtractor",
    "build_extractor_registry",
    "read_text",
]
