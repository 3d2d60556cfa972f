"""
Core data models, interfaces and exceptions for ParserGrok.
"""

from .models import TextChunk
from .interfaces import CodeParser, ParserFactory, SimpleParserFactory
from .exceptions import (
    ParserGrokError,
    ConfigurationError,
    ValidationError,
    DownloadError,
    DownloadCancelled,
    GrammarFilesystemError,
)

__all__ = [
    "TextChunk",
    "CodeParser",
    "ParserFactory",
    "SimpleParserFactory",
    "ParserGrokError",
    "ConfigurationError",
    "ValidationError",
    "DownloadError",
    "DownloadCancelled",
    "GrammarFilesystemError",
]
