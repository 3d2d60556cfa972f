"""Custom exceptions for ParserGrok.

This module defines a hierarchy of exceptions for the parser registry and the
grammar cache. "Not found" conditions (unknown language, uncached version,
unmapped extension) are never raised; they are returned as None or an empty
result.

Usage:
    from parsergrok.core.exceptions import DownloadError

    try:
        manager.download_grammar(spec)
    except DownloadError as e:
        print(f"Failed to fetch {e.language} {e.version}: {e}")
"""

from typing import Optional


class ParserGrokError(Exception):
    """Base exception for all ParserGrok operations.

    All custom exceptions in ParserGrok inherit from this class,
    allowing for broad exception catching when needed.
    """
    pass


class ConfigurationError(ParserGrokError):
    """Raised when configuration is invalid.

    This covers failures related to:
    - A grammar cache root that cannot be resolved or created
    - Invalid configuration values
    """
    pass


class ValidationError(ParserGrokError, ValueError):
    """Raised when an operation receives invalid arguments.

    Signals a programming error at the call site (missing factory, blank
    extension, non-positive retention count, ...).
    """
    pass


class DownloadError(ParserGrokError):
    """Raised when a grammar download or its verification fails.

    Attributes:
        language: Language of the grammar being downloaded
        version: Requested grammar version
    """

    def __init__(self, message: str, language: Optional[str] = None, version: Optional[str] = None):
        self.language = language
        self.version = version
        super().__init__(message)


class DownloadCancelled(DownloadError):
    """Raised when a download is abandoned through its cancel event."""
    pass


class GrammarFilesystemError(ParserGrokError, OSError):
    """Raised when a cache path cannot be read, written or deleted.

    Attributes:
        path: The cache path involved
    """

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)
