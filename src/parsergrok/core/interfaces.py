"""
Abstract interfaces for ParserGrok components.

This module defines the contracts the parser registry works against. The
registry never knows whether a parser is hand-written or backed by a native
grammar; it only builds parsers through factories and routes files to them.

When to implement each interface:
    - CodeParser: When adding support for a new programming language
    - ParserFactory: When a parser should be registered for lazy construction
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, List, Union

from .models import TextChunk

PathLike = Union[str, Path]


class CodeParser(ABC):
    """Abstract interface for language-specific code parsers.

    Implementations convert a source file into an ordered list of
    TextChunk records.

    Responsibilities:
        - Detect if a file can be parsed based on its extension
        - Extract chunks (functions, classes, methods, ...) from source code
        - Handle parsing errors gracefully: a broken file or an unavailable
          grammar yields an empty list, not an exception

    Example implementation:
        >>> class TomlParser(CodeParser):
        ...     language = "toml"
        ...     def supports(self, filepath):
        ...         return str(filepath).endswith(".toml")
        ...     def parse(self, filepath):
        ...         return []
    """

    @property
    @abstractmethod
    def language(self) -> str:
        """Language identifier for this parser (e.g., "java", "python")."""
        pass  # pragma: no cover

    @abstractmethod
    def supports(self, filepath: PathLike) -> bool:
        """Determine if this parser can handle the given file.

        This method should be fast as it's called for every file in the
        codebase.

        Args:
            filepath: Path to the file to check

        Returns:
            True if this parser can parse the file, False otherwise
        """
        pass  # pragma: no cover

    @abstractmethod
    def parse(self, filepath: PathLike) -> List[TextChunk]:
        """Parse a source file into chunks.

        Args:
            filepath: Path to the file to parse

        Returns:
            Extracted chunks in source order (possibly empty)

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        pass  # pragma: no cover


class ParserFactory(ABC):
    """Factory for lazily creating CodeParser instances.

    The registry calls create_parser() at most once per registered
    extension and caches the result.
    """

    @property
    @abstractmethod
    def language(self) -> str:
        """Language identifier of the parsers created by this factory."""
        pass  # pragma: no cover

    @abstractmethod
    def create_parser(self) -> CodeParser:
        """Create a new parser instance."""
        pass  # pragma: no cover


class SimpleParserFactory(ParserFactory):
    """ParserFactory backed by a zero-argument constructor callable.

    Example:
        >>> factory = SimpleParserFactory("python", PythonAstParser)
        >>> registry.register_parser(factory, ["py", "pyi"])
    """

    def __init__(self, language: str, constructor: Callable[[], CodeParser]):
        self._language = language
        self._constructor = constructor

    @property
    def language(self) -> str:
        return self._language

    def create_parser(self) -> CodeParser:
        return self._constructor()

    def __repr__(self) -> str:
        return f"SimpleParserFactory(language={self._language!r})"
