"""
ParserRegistry - routes source files to CodeParser implementations.

The registry maps normalized file extensions (lower-case, no leading dot)
to ParserFactory objects and builds each parser lazily, on the first lookup
of one of its extensions. Parser construction is compute-once per
extension: concurrent lookups wait for the in-flight construction and all
receive the same instance.

The registry performs no I/O: grammar-backed parsers only reach the
GrammarManager when they parse their first file.

Usage:
    >>> registry = create_default_registry()
    >>> parser = registry.find_parser("src/main.go")
    >>> chunks = parser.parse("src/main.go") if parser else []
"""

import logging
import threading
from typing import Dict, Iterable, List, Optional, Set, Union

from parsergrok.core.exceptions import ValidationError
from parsergrok.core.interfaces import CodeParser, ParserFactory, PathLike, SimpleParserFactory
from parsergrok.grammars.manager import GrammarManager
from parsergrok.grammars.memo import KeyedOnceCache
from parsergrok.grammars.specs import get_grammar_spec
from parsergrok.parsers.language_configs import (
    extension_of,
    get_extensions_for_language,
    normalize_extension,
)
from parsergrok.parsers.python_parser import PYTHON_EXTENSIONS, PythonAstParser
from parsergrok.parsers.treesitter_parser import TreeSitterCodeParser

logger = logging.getLogger(__name__)

# Languages served by native tree-sitter grammars, in registration order
GRAMMAR_LANGUAGES = (
    'javascript',
    'typescript',
    'c',
    'cpp',
    'java',
    'go',
    'rust',
    'kotlin',
    'ruby',
    'scala',
    'swift',
    'php',
    'csharp',
)


class ParserRegistry:
    """
    Thread-safe extension -> parser registry.

    Invariants:
        - Extension keys are stored lower-case without a leading dot
        - At most one parser instance is cached per extension
        - A parser whose construction failed is not cached
        - Registering or unregistering an extension drops its cached parser
          together with the mapping
    """

    def __init__(self):
        self._factories: Dict[str, ParserFactory] = {}
        self._parsers: KeyedOnceCache[CodeParser] = KeyedOnceCache()
        self._lock = threading.RLock()

    def find_parser(self, filepath: Optional[PathLike]) -> Optional[CodeParser]:
        """
        Find the parser for a file.

        Args:
            filepath: File path (str or Path); may be None

        Returns:
            The cached (or newly built) parser, or None if the file has no
            extension or the extension is not registered
        """
        extension = extension_of(filepath)
        if extension is None:
            return None

        with self._lock:
            factory = self._factories.get(extension)
            if factory is None:
                return None
            cell = self._parsers.cell(extension, factory.create_parser)

        try:
            return cell.get()
        except Exception:
            # Failed constructions are not cached; the next lookup rebuilds
            self._parsers.invalidate(extension, cell)
            raise

    def register_parser(self, factory: ParserFactory, extensions: Union[str, Iterable[str]]) -> None:
        """
        Map extensions to a parser factory.

        Existing mappings for these extensions are replaced and their cached
        parsers discarded.

        Args:
            factory: Factory building the parser
            extensions: One extension or an iterable of them ("py", ".PY", ...)

        Raises:
            ValidationError: If factory is None, no extensions are given, or
                an extension is blank
        """
        if factory is None:
            raise ValidationError("factory must not be None")
        if extensions is None:
            raise ValidationError("extensions must not be None")
        if isinstance(extensions, str):
            extensions = [extensions]

        keys: List[str] = []
        for extension in extensions:
            key = normalize_extension(extension)
            if key is None:
                raise ValidationError(f"Invalid extension: {extension!r}")
            keys.append(key)
        if not keys:
            raise ValidationError("extensions must not be empty")

        with self._lock:
            for key in keys:
                previous = self._factories.get(key)
                if previous is not None and previous is not factory:
                    logger.debug(f"Replacing parser factory for .{key}: {previous!r} -> {factory!r}")
                self._factories[key] = factory
                self._parsers.invalidate(key)

        logger.debug(f"Registered {factory!r} for {', '.join(keys)}")

    def unregister_parser(self, extension: str) -> bool:
        """
        Remove the mapping and cached parser for an extension.

        Returns:
            True if a mapping existed
        """
        key = normalize_extension(extension)
        if key is None:
            return False
        with self._lock:
            existed = self._factories.pop(key, None) is not None
            self._parsers.invalidate(key)
        return existed

    def supported_extensions(self) -> Set[str]:
        """Snapshot of the registered extension keys."""
        with self._lock:
            return set(self._factories)

    def __len__(self) -> int:
        with self._lock:
            return len(self._factories)


def _tree_sitter_factory(language: str, grammar_manager: GrammarManager) -> ParserFactory:
    spec = get_grammar_spec(language)
    extensions = get_extensions_for_language(language)
    supplier = grammar_manager.language_supplier(spec)
    return SimpleParserFactory(language, lambda: TreeSitterCodeParser(language, extensions, supplier))


def create_default_registry(grammar_manager: Optional[GrammarManager] = None) -> ParserRegistry:
    """
    Build a registry with every built-in parser.

    Python uses the hand-written ast parser; every other language is backed
    by a tree-sitter grammar obtained through grammar_manager.

    Args:
        grammar_manager: Manager supplying native grammars (a default
            GrammarManager is created if omitted)

    Returns:
        Populated ParserRegistry
    """
    manager = grammar_manager or GrammarManager()
    registry = ParserRegistry()
    registry.register_parser(SimpleParserFactory('python', PythonAstParser), PYTHON_EXTENSIONS)
    for language in GRAMMAR_LANGUAGES:
        registry.register_parser(_tree_sitter_factory(language, manager), sorted(get_extensions_for_language(language)))
    logger.info(f"Default parser registry ready with {len(registry)} extensions")
    return registry
