"""
TreeSitterCodeParser - grammar-backed chunk extraction for one language.

The parser does not load grammars itself: it is given a language supplier
(usually GrammarManager.language_supplier(spec)) and asks it for the native
binding whenever a file is parsed. If no grammar can be obtained the
parser logs the failure and returns an empty chunk list, so a missing
grammar never aborts ingestion of other files.

Chunks:
    Types (class, struct, interface, ...), functions and methods, each with
    its qualified name (enclosing types joined by the language separator)
    and attributes such as 'parameters', 'return_type', 'enclosing_type'
    and, for Go methods, 'receiver'.

Usage:
    >>> manager = GrammarManager()
    >>> parser = TreeSitterCodeParser(
    ...     "go", {"go"}, manager.language_supplier(get_grammar_spec("go"))
    ... )
    >>> chunks = parser.parse("main.go")
"""

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from tree_sitter import Parser

from parsergrok.core.interfaces import CodeParser, PathLike
from parsergrok.core.models import TextChunk
from parsergrok.parsers.language_configs import (
    extension_of,
    get_config_for_language,
    normalize_extension,
)

logger = logging.getLogger(__name__)

_IDENTIFIER_TYPES = (
    'identifier',
    'type_identifier',
    'simple_identifier',
    'field_identifier',
    'property_identifier',
    'constant',
    'name',
)


class TreeSitterCodeParser(CodeParser):
    """
    CodeParser backed by a lazily loaded tree-sitter grammar.

    Attributes:
        MAX_FILE_SIZE_MB: Files above this size are parsed with a warning

    Thread Safety:
        This class IS thread-safe. The supplier is asked for the language on
        every parse (GrammarManager memoizes it per version, so a rollback
        takes effect here); tree-sitter Parser objects are kept per thread
        and rebuilt when the supplied language changes.
    """

    MAX_FILE_SIZE_MB = 10

    def __init__(
        self,
        language: str,
        extensions: Iterable[str],
        language_supplier: Callable[[], Optional[Any]],
    ):
        """
        Initialize the parser.

        Args:
            language: Language identifier with an entry in LANGUAGE_CONFIGS
            extensions: Extensions this parser accepts (with or without dot)
            language_supplier: Returns the tree-sitter Language, or None

        Raises:
            ValueError: If extensions is empty
            KeyError: If the language has no node type configuration
        """
        keys = {normalize_extension(ext) for ext in extensions} - {None}
        if not keys:
            raise ValueError("extensions must not be empty")
        self._language = language
        self._extensions = frozenset(keys)
        self._config = get_config_for_language(language)
        self._language_supplier = language_supplier

        self._local = threading.local()

    @property
    def language(self) -> str:
        return self._language

    @property
    def extensions(self) -> frozenset:
        return self._extensions

    def supports(self, filepath: PathLike) -> bool:
        return extension_of(filepath) in self._extensions

    def parse(self, filepath: PathLike) -> List[TextChunk]:
        """
        Parse a source file into chunks.

        Args:
            filepath: Path to the file to parse

        Returns:
            Chunks in source order; empty if the file is unsupported, cannot
            be read, or the grammar is unavailable

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        file_path = Path(filepath)
        if not self.supports(file_path):
            return []
        if not file_path.is_file():
            raise FileNotFoundError(f"File not found: {filepath}")

        file_size_mb = file_path.stat().st_size / (1024 * 1024)
        if file_size_mb > self.MAX_FILE_SIZE_MB:
            logger.warning(f"Large file ({file_size_mb:.2f}MB): {filepath}. Parsing may be slow.")

        try:
            content = file_path.read_bytes()
        except OSError as e:
            logger.error(f"Error reading file: {e}: {filepath}")
            return []

        parser = self._get_parser()
        if parser is None:
            logger.error(f"Tree-sitter grammar for {self._language} failed to load; skipping {filepath}")
            return []

        try:
            tree = parser.parse(content)
            chunks = self._extract_chunks(tree.root_node, content, str(file_path))
        except Exception as e:
            logger.error(f"Parsing error: {e}: {filepath}", exc_info=True)
            return []

        logger.debug(f"Parsed {filepath} - found {len(chunks)} chunks")
        return chunks

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _get_parser(self) -> Optional[Parser]:
        """Tree-sitter Parser for the current thread, or None without a grammar."""
        language = self._language_supplier()
        if language is None:
            return None
        parser = getattr(self._local, 'parser', None)
        if parser is not None and self._local.language is language:
            return parser
        logger.debug(f"Creating tree-sitter parser for {self._language} in {threading.current_thread().name}")
        parser = Parser()
        parser.set_language(language)
        self._local.parser = parser
        self._local.language = language
        return parser

    def _extract_chunks(self, root_node, content: bytes, source_file: str) -> List[TextChunk]:
        chunks: List[TextChunk] = []
        config = self._config
        function_types = set(config.get('function_types', []))
        method_types = set(config.get('method_types', []))
        class_types: Dict[str, str] = config.get('class_types', {})
        scope_types: Dict[str, str] = config.get('scope_types', {})
        separator = config.get('separator', '.')

        # Enclosing scope names; type_depth counts entries that are types
        scope_stack: List[str] = []
        type_depth = 0

        def traverse(node):
            nonlocal type_depth
            node_type = node.type
            pushed = False
            pushed_type = False

            if node_type in class_types and self._has_body(node):
                name = self._node_name(node, content)
                if name:
                    entity_type = self._type_entity(node, class_types[node_type])
                    chunks.append(self._to_chunk(
                        node, content, source_file, entity_type,
                        separator.join(scope_stack + [name]),
                        self._enclosing(scope_stack, separator),
                    ))
                    scope_stack.append(name)
                    pushed = pushed_type = True
                    type_depth += 1

            elif node_type in scope_types:
                name_node = node.child_by_field_name(scope_types[node_type])
                if name_node is not None:
                    scope_stack.append(_text(name_node, content))
                    pushed = True
                    if node_type == 'impl_item':
                        pushed_type = True
                        type_depth += 1

            elif node_type in method_types and (type_depth > 0 or node_type not in function_types):
                self._append_callable(node, content, source_file, 'method', scope_stack, separator, chunks)

            elif node_type in function_types:
                self._append_callable(node, content, source_file, 'function', scope_stack, separator, chunks)

            for child in node.children:
                traverse(child)

            if pushed:
                scope_stack.pop()
            if pushed_type:
                type_depth -= 1

        traverse(root_node)
        return chunks

    def _append_callable(self, node, content, source_file, entity_type, scope_stack, separator, chunks):
        name = self._node_name(node, content)
        if not name:
            return
        attributes = self._enclosing(scope_stack, separator)
        receiver = node.child_by_field_name('receiver')
        if receiver is not None:
            attributes['receiver'] = _text(receiver, content)
        parameters = node.child_by_field_name('parameters')
        if parameters is not None:
            attributes['parameters'] = _text(parameters, content)
        for field in ('return_type', 'result', 'type'):
            returns = node.child_by_field_name(field)
            if returns is not None:
                attributes['return_type'] = _text(returns, content)
                break
        chunks.append(self._to_chunk(
            node, content, source_file, entity_type,
            separator.join(scope_stack + [name]), attributes,
        ))

    def _to_chunk(self, node, content, source_file, entity_type, entity_name, attributes) -> TextChunk:
        # tree-sitter rows are 0-indexed, chunks are 1-indexed
        return TextChunk(
            content=_text(node, content),
            language=self._language,
            entity_type=entity_type,
            entity_name=entity_name,
            source_file=source_file,
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            attributes=attributes,
        )

    def _type_entity(self, node, default: str) -> str:
        kinds = self._config.get('type_kinds')
        if kinds:
            type_node = node.child_by_field_name('type')
            if type_node is not None:
                return kinds.get(type_node.type, default)
        return default

    @staticmethod
    def _has_body(node) -> bool:
        """C-family specifiers also appear as bare references (struct foo *p)."""
        if node.type.endswith('_specifier'):
            return node.child_by_field_name('body') is not None
        return True

    @staticmethod
    def _enclosing(scope_stack: List[str], separator: str) -> Dict[str, str]:
        if not scope_stack:
            return {}
        return {'enclosing_type': separator.join(scope_stack)}

    @staticmethod
    def _node_name(node, content: bytes) -> Optional[str]:
        """
        Extract the name of a declaration node.

        Tries the 'name' field, then the C/C++ declarator chain
        (function_definition -> function_declarator -> identifier), then the
        first identifier-like child.
        """
        name_node = node.child_by_field_name('name')
        if name_node is None:
            declarator = node.child_by_field_name('declarator')
            while declarator is not None and declarator.child_by_field_name('declarator') is not None:
                declarator = declarator.child_by_field_name('declarator')
            name_node = declarator
        if name_node is None:
            for child in node.children:
                if child.type in _IDENTIFIER_TYPES:
                    name_node = child
                    break
        if name_node is None:
            return None
        return _text(name_node, content).strip() or None


def _text(node, content: bytes) -> str:
    return content[node.start_byte:node.end_byte].decode('utf-8', errors='replace')
