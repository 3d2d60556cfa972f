"""
PythonAstParser - hand-written Python parser built on the ast module.

Python needs no native grammar: the interpreter's own parser already
produces a full syntax tree, so this parser is always available and never
touches the grammar cache.

Chunks:
    - class: every class definition (nested classes are qualified)
    - function: module-level and nested functions
    - method: functions whose direct parent is a class

Attributes carry 'parameters', 'return_type', 'decorators', 'docstring'
(first line), 'enclosing_type' and 'async' where present.
"""

import ast
import logging
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from parsergrok.core.interfaces import CodeParser, PathLike
from parsergrok.core.models import TextChunk
from parsergrok.parsers.language_configs import extension_of

logger = logging.getLogger(__name__)

PYTHON_EXTENSIONS = frozenset({'py', 'pyw', 'pyi'})


class PythonAstParser(CodeParser):
    """CodeParser for Python source files. Stateless and thread-safe."""

    @property
    def language(self) -> str:
        return 'python'

    def supports(self, filepath: PathLike) -> bool:
        return extension_of(filepath) in PYTHON_EXTENSIONS

    def parse(self, filepath: PathLike) -> List[TextChunk]:
        """
        Parse a Python file into class/function/method chunks.

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        file_path = Path(filepath)
        if not self.supports(file_path):
            return []
        if not file_path.is_file():
            raise FileNotFoundError(f"File not found: {filepath}")

        content = file_path.read_bytes()
        try:
            tree = ast.parse(content, filename=str(file_path))
        except (SyntaxError, ValueError) as e:
            logger.warning(f"Skipping unparsable Python file {filepath}: {e}")
            return []

        visitor = _ChunkVisitor(content, str(file_path))
        visitor.visit(tree)
        logger.debug(f"Parsed {filepath} - found {len(visitor.chunks)} chunks")
        return visitor.chunks


class _ChunkVisitor(ast.NodeVisitor):
    """Collects chunks while tracking the enclosing class/function path."""

    def __init__(self, content: bytes, source_file: str):
        self.content = content
        self.source_file = source_file
        self.chunks: List[TextChunk] = []
        self._scope: List[str] = []
        self._in_class: List[bool] = []

        # Byte offset of the start of every line (ast columns are UTF-8 byte offsets)
        self._line_offsets = [0]
        for line in content.splitlines(keepends=True):
            self._line_offsets.append(self._line_offsets[-1] + len(line))

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        attributes = self._common_attributes(node)
        if node.bases:
            attributes['bases'] = ', '.join(ast.unparse(b) for b in node.bases)
        self._emit(node, 'class', attributes)
        self._descend(node, is_class=True)

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        self._visit_callable(node)

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:
        self._visit_callable(node, is_async=True)

    def _visit_callable(self, node, is_async: bool = False) -> None:
        entity_type = 'method' if self._in_class and self._in_class[-1] else 'function'
        attributes = self._common_attributes(node)
        attributes['parameters'] = f"({ast.unparse(node.args)})"
        if node.returns is not None:
            attributes['return_type'] = ast.unparse(node.returns)
        if is_async:
            attributes['async'] = 'true'
        self._emit(node, entity_type, attributes)
        self._descend(node, is_class=False)

    def _descend(self, node, is_class: bool) -> None:
        self._scope.append(node.name)
        self._in_class.append(is_class)
        self.generic_visit(node)
        self._in_class.pop()
        self._scope.pop()

    def _common_attributes(self, node) -> Dict[str, str]:
        attributes: Dict[str, str] = {}
        if self._scope:
            attributes['enclosing_type'] = '.'.join(self._scope)
        if node.decorator_list:
            attributes['decorators'] = ', '.join(ast.unparse(d) for d in node.decorator_list)
        docstring = ast.get_docstring(node)
        if docstring:
            attributes['docstring'] = docstring.strip().splitlines()[0]
        return attributes

    def _emit(self, node, entity_type: str, attributes: Dict[str, str]) -> None:
        start_line, start_col = _start_position(node, node.decorator_list)
        start_byte = self._line_offsets[start_line - 1] + start_col
        end_byte = self._line_offsets[node.end_lineno - 1] + node.end_col_offset
        self.chunks.append(TextChunk(
            content=self.content[start_byte:end_byte].decode('utf-8', errors='replace'),
            language='python',
            entity_type=entity_type,
            entity_name='.'.join(self._scope + [node.name]),
            source_file=self.source_file,
            start_line=start_line,
            end_line=node.end_lineno,
            start_byte=start_byte,
            end_byte=end_byte,
            attributes=attributes,
        ))


def _start_position(node, decorators: Sequence[ast.expr]) -> Tuple[int, int]:
    """Decorated definitions start at their first decorator line."""
    if decorators:
        return min(d.lineno for d in decorators), node.col_offset
    return node.lineno, node.col_offset
