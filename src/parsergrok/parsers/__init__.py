"""
Parsers for ParserGrok.

A hand-written ast parser for Python and tree-sitter backed parsers for
every other supported language, routed by ParserRegistry.
"""

from .registry import ParserRegistry, create_default_registry, GRAMMAR_LANGUAGES
from .treesitter_parser import TreeSitterCodeParser
from .python_parser import PythonAstParser
from .language_configs import (
    get_language_for_file,
    get_config_for_language,
    get_supported_extensions,
    EXTENSION_MAP,
    LANGUAGE_CONFIGS,
)

__all__ = [
    "ParserRegistry",
    "create_default_registry",
    "GRAMMAR_LANGUAGES",
    "TreeSitterCodeParser",
    "PythonAstParser",
    "get_language_for_file",
    "get_config_for_language",
    "get_supported_extensions",
    "EXTENSION_MAP",
    "LANGUAGE_CONFIGS",
]
