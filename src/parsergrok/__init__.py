"""
ParserGrok - language parser registry and native grammar lifecycle manager.

Routes source files to language parsers and manages the versioned on-disk
cache of native tree-sitter grammars those parsers depend on: download,
verification, rollback, cleanup and statistics.

Usage:
    from parsergrok import GrammarManager, create_default_registry

    with GrammarManager() as manager:
        registry = create_default_registry(manager)
        parser = registry.find_parser("src/main.go")
        chunks = parser.parse("src/main.go") if parser else []
"""

__version__ = "0.1.0"
__author__ = "ParserGrok Contributors"


# Lazy imports to avoid loading native dependencies at import time
def __getattr__(name: str):
    """Lazy import heavy modules only when accessed."""
    if name == "GrammarManager":
        from parsergrok.grammars.manager import GrammarManager

        return GrammarManager
    elif name == "GrammarConfig":
        from parsergrok.grammars.config import GrammarConfig

        return GrammarConfig
    elif name == "GrammarSpec":
        from parsergrok.grammars.specs import GrammarSpec

        return GrammarSpec
    elif name == "ParserRegistry":
        from parsergrok.parsers.registry import ParserRegistry

        return ParserRegistry
    elif name == "create_default_registry":
        from parsergrok.parsers.registry import create_default_registry

        return create_default_registry
    elif name == "check_grammar_health":
        from parsergrok.grammars.health import check_grammar_health

        return check_grammar_health
    elif name == "TextChunk":
        from parsergrok.core.models import TextChunk

        return TextChunk
    elif name == "CodeParser":
        from parsergrok.core.interfaces import CodeParser

        return CodeParser
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "__version__",
    "__author__",
    "GrammarManager",
    "GrammarConfig",
    "GrammarSpec",
    "ParserRegistry",
    "create_default_registry",
    "check_grammar_health",
    "TextChunk",
    "CodeParser",
]
