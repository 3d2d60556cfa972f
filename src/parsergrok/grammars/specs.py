"""
Static grammar descriptions for the natively loaded tree-sitter languages.

Each GrammarSpec describes how to locate and load one language's native
grammar binding: the exported entry-point symbol, the library base name,
the configuration and environment keys that may point at a local build,
the upstream repository and the default version.

Usage:
    >>> spec = get_grammar_spec("go")
    >>> spec.symbol
    'tree_sitter_go'
    >>> create_grammar_spec_for_version("go", "0.21.0").version
    '0.21.0'

Adding New Languages:
    1. Add a _spec() entry to GRAMMAR_SPECS
    2. Add node types to parsers/language_configs.py
    3. Register the extensions in parsers/registry.py
"""

from dataclasses import dataclass, fields, replace
from typing import Dict, Optional

from parsergrok.core.exceptions import ValidationError


@dataclass(frozen=True)
class GrammarSpec:
    """
    Immutable metadata describing how to load a tree-sitter grammar.

    Attributes:
        language: Language identifier (e.g., "go")
        symbol: Native entry-point symbol (e.g., "tree_sitter_go")
        library_name: Library base name without extension (e.g., "tree-sitter-go")
        config_key: Key into GrammarConfig.library_paths for a local build
        env_key: Environment variable that may point at a local build
        repository: Upstream repository serving release binaries
        version: Default grammar version
    """
    language: str
    symbol: str
    library_name: str
    config_key: str
    env_key: str
    repository: str
    version: str

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"GrammarSpec.{f.name} must be a non-empty string")

    @property
    def grammar_name(self) -> str:
        """Symbol without the tree_sitter_ prefix, as tree-sitter expects it."""
        prefix = "tree_sitter_"
        if self.symbol.startswith(prefix):
            return self.symbol[len(prefix):]
        return self.symbol


def _spec(language: str, version: str, repo_suffix: Optional[str] = None) -> GrammarSpec:
    suffix = repo_suffix or language
    return GrammarSpec(
        language=language,
        symbol=f"tree_sitter_{suffix.replace('-', '_')}",
        library_name=f"tree-sitter-{suffix}",
        config_key=f"grammars.{language}.library",
        env_key=f"TREE_SITTER_{language.upper()}_LIB",
        repository=f"tree-sitter-{suffix}",
        version=version,
    )


# ==============================================================================
# Supported Grammars
# ==============================================================================

GRAMMAR_SPECS: Dict[str, GrammarSpec] = {
    spec.language: spec
    for spec in (
        _spec("python", "0.20.4"),
        _spec("javascript", "0.21.0"),
        _spec("typescript", "0.21.0"),
        _spec("c", "0.21.0"),
        _spec("cpp", "0.21.0"),
        _spec("java", "0.21.0"),
        _spec("go", "0.23.0"),
        _spec("rust", "0.23.0"),
        _spec("kotlin", "0.3.0"),
        _spec("ruby", "0.23.0"),
        _spec("scala", "0.23.0"),
        _spec("swift", "0.6.0"),
        _spec("php", "0.23.0"),
        _spec("csharp", "0.23.0", repo_suffix="c-sharp"),
    )
}


def get_grammar_spec(language: str) -> Optional[GrammarSpec]:
    """
    Look up the static grammar spec for a language.

    Args:
        language: Language identifier (case-insensitive)

    Returns:
        The GrammarSpec, or None if the language has no native grammar
    """
    if not language:
        return None
    return GRAMMAR_SPECS.get(language.lower())


def create_grammar_spec_for_version(language: str, version: str) -> Optional[GrammarSpec]:
    """
    Build a spec for a specific version of a known language.

    Args:
        language: Language identifier
        version: Version to substitute for the default

    Returns:
        A copy of the table spec pinned to version, or None for unknown languages
    """
    spec = get_grammar_spec(language)
    if spec is None:
        return None
    return replace(spec, version=version)
