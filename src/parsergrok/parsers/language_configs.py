"""
Language-specific node type tables for tree-sitter chunk extraction.

Each grammar-backed language maps its tree-sitter node types onto the
normalized entity types emitted as TextChunks (function, method, class,
struct, interface, ...).

Config keys:
    function_types: Nodes emitted as 'function' outside a type scope
    method_types: Nodes emitted as 'method' inside a type scope; a node type
        that is ONLY a method type (Go, Java, C#) is a method anywhere
    class_types: Node type -> entity type; these also open a type scope
    scope_types: Node type -> field holding the scope name; scopes qualify
        nested names but are not emitted (Rust impl blocks, C++ namespaces)
    type_kinds: Refines a class entity from the node's 'type' field (Go)
    separator: Joins enclosing scope names into the qualified entity name

Usage:
    >>> config = get_config_for_language('go')
    >>> config['method_types']
    ['method_declaration']

Adding New Languages:
    1. Add file extension mappings to EXTENSION_MAP
    2. Add a config dict with the required node types
    3. Add a GrammarSpec in parsergrok.grammars.specs
    4. Add tests for the new language
"""

from typing import Any, Dict, Optional, Set
from pathlib import Path


# ==============================================================================
# Extension to Language Mapping
# ==============================================================================

EXTENSION_MAP: Dict[str, str] = {
    # Python
    'py': 'python',
    'pyw': 'python',
    'pyi': 'python',  # Type stub files

    # JavaScript/TypeScript
    'js': 'javascript',
    'jsx': 'javascript',
    'mjs': 'javascript',  # ES6 modules
    'cjs': 'javascript',  # CommonJS modules
    'ts': 'typescript',
    'tsx': 'typescript',

    # C/C++
    'c': 'c',
    'h': 'c',  # Headers go to C; C++ headers use .hpp/.hh
    'cpp': 'cpp',
    'cc': 'cpp',
    'cxx': 'cpp',
    'hpp': 'cpp',
    'hh': 'cpp',

    # JVM
    'java': 'java',
    'kt': 'kotlin',
    'kts': 'kotlin',  # Kotlin script files
    'scala': 'scala',
    'sc': 'scala',  # Scala worksheets / Ammonite scripts

    # Others
    'go': 'go',
    'rs': 'rust',
    'rb': 'ruby',
    'swift': 'swift',
    'php': 'php',
    'cs': 'csharp',
}


# ==============================================================================
# Language Configurations
# ==============================================================================

LANGUAGE_CONFIGS: Dict[str, Dict[str, Any]] = {

    'python': {
        'function_types': ['function_definition'],
        'method_types': ['function_definition'],
        'class_types': {'class_definition': 'class'},
        'separator': '.',
    },

    'javascript': {
        'function_types': [
            'function_declaration',            # function foo() {}
            'generator_function_declaration',  # function* foo() {}
        ],
        'method_types': ['method_definition'],
        'class_types': {'class_declaration': 'class'},
        'separator': '.',
    },

    'typescript': {
        'function_types': [
            'function_declaration',
            'generator_function_declaration',
        ],
        'method_types': [
            'method_definition',
            'method_signature',           # interface members
            'abstract_method_signature',
        ],
        'class_types': {
            'class_declaration': 'class',
            'abstract_class_declaration': 'class',
            'interface_declaration': 'interface',
            'enum_declaration': 'enum',
        },
        'separator': '.',
    },

    # C function names live under declarator -> function_declarator -> declarator
    'c': {
        'function_types': ['function_definition'],
        'method_types': [],
        'class_types': {
            'struct_specifier': 'struct',
            'union_specifier': 'union',
            'enum_specifier': 'enum',
        },
        'separator': '.',
    },

    'cpp': {
        'function_types': ['function_definition'],
        'method_types': ['function_definition'],
        'class_types': {
            'class_specifier': 'class',
            'struct_specifier': 'struct',
            'union_specifier': 'union',
            'enum_specifier': 'enum',
        },
        'scope_types': {'namespace_definition': 'name'},
        'separator': '::',
    },

    'java': {
        'function_types': [],
        'method_types': ['method_declaration', 'constructor_declaration'],
        'class_types': {
            'class_declaration': 'class',
            'interface_declaration': 'interface',
            'enum_declaration': 'enum',
            'record_declaration': 'record',
            'annotation_type_declaration': 'annotation',
        },
        'separator': '.',
    },

    # Go methods are top-level; the receiver is kept as an attribute
    'go': {
        'function_types': ['function_declaration'],
        'method_types': ['method_declaration'],
        'class_types': {'type_spec': 'type'},
        'type_kinds': {
            'struct_type': 'struct',
            'interface_type': 'interface',
        },
        'separator': '.',
    },

    'rust': {
        'function_types': ['function_item'],
        'method_types': ['function_item', 'function_signature_item'],
        'class_types': {
            'struct_item': 'struct',
            'enum_item': 'enum',
            'trait_item': 'trait',
            'union_item': 'union',
        },
        'scope_types': {
            'impl_item': 'type',  # impl Foo { ... } / impl Trait for Foo { ... }
            'mod_item': 'name',
        },
        'separator': '::',
    },

    'kotlin': {
        'function_types': ['function_declaration'],
        'method_types': ['function_declaration'],
        'class_types': {
            'class_declaration': 'class',
            'object_declaration': 'object',
        },
        'separator': '.',
    },

    'ruby': {
        'function_types': ['method', 'singleton_method'],
        'method_types': ['method', 'singleton_method'],
        'class_types': {
            'class': 'class',
            'module': 'module',
        },
        'separator': '::',
    },

    'scala': {
        'function_types': ['function_definition', 'function_declaration'],
        'method_types': ['function_definition', 'function_declaration'],
        'class_types': {
            'class_definition': 'class',
            'object_definition': 'object',
            'trait_definition': 'trait',
        },
        'separator': '.',
    },

    'swift': {
        'function_types': ['function_declaration'],
        'method_types': ['function_declaration', 'init_declaration'],
        'class_types': {
            'class_declaration': 'class',  # also struct/enum/extension
            'protocol_declaration': 'protocol',
        },
        'separator': '.',
    },

    'php': {
        'function_types': ['function_definition'],
        'method_types': ['method_declaration'],
        'class_types': {
            'class_declaration': 'class',
            'interface_declaration': 'interface',
            'trait_declaration': 'trait',
            'enum_declaration': 'enum',
        },
        'separator': '::',
    },

    'csharp': {
        'function_types': ['local_function_statement'],
        'method_types': ['method_declaration', 'constructor_declaration'],
        'class_types': {
            'class_declaration': 'class',
            'interface_declaration': 'interface',
            'struct_declaration': 'struct',
            'enum_declaration': 'enum',
            'record_declaration': 'record',
        },
        'scope_types': {'namespace_declaration': 'name'},
        'separator': '.',
    },
}


# ==============================================================================
# Helper Functions
# ==============================================================================

def normalize_extension(extension: Optional[str]) -> Optional[str]:
    """
    Normalize an extension to its registry key: lower-case, no leading dot.

    Returns:
        The key, or None if nothing is left after stripping

    Examples:
        >>> normalize_extension('.PY')
        'py'
        >>> normalize_extension('  ') is None
        True
    """
    if extension is None:
        return None
    key = extension.strip().lstrip('.').strip().lower()
    return key or None


def extension_of(filepath) -> Optional[str]:
    """
    Registry key for a file path: its last suffix, normalized.

    Names without a suffix, or ending in a dot, have no key.

    Examples:
        >>> extension_of('/src/Main.JAVA')
        'java'
        >>> extension_of('Makefile') is None
        True
        >>> extension_of('archive.') is None
        True
    """
    if filepath is None:
        return None
    name = Path(str(filepath).strip()).name
    if not name or name.endswith('.') or '.' not in name.lstrip('.'):
        return None
    return normalize_extension(name.rsplit('.', 1)[1])


def get_language_for_file(filepath) -> Optional[str]:
    """
    Determine the programming language from a file path.

    Examples:
        >>> get_language_for_file('example.py')
        'python'
        >>> get_language_for_file('unknown.txt') is None
        True
    """
    key = extension_of(filepath)
    return EXTENSION_MAP.get(key) if key else None


def get_config_for_language(language: str) -> Dict[str, Any]:
    """
    Retrieve the node type configuration for a language.

    Raises:
        KeyError: If the language is not supported
    """
    if language not in LANGUAGE_CONFIGS:
        raise KeyError(
            f"Unsupported language: {language}. "
            f"Supported languages: {', '.join(LANGUAGE_CONFIGS.keys())}"
        )
    return LANGUAGE_CONFIGS[language]


def get_extensions_for_language(language: str) -> Set[str]:
    """All registry keys mapped to a language."""
    return {ext for ext, lang in EXTENSION_MAP.items() if lang == language}


def get_supported_extensions() -> Set[str]:
    """Set of every mapped extension (without the dot)."""
    return set(EXTENSION_MAP.keys())
