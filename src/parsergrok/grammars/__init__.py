"""
Native grammar lifecycle: specs, configuration, versioned cache management.
"""

from .specs import GrammarSpec, GRAMMAR_SPECS, get_grammar_spec, create_grammar_spec_for_version
from .config import GrammarConfig, resolve_cache_dir
from .models import (
    GrammarVersionMetadata,
    CacheStats,
    VersionHistoryEntry,
    RollbackResult,
    DownloadProgress,
)
from .manager import GrammarManager
from .health import GrammarStatus, GrammarDetail, GrammarHealthStatus, check_grammar_health
from .prefetch import PrefetchResult, prefetch_grammars

__all__ = [
    "GrammarSpec",
    "GRAMMAR_SPECS",
    "get_grammar_spec",
    "create_grammar_spec_for_version",
    "GrammarConfig",
    "resolve_cache_dir",
    "GrammarVersionMetadata",
    "CacheStats",
    "VersionHistoryEntry",
    "RollbackResult",
    "DownloadProgress",
    "GrammarManager",
    "GrammarStatus",
    "GrammarDetail",
    "GrammarHealthStatus",
    "check_grammar_health",
    "PrefetchResult",
    "prefetch_grammars",
]
