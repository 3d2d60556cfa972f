"""
Grammar health report.

Checks, for each expected language, whether a grammar version is cached,
whether the cached binary matches its recorded checksum, and whether that
binary itself loads. Configured local builds and the bundled fallback are
not consulted. Intended for readiness checks and diagnostics: the check
never raises, it reports.

Usage:
    >>> status = check_grammar_health(manager)
    >>> if not status.healthy:
    ...     for detail in status.failed():
    ...         print(detail.language, detail.error_message)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from parsergrok.grammars.manager import GrammarManager
from parsergrok.grammars.specs import GRAMMAR_SPECS, create_grammar_spec_for_version, get_grammar_spec

logger = logging.getLogger(__name__)


class GrammarStatus(Enum):
    """Health state of one grammar."""
    LOADED = "loaded"
    NOT_CACHED = "not_cached"
    NOT_CONFIGURED = "not_configured"
    FAILED = "failed"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    GrammarStatus.LOADED: "Grammar is loaded and available",
    GrammarStatus.NOT_CACHED: "Grammar not cached locally",
    GrammarStatus.NOT_CONFIGURED: "Grammar not configured",
    GrammarStatus.FAILED: "Grammar failed to load",
}


@dataclass(frozen=True)
class GrammarDetail:
    """Health of a single language's grammar."""
    language: str
    status: GrammarStatus
    version: Optional[str] = None
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "language": self.language,
            "status": self.status.value,
            "version": self.version,
            "error": self.error_message,
        }


@dataclass(frozen=True)
class GrammarHealthStatus:
    """
    Aggregate health over all checked grammars.

    Attributes:
        details: Per-language results, in check order
    """
    details: List[GrammarDetail] = field(default_factory=list)

    @property
    def total_grammars(self) -> int:
        return len(self.details)

    @property
    def loaded_grammars(self) -> int:
        return sum(1 for d in self.details if d.status is GrammarStatus.LOADED)

    @property
    def failed_grammars(self) -> int:
        return sum(1 for d in self.details if d.status is GrammarStatus.FAILED)

    @property
    def healthy(self) -> bool:
        """True when no grammar failed; missing grammars are not failures."""
        return self.failed_grammars == 0

    def failed(self) -> List[GrammarDetail]:
        return [d for d in self.details if d.status is GrammarStatus.FAILED]

    def detail(self, language: str) -> Optional[GrammarDetail]:
        for d in self.details:
            if d.language == language:
                return d
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "healthy": self.healthy,
            "totalGrammars": self.total_grammars,
            "loadedGrammars": self.loaded_grammars,
            "failedGrammars": self.failed_grammars,
            "grammars": [d.to_dict() for d in self.details],
        }


def check_grammar_health(
    manager: GrammarManager,
    languages: Optional[Iterable[str]] = None,
) -> GrammarHealthStatus:
    """
    Check that each language's active cached grammar loads.

    Args:
        manager: Grammar manager to query
        languages: Languages to check (defaults to every language with a
            GrammarSpec)

    Returns:
        GrammarHealthStatus with one GrammarDetail per language
    """
    expected = list(languages) if languages is not None else list(GRAMMAR_SPECS)
    details = [_check_language(manager, language) for language in expected]
    status = GrammarHealthStatus(details)
    logger.debug(
        f"Grammar health check: {status.loaded_grammars}/{status.total_grammars} grammars loaded, "
        f"{status.failed_grammars} failed"
    )
    return status


def _check_language(manager: GrammarManager, language: str) -> GrammarDetail:
    if get_grammar_spec(language) is None:
        return GrammarDetail(language, GrammarStatus.NOT_CONFIGURED)
    try:
        version = manager.get_active_version(language)
        if version is None:
            return GrammarDetail(language, GrammarStatus.NOT_CACHED)

        if not manager.is_version_valid(language, version, verify_hash=True):
            return GrammarDetail(language, GrammarStatus.FAILED, version, "Cached grammar failed verification")
        spec = create_grammar_spec_for_version(language, version)
        if manager.load_cached_library(spec) is None:
            return GrammarDetail(language, GrammarStatus.FAILED, version, "Failed to load grammar")
        return GrammarDetail(language, GrammarStatus.LOADED, version)
    except Exception as e:
        logger.debug(f"Failed to check grammar status for {language}: {e}", exc_info=True)
        return GrammarDetail(language, GrammarStatus.FAILED, error_message=str(e))
