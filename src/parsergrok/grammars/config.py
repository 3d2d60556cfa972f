"""
Configuration for the grammar cache and version pinning.

GrammarConfig holds every tunable of the GrammarManager. The cache root is
resolved once, by resolve_cache_dir(), from three explicit inputs so the
precedence can be tested without touching the real environment:

    1. GrammarConfig.cache_dir (explicit configuration)
    2. PARSERGROK_GRAMMAR_CACHE_DIR (environment variable)
    3. ~/.parsergrok/grammars (default under the user's home)

Usage:
    >>> config = GrammarConfig(versions={"go": "0.21.0"})
    >>> config.effective_version("go", "0.23.0")
    '0.21.0'
"""

import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field

CACHE_DIR_ENV = "PARSERGROK_GRAMMAR_CACHE_DIR"
DEFAULT_CACHE_SUBDIR = Path(".parsergrok") / "grammars"
DEFAULT_DOWNLOAD_BASE_URL = "https://github.com/tree-sitter"
DEFAULT_MAX_CACHED_VERSIONS = 5


class GrammarConfig(BaseModel):
    """
    Grammar manager settings.

    Attributes:
        cache_dir: Explicit cache root; overrides the environment variable
        default_version: Global version pin applied to every language
        versions: Per-language version pins (language -> version)
        library_paths: Local grammar builds keyed by GrammarSpec.config_key
        download_base_url: Base URL of the grammar release host
        http_timeout: Timeout in seconds for grammar downloads
        max_download_workers: Size of the background download pool
        max_cached_versions: Default retention for cleanup_all_old_versions
    """
    cache_dir: Optional[str] = None
    default_version: Optional[str] = None
    versions: Dict[str, str] = Field(default_factory=dict)
    library_paths: Dict[str, str] = Field(default_factory=dict)
    download_base_url: str = DEFAULT_DOWNLOAD_BASE_URL
    http_timeout: float = Field(default=20.0, gt=0)
    max_download_workers: int = Field(default=2, ge=1, le=16)
    max_cached_versions: int = Field(default=DEFAULT_MAX_CACHED_VERSIONS, ge=1)

    def effective_version(self, language: str, spec_version: str) -> str:
        """
        Version to use for a language, considering configured pins.

        Checks the language-specific pin first, then the global default,
        then falls back to the version from the GrammarSpec.
        """
        pinned = _present(self.versions.get(language))
        if pinned is not None:
            return pinned
        default = _present(self.default_version)
        if default is not None:
            return default
        return spec_version

    def library_path(self, config_key: str) -> Optional[str]:
        """Configured local grammar build for a spec, if any."""
        return _present(self.library_paths.get(config_key))


def _present(value: Optional[str]) -> Optional[str]:
    """Normalize blank strings to None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve_cache_dir(
    configured: Optional[str],
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """
    Resolve the grammar cache root.

    Pure function of its inputs: explicit configuration wins over the
    environment variable, which wins over the default under home.

    Args:
        configured: Explicit configuration value (blank counts as absent)
        environ: Environment mapping (defaults to os.environ)
        home: Home directory (defaults to Path.home())

    Returns:
        The cache root path (not created)
    """
    explicit = _present(configured)
    if explicit is not None:
        return Path(explicit).expanduser()

    env = os.environ if environ is None else environ
    from_env = _present(env.get(CACHE_DIR_ENV))
    if from_env is not None:
        return Path(from_env).expanduser()

    base = home if home is not None else Path.home()
    return Path(base) / DEFAULT_CACHE_SUBDIR
