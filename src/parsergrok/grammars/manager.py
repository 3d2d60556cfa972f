"""
GrammarManager - versioned on-disk cache of native tree-sitter grammars.

The manager owns the grammar cache: it resolves the cache root, downloads,
verifies and atomically publishes grammar binaries, lists, rolls back and
cleans up versions, reports cache statistics, and lazily loads (and
memoizes) the native binding for each language.

Cache Layout:
    {cache_root}/{language}/{version}/{platform}/{library}{ext}
    {cache_root}/{language}/{version}/{platform}/metadata.json
    {cache_root}/{language}/.active          (pinned active version)

    Entries starting with a dot are bookkeeping (staging directories,
    trash, the active marker) and never count as versions.

Thread Safety:
    This class IS thread-safe. Native loads are compute-once per
    (symbol, version); downloads are serialized per (language, version);
    publish, rollback and cleanup are serialized per language so a publish
    is always visible before a cleanup scans the language directory.

Usage:
    >>> manager = GrammarManager()
    >>> language = manager.load_language(get_grammar_spec("go"))
    >>> if language is None:
    ...     print("no grammar available for go")
    >>> manager.cleanup_old_versions("go", 2)
"""

import json
import logging
import os
import shutil
import tempfile
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
from tree_sitter import Language
from tree_sitter_languages import get_language

from parsergrok.core.exceptions import (
    ConfigurationError,
    DownloadError,
    GrammarFilesystemError,
    ValidationError,
)
from parsergrok.grammars import download
from parsergrok.grammars.config import GrammarConfig, resolve_cache_dir as _resolve_cache_dir
from parsergrok.grammars.download import ProgressCallback
from parsergrok.grammars.memo import KeyedOnceCache
from parsergrok.grammars.models import (
    CacheStats,
    GrammarVersionMetadata,
    RollbackResult,
    VersionHistoryEntry,
)
from parsergrok.grammars.platform import platform_library_extension, platform_name
from parsergrok.grammars.specs import GrammarSpec, get_grammar_spec
from parsergrok.grammars.versions import sort_versions

logger = logging.getLogger(__name__)

METADATA_FILE = "metadata.json"
ACTIVE_MARKER = ".active"
STAGING_PREFIX = ".staging-"
TRASH_PREFIX = ".trash-"
LIBRARY_EXTENSIONS = (".so", ".dylib", ".dll")

LibraryLoader = Callable[[Path, GrammarSpec], Any]
FallbackLoader = Callable[[GrammarSpec], Any]

_NOT_READ = object()


def load_tree_sitter_library(path: Path, spec: GrammarSpec) -> Language:
    """Load a grammar from a shared library exporting spec.symbol."""
    return Language(str(path), spec.grammar_name)


def load_bundled_language(spec: GrammarSpec) -> Language:
    """Load the grammar shipped with tree-sitter-languages, if it has one."""
    return get_language(spec.grammar_name)


class GrammarManager:
    """
    Manages the native grammar lifecycle for grammar-backed parsers.

    Attributes:
        config: Grammar settings (version pins, download settings, retention)
        cache_dir: Resolved cache root
    """

    def __init__(
        self,
        config: Optional[GrammarConfig] = None,
        cache_dir: Optional[Union[str, Path]] = None,
        http_client: Optional[httpx.Client] = None,
        library_loader: Optional[LibraryLoader] = None,
        fallback_loader: Optional[FallbackLoader] = None,
    ):
        """
        Initialize the manager.

        Args:
            config: Grammar settings (defaults to GrammarConfig())
            cache_dir: Already-resolved cache root; resolved from config,
                environment and home directory when omitted
            http_client: HTTP client for downloads (created lazily if omitted)
            library_loader: Loads a grammar from a library path
            fallback_loader: Loads a bundled grammar when nothing else worked
        """
        self.config = config or GrammarConfig()
        self.cache_dir = Path(cache_dir) if cache_dir is not None else self.resolve_cache_dir()
        self._http_client = http_client
        self._owns_client = http_client is None
        self._library_loader = library_loader or load_tree_sitter_library
        self._fallback_loader = fallback_loader or load_bundled_language

        self._languages: KeyedOnceCache[Optional[Any]] = KeyedOnceCache()
        self._metadata_cache: Dict[Tuple[str, str, str], GrammarVersionMetadata] = {}
        self._active_pins: Dict[str, Any] = {}

        self._guard = threading.Lock()
        self._download_locks: Dict[Tuple[str, str], threading.RLock] = {}
        self._language_locks: Dict[str, threading.RLock] = {}
        self._executor: Optional[ThreadPoolExecutor] = None

        logger.debug(f"GrammarManager initialized with cache root {self.cache_dir}")

    # =========================================================================
    # Configuration & Platform
    # =========================================================================

    def resolve_cache_dir(self) -> Path:
        """Resolve the cache root from configuration, environment and home."""
        return _resolve_cache_dir(self.config.cache_dir)

    def platform_name(self) -> str:
        return platform_name()

    def platform_library_extension(self) -> str:
        return platform_library_extension()

    def build_download_url(self, spec: GrammarSpec) -> str:
        """Release asset URL for spec's version on this platform."""
        base = self.config.download_base_url.rstrip("/")
        return (
            f"{base}/{spec.repository}/releases/download/v{spec.version}/"
            f"{spec.library_name}{self.platform_library_extension()}"
        )

    def library_path(self, spec: GrammarSpec) -> Path:
        """Location of the cached binary for spec.version on this platform."""
        return (
            self._platform_dir(spec.language, spec.version, self.platform_name())
            / f"{spec.library_name}{self.platform_library_extension()}"
        )

    # =========================================================================
    # Native Loading
    # =========================================================================

    def load_language(self, spec: GrammarSpec, version: Optional[str] = None) -> Optional[Any]:
        """
        Load (or return the memoized) tree-sitter language for spec.

        Resolution order: a configured local build (GrammarConfig.library_paths
        or spec.env_key), then the cached binary of the active version
        (downloaded on first use), then the grammar bundled with
        tree-sitter-languages.

        Args:
            spec: Grammar spec
            version: Explicit version; defaults to the language's active version

        Returns:
            The loaded Language, or None if no grammar is available. Never raises.
        """
        resolved = version or self._resolve_version(spec)
        key = (spec.symbol, resolved)
        return self._languages.get_or_compute(key, lambda: self._load_uncached(spec, resolved))

    def language_supplier(self, spec: GrammarSpec) -> Callable[[], Optional[Any]]:
        """Deferred accessor for load_language(spec); the load happens on first call."""
        return lambda: self.load_language(spec)

    def native_loader(self, spec: GrammarSpec) -> Callable[[], bool]:
        """Deferred accessor reporting whether spec's native grammar is loadable."""
        return lambda: self.load_language(spec) is not None

    def load_cached_library(self, spec: GrammarSpec) -> Optional[Any]:
        """
        Load the cached binary for spec.version directly.

        Unlike load_language this never downloads, never consults configured
        local builds or the bundled fallback, and does not memoize: it reports
        whether that exact cached file loads.

        Returns:
            The loaded language, or None if the binary is missing or fails to load
        """
        return self._try_load(self.library_path(spec), spec)

    def _resolve_version(self, spec: GrammarSpec) -> str:
        active = self._active_version(spec.language, spec.version)
        if active is not None:
            return active
        # Nothing cached yet: the configured version is downloaded on first use
        return self.config.effective_version(spec.language, spec.version)

    def _load_uncached(self, spec: GrammarSpec, version: str) -> Optional[Any]:
        configured = self._configured_library_path(spec)
        if configured is not None:
            language = self._try_load(Path(configured), spec)
            if language is not None:
                return language

        try:
            cached = self._ensure_cached_library(spec, version)
            language = self._try_load(cached, spec)
            if language is not None:
                logger.debug(f"Loaded tree-sitter grammar {spec.language} v{version} from {cached}")
                return language
        except (DownloadError, ConfigurationError, OSError) as e:
            logger.warning(f"Grammar {spec.language} v{version} unavailable from cache: {e}")

        try:
            language = self._fallback_loader(spec)
            if language is not None:
                logger.debug(f"Loaded bundled tree-sitter grammar for {spec.language}")
                return language
        except Exception:
            logger.error(
                f"Failed to load grammar for {spec.language}. "
                f"Set {spec.config_key} or {spec.env_key} to the library path.",
                exc_info=True,
            )
        return None

    def _configured_library_path(self, spec: GrammarSpec) -> Optional[str]:
        configured = self.config.library_path(spec.config_key)
        if configured is None:
            configured = (os.environ.get(spec.env_key) or "").strip() or None
        return configured

    def _try_load(self, path: Path, spec: GrammarSpec) -> Optional[Any]:
        if not path.is_file():
            return None
        try:
            return self._library_loader(path, spec)
        except Exception as e:
            logger.warning(f"Native library load failed for {spec.language} at {path}: {e}")
            return None

    def _ensure_cached_library(self, spec: GrammarSpec, version: str) -> Path:
        versioned = spec if spec.version == version else replace(spec, version=version)
        path = self.library_path(versioned)
        if self.is_version_valid(spec.language, version):
            logger.debug(f"Using cached grammar {spec.language} v{version} for {self.platform_name()}")
            return path
        with self._download_lock(spec.language, version):
            if self.is_version_valid(spec.language, version):
                return path
            return self.download_grammar(versioned)

    # =========================================================================
    # Download & Publish
    # =========================================================================

    def download_grammar(
        self,
        spec: GrammarSpec,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Path:
        """
        Download, verify and publish spec.version for this platform.

        The binary is streamed into a private staging directory, verified,
        hashed and described by a metadata sidecar before being renamed into
        the cache. A failed or cancelled download leaves nothing visible.

        Args:
            spec: Grammar spec naming the version to download
            progress_callback: Receives (bytes_downloaded, total_bytes, message)
            cancel_event: Set it to abandon the download

        Returns:
            Path of the published binary

        Raises:
            DownloadError: Network failure, bad status, empty or truncated payload
            DownloadCancelled: cancel_event was set
            ConfigurationError: The cache root cannot be created
            GrammarFilesystemError: Staging or publishing failed
        """
        version = spec.version
        platform = self.platform_name()
        binary_name = f"{spec.library_name}{self.platform_library_extension()}"

        with self._download_lock(spec.language, version):
            language_dir = self._ensure_dir(self.cache_dir / spec.language)
            try:
                staging = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=language_dir))
            except OSError as e:
                raise GrammarFilesystemError(
                    f"Cannot create staging directory in {language_dir}: {e}", path=str(language_dir)
                ) from e
            try:
                staged_platform = staging / platform
                staged_platform.mkdir()
                binary = staged_platform / binary_name
                url = self.build_download_url(spec)

                logger.info(f"Downloading tree-sitter grammar for {spec.language} v{version} from {url}")
                download.stream_to_file(
                    self._client(), url, binary, progress_callback, cancel_event,
                    language=spec.language, version=version,
                )
                size = download.verify_downloaded_file(binary, progress_callback)
                metadata = GrammarVersionMetadata(
                    language=spec.language,
                    version=version,
                    repository=spec.repository,
                    downloaded_at=datetime.now(timezone.utc),
                    platform=platform,
                    file_size=size,
                    sha256=download.calculate_sha256(binary),
                )
                _write_json(staged_platform / METADATA_FILE, metadata.to_dict())

                self._publish(spec.language, version, platform, staging, metadata)
            except (DownloadError, GrammarFilesystemError):
                raise
            except OSError as e:
                raise GrammarFilesystemError(
                    f"Failed to stage grammar {spec.language} v{version}: {e}", path=str(staging)
                ) from e
            finally:
                shutil.rmtree(staging, ignore_errors=True)

        published = self._platform_dir(spec.language, version, platform) / binary_name
        logger.info(f"Published grammar {spec.language} v{version} to {published}")
        return published

    def download_grammar_async(
        self,
        spec: GrammarSpec,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> "Future[Path]":
        """Run download_grammar on the bounded download pool."""
        return self._pool().submit(self.download_grammar, spec, progress_callback, cancel_event)

    def _publish(
        self,
        language: str,
        version: str,
        platform: str,
        staging: Path,
        metadata: GrammarVersionMetadata,
    ) -> None:
        with self._language_lock(language):
            version_dir = self._version_dir(language, version)
            if not version_dir.exists():
                os.rename(staging, version_dir)
            else:
                target = version_dir / platform
                trash = None
                if target.exists():
                    trash = version_dir.parent / f"{TRASH_PREFIX}{uuid.uuid4().hex}"
                    os.rename(target, trash)
                os.rename(staging / platform, target)
                if trash is not None:
                    shutil.rmtree(trash, ignore_errors=True)
            with self._guard:
                self._metadata_cache[(language, version, platform)] = metadata

    verify_downloaded_file = staticmethod(download.verify_downloaded_file)
    calculate_sha256 = staticmethod(download.calculate_sha256)

    # =========================================================================
    # Version Queries
    # =========================================================================

    def get_cached_versions(self, language: str) -> List[str]:
        """
        Cached versions of a language, newest-first.

        Returns:
            Version strings (empty if the language was never cached)
        """
        _check_language(language)
        language_dir = self.cache_dir / language
        if not language_dir.is_dir():
            return []
        try:
            names = [p.name for p in language_dir.iterdir() if p.is_dir() and not p.name.startswith(".")]
        except OSError as e:
            raise GrammarFilesystemError(f"Cannot list {language_dir}: {e}", path=str(language_dir)) from e
        return sort_versions(names)

    def get_version_info(self, language: str, version: Optional[str] = None) -> Optional[GrammarVersionMetadata]:
        """
        Metadata of a cached version.

        Args:
            language: Language identifier
            version: Version to look up; None means the highest cached version

        Returns:
            The sidecar metadata, or None if not cached
        """
        if version is None:
            versions = self.get_cached_versions(language)
            if not versions:
                return None
            version = versions[0]
        else:
            _check_language(language)
        return self._load_metadata(language, version, self.platform_name())

    def get_active_version(self, language: str) -> Optional[str]:
        """
        Version used when none is requested explicitly.

        The pinned version (set by rollback) if it is still cached, else the
        configured version (GrammarConfig pins, then the spec default) if it
        is cached, else the highest cached version. load_language resolves
        through the same rule, so cleanup always protects the version that
        loading uses.

        Returns:
            The active version, or None if nothing is cached
        """
        _check_language(language)
        spec = get_grammar_spec(language)
        return self._active_version(language, spec.version if spec is not None else None)

    def _active_version(self, language: str, default_version: Optional[str]) -> Optional[str]:
        pinned = self._pinned_version(language)
        if pinned is not None and self._version_dir(language, pinned).is_dir():
            return pinned
        configured = self.config.effective_version(language, default_version)
        if configured is not None and self._version_dir(language, configured).is_dir():
            return configured
        versions = self.get_cached_versions(language)
        return versions[0] if versions else None

    def get_version_history(self, language: str) -> List[VersionHistoryEntry]:
        """All cached versions of a language with their metadata, newest-first."""
        versions = self.get_cached_versions(language)
        active = self.get_active_version(language)
        platform = self.platform_name()
        return [
            VersionHistoryEntry(
                version=v,
                metadata=self._load_metadata(language, v, platform),
                active=(v == active),
            )
            for v in versions
        ]

    def is_version_valid(self, language: str, version: str, verify_hash: bool = False) -> bool:
        """
        Check that a cached version is complete for this platform.

        Valid means: the sidecar exists, the binary exists and is non-empty,
        and its size (and, with verify_hash, its SHA-256) matches the sidecar.
        """
        platform = self.platform_name()
        metadata = self._load_metadata(language, version, platform)
        if metadata is None:
            return False
        binary = _find_library(self._platform_dir(language, version, platform))
        if binary is None:
            return False
        size = binary.stat().st_size
        if size == 0 or size != metadata.file_size:
            logger.warning(f"Cached grammar {binary} has size {size}, expected {metadata.file_size}")
            return False
        if verify_hash and metadata.sha256 and download.calculate_sha256(binary) != metadata.sha256:
            logger.warning(f"Cached grammar {binary} failed SHA-256 verification")
            return False
        return True

    # =========================================================================
    # Rollback
    # =========================================================================

    def rollback_to_version(self, language: str, version: str) -> RollbackResult:
        """
        Make a cached version the active one. Nothing is deleted.

        Returns:
            RollbackResult; unsuccessful if version is not cached
        """
        with self._language_lock(language):
            versions = self.get_cached_versions(language)
            if version not in versions:
                return RollbackResult(
                    success=False,
                    message=f"Version {version} of {language} is not cached",
                    active_version=self.get_active_version(language),
                )
            previous = self.get_active_version(language)
            self._write_active_marker(language, version)

        logger.info(f"Rolled back grammar {language} from {previous} to {version}")
        return RollbackResult(
            success=True,
            message=f"Rolled back {language} from {previous} to {version}",
            active_version=version,
        )

    def rollback_to_previous(self, language: str) -> RollbackResult:
        """Activate the cached version immediately below the active one."""
        with self._language_lock(language):
            versions = self.get_cached_versions(language)
            if not versions:
                return RollbackResult(False, f"No cached versions for {language}", None)
            current = self.get_active_version(language)
            index = versions.index(current)
            if index + 1 >= len(versions):
                return RollbackResult(
                    False, f"No version older than {current} is cached for {language}", current
                )
            return self.rollback_to_version(language, versions[index + 1])

    # =========================================================================
    # Cleanup
    # =========================================================================

    def cleanup_old_versions(self, language: str, max_versions: int) -> int:
        """
        Keep the max_versions newest versions of a language, delete the rest.

        The active version is never deleted: if it falls outside the window,
        it is kept together with the max_versions - 1 newest other versions.

        Returns:
            Number of version directories removed

        Raises:
            ValidationError: If max_versions < 1
            GrammarFilesystemError: If a version directory cannot be removed
        """
        if max_versions < 1:
            raise ValidationError(f"max_versions must be >= 1, got {max_versions}")

        with self._language_lock(language):
            versions = self.get_cached_versions(language)
            if len(versions) <= max_versions:
                return 0

            active = self.get_active_version(language)
            keep = versions[:max_versions]
            if active not in keep:
                keep = [active] + [v for v in versions if v != active][:max_versions - 1]

            removed = 0
            for version in versions:
                if version in keep:
                    continue
                self._remove_version(language, version)
                removed += 1

        if removed:
            logger.info(f"Removed {removed} old grammar versions of {language}, kept {keep}")
        return removed

    def cleanup_all_old_versions(self, max_versions: Optional[int] = None) -> int:
        """Apply cleanup_old_versions to every cached language."""
        if max_versions is None:
            max_versions = self.config.max_cached_versions
        if max_versions < 1:
            raise ValidationError(f"max_versions must be >= 1, got {max_versions}")
        return sum(self.cleanup_old_versions(language, max_versions) for language in self.cached_languages())

    def cached_languages(self) -> List[str]:
        """Languages with a directory in the cache, sorted by name."""
        if not self.cache_dir.is_dir():
            return []
        return sorted(p.name for p in self.cache_dir.iterdir() if p.is_dir() and not p.name.startswith("."))

    def _remove_version(self, language: str, version: str) -> None:
        version_dir = self._version_dir(language, version)
        trash = version_dir.parent / f"{TRASH_PREFIX}{uuid.uuid4().hex}"
        try:
            os.rename(version_dir, trash)
            shutil.rmtree(trash)
        except OSError as e:
            raise GrammarFilesystemError(
                f"Failed to remove grammar {language} v{version}: {e}", path=str(version_dir)
            ) from e
        with self._guard:
            for key in [k for k in self._metadata_cache if k[0] == language and k[1] == version]:
                del self._metadata_cache[key]
        logger.debug(f"Removed cached grammar {language} v{version}")

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_cache_stats(self) -> CacheStats:
        """Walk the cache once and aggregate counts and sizes."""
        if not self.cache_dir.is_dir():
            return CacheStats()

        languages = versions = files = library_files = metadata_files = 0
        total_size = library_size = 0
        root_depth = len(self.cache_dir.parts)

        for dirpath, dirnames, filenames in os.walk(self.cache_dir):
            dirnames[:] = [d for d in dirnames if not d.startswith(".")]
            depth = len(Path(dirpath).parts) - root_depth
            if depth == 0:
                languages += len(dirnames)
            elif depth == 1:
                versions += len(dirnames)

            for name in filenames:
                if name.startswith("."):
                    continue
                size = (Path(dirpath) / name).stat().st_size
                files += 1
                total_size += size
                if name == METADATA_FILE:
                    metadata_files += 1
                elif name.endswith(LIBRARY_EXTENSIONS):
                    library_files += 1
                    library_size += size

        return CacheStats(
            total_languages=languages,
            total_versions=versions,
            total_files=files,
            library_files=library_files,
            metadata_files=metadata_files,
            total_size_bytes=total_size,
            library_size_bytes=library_size,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Shut down the download pool and the owned HTTP client."""
        with self._guard:
            executor, self._executor = self._executor, None
            client = self._http_client if self._owns_client else None
            if self._owns_client:
                self._http_client = None
        if executor is not None:
            executor.shutdown(wait=True)
        if client is not None:
            client.close()

    def __enter__(self) -> "GrammarManager":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _version_dir(self, language: str, version: str) -> Path:
        return self.cache_dir / language / version

    def _platform_dir(self, language: str, version: str, platform: str) -> Path:
        return self._version_dir(language, version) / platform

    def _client(self) -> httpx.Client:
        with self._guard:
            if self._http_client is None:
                self._http_client = httpx.Client(timeout=self.config.http_timeout, follow_redirects=True)
            return self._http_client

    def _pool(self) -> ThreadPoolExecutor:
        with self._guard:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.config.max_download_workers,
                    thread_name_prefix="grammar-download",
                )
            return self._executor

    def _download_lock(self, language: str, version: str) -> threading.RLock:
        with self._guard:
            return self._download_locks.setdefault((language, version), threading.RLock())

    def _language_lock(self, language: str) -> threading.RLock:
        with self._guard:
            return self._language_locks.setdefault(language, threading.RLock())

    def _ensure_dir(self, path: Path) -> Path:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Cannot create grammar cache directory {path}: {e}") from e
        return path

    def _load_metadata(self, language: str, version: str, platform: str) -> Optional[GrammarVersionMetadata]:
        key = (language, version, platform)
        with self._guard:
            cached = self._metadata_cache.get(key)
        if cached is not None:
            return cached

        path = self._platform_dir(language, version, platform) / METADATA_FILE
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            metadata = GrammarVersionMetadata.from_dict(data)
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, ValueError, TypeError) as e:
            logger.warning(f"Ignoring corrupt grammar metadata {path}: {e}")
            return None
        except OSError as e:
            raise GrammarFilesystemError(f"Cannot read {path}: {e}", path=str(path)) from e

        with self._guard:
            self._metadata_cache[key] = metadata
        return metadata

    def _pinned_version(self, language: str) -> Optional[str]:
        with self._guard:
            pinned = self._active_pins.get(language, _NOT_READ)
        if pinned is not _NOT_READ:
            return pinned

        pinned = None
        marker = self.cache_dir / language / ACTIVE_MARKER
        try:
            pinned = json.loads(marker.read_text(encoding="utf-8")).get("version")
        except FileNotFoundError:
            pass
        except (json.JSONDecodeError, AttributeError) as e:
            logger.warning(f"Ignoring corrupt active-version marker {marker}: {e}")

        with self._guard:
            self._active_pins[language] = pinned
        return pinned

    def _write_active_marker(self, language: str, version: str) -> None:
        marker = self.cache_dir / language / ACTIVE_MARKER
        try:
            _write_json(marker, {"version": version, "updatedAt": datetime.now(timezone.utc).isoformat()})
        except OSError as e:
            raise GrammarFilesystemError(f"Cannot write {marker}: {e}", path=str(marker)) from e
        with self._guard:
            self._active_pins[language] = version


def _check_language(language: str) -> None:
    if not language or not language.strip():
        raise ValidationError("language must not be blank")
    if "/" in language or "\\" in language or language.startswith("."):
        raise ValidationError(f"Invalid language identifier: {language!r}")


def _find_library(platform_dir: Path) -> Optional[Path]:
    if not platform_dir.is_dir():
        return None
    for candidate in sorted(platform_dir.iterdir()):
        if candidate.is_file() and candidate.name.endswith(LIBRARY_EXTENSIONS):
            return candidate
    return None


def _write_json(path: Path, data: Dict[str, Any]) -> None:
    """Write JSON atomically using a temp file in the same directory + os.replace."""
    fd, tmp_path = tempfile.mkstemp(suffix=".tmp", prefix=".write-", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
