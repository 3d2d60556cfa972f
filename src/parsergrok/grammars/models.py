"""
Value objects for the grammar cache.

GrammarVersionMetadata is the only persisted model: it is written as the
metadata.json sidecar next to each cached binary. The others are computed on
demand and returned to callers.

metadata.json schema:
    {
        "language": "go",
        "version": "0.23.0",
        "repository": "tree-sitter-go",
        "downloadedAt": "2025-01-01T10:00:00+00:00",
        "platform": "linux-x86_64",
        "fileSize": 123456,
        "sha256": "..."
    }
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class GrammarVersionMetadata:
    """
    Provenance of one cached grammar binary.

    Attributes:
        language: Language identifier
        version: Grammar version
        repository: Repository the binary was downloaded from
        downloaded_at: UTC time the download was published
        platform: Platform identifier (e.g., "linux-x86_64")
        file_size: Size of the binary in bytes
        sha256: Hex digest computed at store time (None for legacy sidecars)
    """
    language: str
    version: str
    repository: str
    downloaded_at: datetime
    platform: str
    file_size: int
    sha256: Optional[str] = None

    def __post_init__(self):
        if not self.language:
            raise ValueError("GrammarVersionMetadata language cannot be empty")
        if not self.version:
            raise ValueError("GrammarVersionMetadata version cannot be empty")
        if not self.platform:
            raise ValueError("GrammarVersionMetadata platform cannot be empty")
        if self.file_size < 0:
            raise ValueError(f"file_size must be >= 0, got {self.file_size}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the metadata.json representation."""
        data = {
            'language': self.language,
            'version': self.version,
            'repository': self.repository,
            'downloadedAt': self.downloaded_at.isoformat(),
            'platform': self.platform,
            'fileSize': self.file_size,
        }
        if self.sha256 is not None:
            data['sha256'] = self.sha256
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GrammarVersionMetadata':
        """
        Create metadata from its metadata.json representation.

        Raises:
            ValueError: If a required key is missing or malformed
        """
        try:
            downloaded_at = datetime.fromisoformat(str(data['downloadedAt']).replace('Z', '+00:00'))
            if downloaded_at.tzinfo is None:
                downloaded_at = downloaded_at.replace(tzinfo=timezone.utc)
            return cls(
                language=data['language'],
                version=data['version'],
                repository=data['repository'],
                downloaded_at=downloaded_at,
                platform=data['platform'],
                file_size=int(data['fileSize']),
                sha256=data.get('sha256'),
            )
        except KeyError as e:
            raise ValueError(f"Grammar metadata is missing required key: {e.args[0]}") from e


@dataclass(frozen=True)
class CacheStats:
    """
    Aggregate statistics for the whole grammar cache.

    Attributes:
        total_languages: Number of language directories
        total_versions: Number of version directories across languages
        total_files: Number of grammar files (hidden bookkeeping files excluded)
        library_files: Number of native library files
        metadata_files: Number of metadata.json sidecars
        total_size_bytes: Size of all files
        library_size_bytes: Size of native library files only
    """
    total_languages: int = 0
    total_versions: int = 0
    total_files: int = 0
    library_files: int = 0
    metadata_files: int = 0
    total_size_bytes: int = 0
    library_size_bytes: int = 0

    @property
    def total_size_mb(self) -> float:
        return self.total_size_bytes / (1024 * 1024)


@dataclass(frozen=True)
class VersionHistoryEntry:
    """One cached version of a language, newest-first in listings."""
    version: str
    metadata: Optional[GrammarVersionMetadata]
    active: bool


@dataclass(frozen=True)
class RollbackResult:
    """
    Outcome of a rollback request.

    Attributes:
        success: True if the active version was repointed
        message: Human-readable description of the outcome
        active_version: Version active after the call (None if none)
    """
    success: bool
    message: str
    active_version: Optional[str] = None


@dataclass(frozen=True)
class DownloadProgress:
    """Snapshot of a running download, as reported to progress callbacks."""
    bytes_downloaded: int
    total_bytes: Optional[int]
    message: str

    @property
    def fraction(self) -> Optional[float]:
        if not self.total_bytes:
            return None
        return min(1.0, self.bytes_downloaded / self.total_bytes)
