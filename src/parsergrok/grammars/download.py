"""
Streaming download, verification and hashing of grammar binaries.

These helpers never touch the published cache: the manager streams into a
private staging directory, verifies and hashes the result here, and only
then moves it into place.

Progress callbacks are called with (bytes_downloaded, total_bytes, message);
total_bytes is None when the server does not declare a size.
"""

import hashlib
import logging
import threading
from pathlib import Path
from typing import Callable, Optional, Union

import httpx

from parsergrok.core.exceptions import DownloadCancelled, DownloadError
from parsergrok.grammars.models import DownloadProgress

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, Optional[int], str], None]

CHUNK_SIZE = 64 * 1024
HASH_BLOCK_SIZE = 1024 * 1024


def report_progress(callback: Optional[ProgressCallback], progress: DownloadProgress) -> None:
    """Emit a progress event if a callback is provided."""
    if callback is None:
        return
    try:
        callback(progress.bytes_downloaded, progress.total_bytes, progress.message)
    except Exception as e:
        # Callback errors must not abort the download
        logger.warning(f"Progress callback raised: {e}")


def stream_to_file(
    client: httpx.Client,
    url: str,
    target: Path,
    progress_callback: Optional[ProgressCallback] = None,
    cancel_event: Optional[threading.Event] = None,
    language: Optional[str] = None,
    version: Optional[str] = None,
) -> int:
    """
    Stream url into target, reporting progress per chunk.

    Args:
        client: HTTP client used for the request
        url: Asset URL
        target: File to write (created or truncated)
        progress_callback: Optional progress callback
        cancel_event: When set, the download stops with DownloadCancelled
        language: Language, for error context
        version: Version, for error context

    Returns:
        Number of bytes written

    Raises:
        DownloadError: On HTTP errors, non-2xx status or a truncated body
        DownloadCancelled: If cancel_event is set mid-download
    """
    downloaded = 0
    try:
        with client.stream("GET", url) as response:
            if not 200 <= response.status_code < 300:
                raise DownloadError(
                    f"Grammar download failed with status {response.status_code}: {url}",
                    language=language,
                    version=version,
                )

            declared = response.headers.get("content-length")
            total = int(declared) if declared and declared.isdigit() else None
            report_progress(progress_callback, DownloadProgress(0, total, f"Downloading {url}"))

            with open(target, "wb") as f:
                for chunk in response.iter_bytes(chunk_size=CHUNK_SIZE):
                    if cancel_event is not None and cancel_event.is_set():
                        raise DownloadCancelled(
                            f"Download cancelled: {url}", language=language, version=version
                        )
                    f.write(chunk)
                    downloaded += len(chunk)
                    report_progress(
                        progress_callback,
                        DownloadProgress(downloaded, total, f"Downloaded {downloaded} bytes"),
                    )

            if total is not None and response.num_bytes_downloaded != total:
                raise DownloadError(
                    f"Truncated download from {url}: expected {total} bytes, "
                    f"got {response.num_bytes_downloaded}",
                    language=language,
                    version=version,
                )
    except httpx.HTTPError as e:
        raise DownloadError(
            f"Network error downloading {url}: {e}", language=language, version=version
        ) from e

    return downloaded


def verify_downloaded_file(
    path: Union[str, Path],
    progress_callback: Optional[ProgressCallback] = None,
) -> int:
    """
    Check that a downloaded file exists and is not empty.

    Args:
        path: File to verify
        progress_callback: Receives the final byte count on success

    Returns:
        File size in bytes

    Raises:
        DownloadError: If the file is missing or zero-length
    """
    path = Path(path)
    if not path.is_file():
        raise DownloadError(f"Downloaded file does not exist: {path}")
    size = path.stat().st_size
    if size == 0:
        raise DownloadError(f"Downloaded file is empty: {path}")
    report_progress(
        progress_callback,
        DownloadProgress(size, size, f"Verified {path.name} ({size} bytes)"),
    )
    return size


def calculate_sha256(path: Union[str, Path]) -> str:
    """
    Streaming SHA-256 of a file.

    Raises:
        OSError: If the file cannot be read
    """
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for block in iter(lambda: f.read(HASH_BLOCK_SIZE), b""):
            digest.update(block)
    return digest.hexdigest()
