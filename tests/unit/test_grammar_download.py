"""Unit tests for grammar download, verification and hashing."""
import hashlib
import json
import threading

import httpx
import pytest

from parsergrok.core.exceptions import DownloadCancelled, DownloadError
from parsergrok.grammars.download import calculate_sha256, verify_downloaded_file
from parsergrok.grammars.specs import get_grammar_spec


def _leftovers(manager, language):
    language_dir = manager.cache_dir / language
    if not language_dir.exists():
        return []
    return [p.name for p in language_dir.iterdir() if p.name.startswith(".staging-") or p.name.startswith(".trash-")]


class TestVerifyAndHash:

    def test_sha256_of_known_content(self, tmp_path):
        f = tmp_path / "hello.txt"
        f.write_bytes(b"Hello, World!")

        assert calculate_sha256(f) == "dffd6021bb2bd5b0af676290809ec3a53191dd81c7f70a4b28688a362182986f"

    def test_sha256_of_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            calculate_sha256(tmp_path / "missing.bin")

    def test_verify_missing_file(self, tmp_path):
        missing = tmp_path / "missing.so"
        with pytest.raises(DownloadError) as exc_info:
            verify_downloaded_file(missing)
        assert "does not exist" in str(exc_info.value)
        assert str(missing) in str(exc_info.value)

    def test_verify_empty_file(self, tmp_path):
        empty = tmp_path / "empty.so"
        empty.write_bytes(b"")
        with pytest.raises(DownloadError) as exc_info:
            verify_downloaded_file(empty)
        assert "empty" in str(exc_info.value)

    def test_verify_reports_final_progress(self, tmp_path):
        f = tmp_path / "grammar.so"
        f.write_bytes(b"x" * 42)
        events = []

        size = verify_downloaded_file(f, lambda done, total, msg: events.append((done, total, msg)))

        assert size == 42
        assert events == [(42, 42, "Verified grammar.so (42 bytes)")]

    def test_verify_survives_failing_callback(self, tmp_path):
        f = tmp_path / "grammar.so"
        f.write_bytes(b"x")

        def broken(done, total, msg):
            raise RuntimeError("ui went away")

        assert verify_downloaded_file(f, broken) == 1

    def test_manager_exposes_helpers(self, manager, tmp_path):
        f = tmp_path / "hello.txt"
        f.write_bytes(b"Hello, World!")
        assert manager.calculate_sha256(f) == calculate_sha256(f)
        assert manager.verify_downloaded_file(f) == 13


class TestDownloadGrammar:

    def test_download_publishes_version(self, manager, grammar_server):
        spec = get_grammar_spec("go")
        payload = b"\x7fELF" + b"\x00" * 1000
        grammar_server.add(spec, payload=payload)

        path = manager.download_grammar(spec)

        assert path == manager.library_path(spec)
        assert path.read_bytes() == payload
        assert manager.get_cached_versions("go") == [spec.version]
        assert manager.is_version_valid("go", spec.version, verify_hash=True)
        assert _leftovers(manager, "go") == []

    def test_metadata_sidecar(self, manager, grammar_server):
        spec = get_grammar_spec("rust")
        payload = b"rust grammar bytes"
        grammar_server.add(spec, payload=payload)

        path = manager.download_grammar(spec)
        data = json.loads((path.parent / "metadata.json").read_text())

        assert data["language"] == "rust"
        assert data["version"] == spec.version
        assert data["repository"] == "tree-sitter-rust"
        assert data["platform"] == manager.platform_name()
        assert data["fileSize"] == len(payload)
        assert data["sha256"] == hashlib.sha256(payload).hexdigest()
        assert "downloadedAt" in data

    def test_progress_events(self, manager, grammar_server):
        spec = get_grammar_spec("go")
        grammar_server.add(spec, payload=b"x" * 100)
        events = []

        manager.download_grammar(spec, progress_callback=lambda d, t, m: events.append((d, t, m)))

        assert events[0][0] == 0
        assert events[0][1] == 100
        assert events[-1] == (100, 100, f"Verified {manager.library_path(spec).name} (100 bytes)")
        assert [e[0] for e in events] == sorted(e[0] for e in events)

    def test_http_error_leaves_nothing(self, manager, grammar_server):
        spec = get_grammar_spec("go")
        grammar_server.add(spec, payload=b"nope", status=500)

        with pytest.raises(DownloadError) as exc_info:
            manager.download_grammar(spec)

        assert "500" in str(exc_info.value)
        assert exc_info.value.language == "go"
        assert manager.get_cached_versions("go") == []
        assert _leftovers(manager, "go") == []

    def test_missing_asset(self, manager):
        with pytest.raises(DownloadError):
            manager.download_grammar(get_grammar_spec("java"))
        assert manager.get_cached_versions("java") == []

    def test_empty_payload_rejected(self, manager, grammar_server):
        spec = get_grammar_spec("go")
        grammar_server.add(spec, payload=b"")

        with pytest.raises(DownloadError):
            manager.download_grammar(spec)

        assert manager.get_cached_versions("go") == []
        assert _leftovers(manager, "go") == []

    def test_truncated_payload_rejected(self, manager, grammar_server):
        spec = get_grammar_spec("go")
        grammar_server.add(spec, payload=b"short", headers={"content-length": "1000"})

        with pytest.raises(DownloadError) as exc_info:
            manager.download_grammar(spec)

        assert "Truncated" in str(exc_info.value)
        assert manager.get_cached_versions("go") == []

    def test_network_error(self, cache_dir):
        from parsergrok.grammars.manager import GrammarManager

        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(refuse))
        with GrammarManager(cache_dir=cache_dir, http_client=client) as mgr:
            with pytest.raises(DownloadError) as exc_info:
                mgr.download_grammar(get_grammar_spec("go"))

        assert "connection refused" in str(exc_info.value)

    def test_cancellation_removes_staging(self, manager, grammar_server):
        spec = get_grammar_spec("go")
        grammar_server.add(spec, payload=b"x" * 10)
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(DownloadCancelled):
            manager.download_grammar(spec, cancel_event=cancel)

        assert manager.get_cached_versions("go") == []
        assert _leftovers(manager, "go") == []

    def test_redownload_replaces_platform_build(self, manager, grammar_server):
        spec = get_grammar_spec("go")
        grammar_server.add(spec, payload=b"first build")
        manager.download_grammar(spec)

        grammar_server.add(spec, payload=b"second build!")
        path = manager.download_grammar(spec)

        assert path.read_bytes() == b"second build!"
        assert manager.get_version_info("go", spec.version).file_size == len(b"second build!")
        assert manager.is_version_valid("go", spec.version, verify_hash=True)
        assert _leftovers(manager, "go") == []

    def test_async_download(self, manager, grammar_server):
        spec = get_grammar_spec("go")
        grammar_server.add(spec)

        future = manager.download_grammar_async(spec)

        assert future.result(timeout=10) == manager.library_path(spec)
        assert manager.get_cached_versions("go") == [spec.version]

    def test_async_download_failure_surfaces_on_future(self, manager):
        future = manager.download_grammar_async(get_grammar_spec("go"))
        with pytest.raises(DownloadError):
            future.result(timeout=10)
