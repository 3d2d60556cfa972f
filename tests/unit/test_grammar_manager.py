"""Unit tests for GrammarManager cache queries, rollback, cleanup and stats."""
import json
import shutil

import pytest

from parsergrok.core.exceptions import ConfigurationError, GrammarFilesystemError, ValidationError
from parsergrok.grammars.config import GrammarConfig
from parsergrok.grammars.manager import GrammarManager
from parsergrok.grammars.specs import get_grammar_spec


class TestCachedVersions:

    def test_no_cache_directory_means_no_versions(self, manager):
        assert not manager.cache_dir.exists()
        assert manager.get_cached_versions("go") == []

    def test_versions_sorted_newest_first(self, manager, cached_version):
        for version in ("1.0.0", "2.0.0", "1.1.0"):
            cached_version("go", version)

        assert manager.get_cached_versions("go") == ["2.0.0", "1.1.0", "1.0.0"]

    def test_semantic_not_lexical_order(self, manager, cached_version):
        for version in ("0.9.0", "0.10.0", "0.2.1"):
            cached_version("go", version)

        assert manager.get_cached_versions("go") == ["0.10.0", "0.9.0", "0.2.1"]

    def test_hidden_entries_are_not_versions(self, manager, cached_version):
        cached_version("go", "1.0.0")
        (manager.cache_dir / "go" / ".staging-abc123").mkdir()
        (manager.cache_dir / "go" / ".trash-def456").mkdir()

        assert manager.get_cached_versions("go") == ["1.0.0"]

    def test_invalid_language_identifier(self, manager):
        with pytest.raises(ValidationError):
            manager.get_cached_versions("../etc")
        with pytest.raises(ValidationError):
            manager.get_cached_versions("   ")


class TestVersionInfo:

    def test_highest_version_when_none_requested(self, manager, cached_version):
        cached_version("go", "1.0.0")
        cached_version("go", "1.2.0")

        info = manager.get_version_info("go")

        assert info is not None
        assert info.version == "1.2.0"
        assert info.language == "go"
        assert info.platform == manager.platform_name()

    def test_specific_version(self, manager, cached_version):
        cached_version("go", "1.0.0", payload=b"12345")
        cached_version("go", "1.2.0")

        info = manager.get_version_info("go", "1.0.0")

        assert info.version == "1.0.0"
        assert info.file_size == 5

    def test_unknown_language_returns_none(self, manager):
        assert manager.get_version_info("nonexistent", None) is None

    def test_unknown_version_returns_none(self, manager, cached_version):
        cached_version("go", "1.0.0")
        assert manager.get_version_info("go", "9.9.9") is None

    def test_corrupt_metadata_is_treated_as_absent(self, manager, cached_version):
        binary = cached_version("go", "1.0.0")
        (binary.parent / "metadata.json").write_text("{not json")

        assert manager.get_version_info("go", "1.0.0") is None
        assert manager.is_version_valid("go", "1.0.0") is False


class TestVersionValidity:

    def test_complete_version_is_valid(self, manager, cached_version):
        cached_version("go", "1.0.0")
        assert manager.is_version_valid("go", "1.0.0")
        assert manager.is_version_valid("go", "1.0.0", verify_hash=True)

    def test_missing_metadata_is_invalid(self, manager, cached_version):
        cached_version("go", "1.0.0", write_metadata=False)
        assert manager.is_version_valid("go", "1.0.0") is False

    def test_size_mismatch_is_invalid(self, manager, cached_version):
        cached_version("go", "1.0.0", payload=b"abc", file_size=99)
        assert manager.is_version_valid("go", "1.0.0") is False

    def test_empty_binary_is_invalid(self, manager, cached_version):
        cached_version("go", "1.0.0", payload=b"")
        assert manager.is_version_valid("go", "1.0.0") is False

    def test_hash_checked_only_on_request(self, manager, cached_version):
        binary = cached_version("go", "1.0.0", payload=b"original")
        binary.write_bytes(b"tampered")  # same length

        assert manager.is_version_valid("go", "1.0.0") is True
        assert manager.is_version_valid("go", "1.0.0", verify_hash=True) is False


class TestRollback:

    def test_rollback_repoints_without_deleting(self, manager, cached_version):
        cached_version("go", "1.0.0")
        cached_version("go", "2.0.0")
        assert manager.get_active_version("go") == "2.0.0"

        result = manager.rollback_to_version("go", "1.0.0")

        assert result.success
        assert result.active_version == "1.0.0"
        assert manager.get_active_version("go") == "1.0.0"
        assert manager.get_cached_versions("go") == ["2.0.0", "1.0.0"]

    def test_rollback_is_persisted(self, manager, cached_version):
        cached_version("go", "1.0.0")
        cached_version("go", "2.0.0")
        manager.rollback_to_version("go", "1.0.0")

        marker = json.loads((manager.cache_dir / "go" / ".active").read_text())
        assert marker["version"] == "1.0.0"

        with GrammarManager(cache_dir=manager.cache_dir, fallback_loader=lambda spec: None) as fresh:
            assert fresh.get_active_version("go") == "1.0.0"

    def test_rollback_to_uncached_version_fails(self, manager, cached_version):
        cached_version("go", "1.0.0")

        result = manager.rollback_to_version("go", "0.5.0")

        assert result.success is False
        assert "0.5.0" in result.message
        assert result.active_version == "1.0.0"

    def test_rollback_unknown_language_fails(self, manager):
        result = manager.rollback_to_version("nonexistent", "1.0.0")

        assert result.success is False
        assert result.active_version is None

    def test_rollback_to_previous_walks_down(self, manager, cached_version):
        for version in ("1.0.0", "1.1.0", "2.0.0"):
            cached_version("go", version)

        first = manager.rollback_to_previous("go")
        second = manager.rollback_to_previous("go")
        third = manager.rollback_to_previous("go")

        assert first.success and first.active_version == "1.1.0"
        assert second.success and second.active_version == "1.0.0"
        assert third.success is False
        assert third.active_version == "1.0.0"

    def test_rollback_to_previous_without_versions(self, manager):
        result = manager.rollback_to_previous("go")
        assert result.success is False

    def test_marker_ignored_once_version_is_gone(self, manager, cached_version):
        cached_version("go", "1.0.0")
        cached_version("go", "2.0.0")
        manager.rollback_to_version("go", "1.0.0")

        # The pinned version disappears behind the manager's back
        shutil.rmtree(manager.cache_dir / "go" / "1.0.0")

        assert manager.get_active_version("go") == "2.0.0"

    def test_version_history(self, manager, cached_version):
        cached_version("go", "1.0.0")
        cached_version("go", "2.0.0")
        manager.rollback_to_version("go", "1.0.0")

        history = manager.get_version_history("go")

        assert [e.version for e in history] == ["2.0.0", "1.0.0"]
        assert [e.active for e in history] == [False, True]
        assert history[0].metadata.version == "2.0.0"


class TestCleanup:

    def test_keeps_newest_versions(self, manager, cached_version):
        for version in ("1.0.0", "1.1.0", "2.0.0"):
            cached_version("go", version)

        removed = manager.cleanup_old_versions("go", 1)

        assert removed == 2
        assert manager.get_cached_versions("go") == ["2.0.0"]
        assert not (manager.cache_dir / "go" / "1.0.0").exists()

    def test_nothing_to_remove(self, manager, cached_version):
        cached_version("go", "1.0.0")
        assert manager.cleanup_old_versions("go", 3) == 0
        assert manager.cleanup_old_versions("nonexistent", 3) == 0

    def test_max_versions_must_be_positive(self, manager):
        with pytest.raises(ValidationError):
            manager.cleanup_old_versions("go", 0)
        with pytest.raises(ValueError):
            manager.cleanup_all_old_versions(0)

    def test_active_version_is_never_deleted(self, manager, cached_version):
        for version in ("1.0.0", "1.1.0", "2.0.0"):
            cached_version("go", version)
        manager.rollback_to_version("go", "1.0.0")

        removed = manager.cleanup_old_versions("go", 2)

        assert removed == 1
        assert manager.get_cached_versions("go") == ["2.0.0", "1.0.0"]
        assert manager.get_active_version("go") == "1.0.0"

    def test_active_version_kept_with_window_of_one(self, manager, cached_version):
        for version in ("1.0.0", "1.1.0", "2.0.0"):
            cached_version("go", version)
        manager.rollback_to_version("go", "1.1.0")

        assert manager.cleanup_old_versions("go", 1) == 2
        assert manager.get_cached_versions("go") == ["1.1.0"]

    def test_cleanup_all_uses_configured_default(self, manager, cached_version):
        for minor in range(7):
            cached_version("go", f"1.{minor}.0")
        cached_version("rust", "0.1.0")

        removed = manager.cleanup_all_old_versions()

        assert removed == 2
        assert manager.get_cached_versions("go")[-1] == "1.2.0"
        assert manager.get_cached_versions("rust") == ["0.1.0"]

    def test_cleanup_all_with_explicit_limit(self, manager, cached_version):
        cached_version("go", "1.0.0")
        cached_version("go", "2.0.0")
        cached_version("rust", "0.1.0")
        cached_version("rust", "0.2.0")

        assert manager.cleanup_all_old_versions(1) == 2
        assert manager.cached_languages() == ["go", "rust"]

    def test_removal_failure_is_reported(self, manager, cached_version, monkeypatch):
        cached_version("go", "1.0.0")
        cached_version("go", "2.0.0")

        def refuse(src, dst):
            raise PermissionError("read-only cache")

        monkeypatch.setattr("parsergrok.grammars.manager.os.rename", refuse)

        with pytest.raises(GrammarFilesystemError):
            manager.cleanup_old_versions("go", 1)


class TestCacheStats:

    def test_empty_cache(self, manager):
        stats = manager.get_cache_stats()
        assert stats.total_languages == 0
        assert stats.total_files == 0
        assert stats.total_size_mb == 0

    def test_counts_and_sizes(self, manager, cached_version):
        cached_version("go", "1.0.0", payload=b"a" * 10)
        cached_version("go", "2.0.0", payload=b"b" * 20)
        cached_version("rust", "0.1.0", payload=b"c" * 30)
        manager.rollback_to_version("go", "1.0.0")
        (manager.cache_dir / "rust" / ".staging-leftover").mkdir()

        stats = manager.get_cache_stats()

        assert stats.total_languages == 2
        assert stats.total_versions == 3
        assert stats.library_files == 3
        assert stats.metadata_files == 3
        assert stats.total_files == 6
        assert stats.library_size_bytes == 60
        assert stats.total_size_bytes > stats.library_size_bytes


class TestConfiguration:

    def test_explicit_cache_dir_wins(self, tmp_path):
        with GrammarManager(cache_dir=tmp_path / "explicit") as mgr:
            assert mgr.cache_dir == tmp_path / "explicit"

    def test_cache_dir_from_config(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PARSERGROK_GRAMMAR_CACHE_DIR", str(tmp_path / "env"))
        config = GrammarConfig(cache_dir=str(tmp_path / "configured"))
        with GrammarManager(config=config) as mgr:
            assert mgr.cache_dir == tmp_path / "configured"

    def test_cache_dir_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PARSERGROK_GRAMMAR_CACHE_DIR", str(tmp_path / "env"))
        with GrammarManager() as mgr:
            assert mgr.cache_dir == tmp_path / "env"
            assert mgr.resolve_cache_dir() == tmp_path / "env"

    def test_uncreatable_cache_root(self, tmp_path, grammar_server):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file")
        spec = get_grammar_spec("go")
        grammar_server.add(spec)

        with GrammarManager(cache_dir=blocker / "cache", http_client=grammar_server.client()) as mgr:
            with pytest.raises(ConfigurationError):
                mgr.download_grammar(spec)

    def test_download_url(self, manager):
        spec = get_grammar_spec("csharp")
        url = manager.build_download_url(spec)
        assert url == (
            "https://github.com/tree-sitter/tree-sitter-c-sharp/releases/download/"
            f"v0.23.0/tree-sitter-c-sharp{manager.platform_library_extension()}"
        )

    def test_library_path_layout(self, manager):
        spec = get_grammar_spec("go")
        path = manager.library_path(spec)
        assert path.parent == manager.cache_dir / "go" / "0.23.0" / manager.platform_name()
        assert path.name.startswith("tree-sitter-go")
