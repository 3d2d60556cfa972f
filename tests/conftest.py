import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

from parsergrok.grammars.manager import GrammarManager
from parsergrok.grammars.specs import get_grammar_spec


class FakeLanguage:
    """Stand-in for a loaded tree-sitter Language."""

    def __init__(self, path, name):
        self.path = Path(path) if path is not None else None
        self.name = name

    def __repr__(self):
        return f"FakeLanguage({self.name!r}, {self.path})"


class RecordingLoader:
    """library_loader double that records every load and can be told to fail."""

    def __init__(self):
        self.calls = []
        self.fail_paths = set()

    def __call__(self, path, spec):
        self.calls.append(Path(path))
        if Path(path) in self.fail_paths:
            raise OSError(f"cannot load {path}")
        return FakeLanguage(path, spec.grammar_name)


class GrammarServer:
    """Serves grammar binaries through httpx.MockTransport."""

    def __init__(self):
        self.assets = {}
        self.requests = []

    def add(self, spec, payload=b"\x7fELF fake grammar", status=200, headers=None):
        self.assets[spec.repository, spec.version] = (status, payload, headers or {})

    def handler(self, request):
        self.requests.append(str(request.url))
        parts = request.url.path.strip("/").split("/")
        # /tree-sitter/{repository}/releases/download/v{version}/{asset}
        repository, version = parts[1], parts[4][1:]
        status, payload, headers = self.assets.get((repository, version), (404, b"not found", {}))
        return httpx.Response(status, content=payload, headers=headers)

    def client(self):
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def cache_dir(tmp_path):
    return tmp_path / "grammars"


@pytest.fixture
def library_loader():
    return RecordingLoader()


@pytest.fixture
def grammar_server():
    return GrammarServer()


@pytest.fixture
def manager(cache_dir, grammar_server, library_loader, monkeypatch):
    """GrammarManager on a temp cache with no network and no real native loads."""
    for spec_language in ("go", "rust", "java", "python", "javascript"):
        monkeypatch.delenv(get_grammar_spec(spec_language).env_key, raising=False)
    mgr = GrammarManager(
        cache_dir=cache_dir,
        http_client=grammar_server.client(),
        library_loader=library_loader,
        fallback_loader=lambda spec: None,
    )
    yield mgr
    mgr.close()


@pytest.fixture
def cached_version(manager):
    """Create a complete cached version directory; returns the binary path."""

    def create(language, version, payload=b"grammar-binary", write_metadata=True, file_size=None):
        spec = get_grammar_spec(language)
        platform_dir = manager.cache_dir / language / version / manager.platform_name()
        platform_dir.mkdir(parents=True, exist_ok=True)
        binary = platform_dir / f"{spec.library_name}{manager.platform_library_extension()}"
        binary.write_bytes(payload)
        if write_metadata:
            metadata = {
                "language": language,
                "version": version,
                "repository": spec.repository,
                "downloadedAt": datetime(2024, 1, 1, tzinfo=timezone.utc).isoformat(),
                "platform": manager.platform_name(),
                "fileSize": len(payload) if file_size is None else file_size,
                "sha256": hashlib.sha256(payload).hexdigest(),
            }
            (platform_dir / "metadata.json").write_text(json.dumps(metadata))
        return binary

    return create


@pytest.fixture
def python_source(tmp_path):
    """A small Python module covering classes, methods and nested functions."""
    path = tmp_path / "calculator.py"
    path.write_text('''
import json


def hello(name: str) -> str:
    """Say hello to someone."""
    return f"Hello, {name}!"


class Calculator:
    """A simple calculator."""

    @staticmethod
    def add(a: int, b: int) -> int:
        return a + b

    async def fetch(self):
        def inner():
            return 1
        return inner()

    class Memory:
        def recall(self):
            return 0
''')
    return path
