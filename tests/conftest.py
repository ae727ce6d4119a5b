import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'devmirror' and tests/ as 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from devmirror.core.log import reset_logging_for_tests  # noqa: E402
from helpers.fake_host import FakeDevServer  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Drop DEVMIRROR_* overrides leaking in from the developer's shell."""
    for key in list(os.environ):
        if key.startswith("DEVMIRROR_"):
            monkeypatch.delenv(key, raising=False)
    yield
    reset_logging_for_tests()


@pytest.fixture
def asset_root(tmp_path: Path) -> Path:
    """A small frontend tree with matching and non-matching files."""
    root = tmp_path / "frontend"
    files = {
        "index.html": "<html>index</html>",
        "notes.txt": "not mirrored",
        "templates/page.html": "<html>page</html>",
        "images/logo.svg": "<svg/>",
        "images/photo.png": "binary-ish",
        ".git/HEAD.html": "ref: refs/heads/main",
    }
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def fake_server(asset_root: Path) -> FakeDevServer:
    return FakeDevServer(root=asset_root)

