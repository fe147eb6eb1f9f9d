from __future__ import annotations

import importlib
from pathlib import Path
import sys


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
REPO_ROOT = Path(__file__).resolve().parents[1]
TESTS_DIR = Path(__file__).resolve().parent
for p in (REPO_ROOT, TESTS_DIR):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


@pytest.fixture
def sandbox_project(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    Point the data dir and store address at a temp directory so tests never touch real ./data.
    """
    data = tmp_path / "data"
    monkeypatch.setenv("DATA_DIR", str(data))
    monkeypatch.setenv("DOCUMENT_STORE_URL", "documents")
    monkeypatch.delenv("DEBUG_LOG_REQUESTS", raising=False)
    return tmp_path


@pytest.fixture
def store_path(sandbox_project: Path) -> Path:
    return sandbox_project / "data" / "documents.json"


@pytest.fixture
def reload_endpoints(sandbox_project: Path) -> None:
    """
    The MCP server's session manager runs once per instance; reload so each test gets a fresh one.
    """
    import endpoints.document_endpoints as document_endpoints
    import endpoints.mcp_endpoints as mcp_endpoints

    importlib.reload(document_endpoints)
    importlib.reload(mcp_endpoints)
