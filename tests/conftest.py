"""
Pytest configuration: ensure project root is on sys.path for imports.

The tests import the local `dictionary` package and the top-level `server` and
`runtime_config` modules directly. When running tests from certain IDEs or
subdirectories, the repository root might not be on the Python module search
path. This hook prepends the repo root so imports work consistently.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _add_repo_root_to_sys_path() -> None:
    # tests/ -> repo root
    root = Path(__file__).resolve().parents[1]
    root_str = str(root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)


_add_repo_root_to_sys_path()

from dictionary.store import Dictionary  # noqa: E402


@pytest.fixture
def doc_path(tmp_path):
    return tmp_path / "dictionary.json"


@pytest.fixture
def store(doc_path):
    d = Dictionary(doc_path)
    yield d
    d.close()


@pytest.fixture
def strict_store(doc_path):
    d = Dictionary(doc_path, strict=True)
    yield d
    d.close()
