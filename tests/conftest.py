import os
import sys

# Ensure the repository root is importable so tests run without installing the
# package or tweaking ``PYTHONPATH``.
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


import pytest


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Drop configuration overrides inherited from the shell."""
    for key in list(os.environ):
        if key.startswith("VAULTMAP_"):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def note_keys():
    return ["note1.md", "note2.md", "note3.md"]


@pytest.fixture
def chain_links():
    return [(0, 1), (0, 2), (1, 2)]
