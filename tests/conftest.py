"""Root test configuration: isolated environment and shared store fixtures"""

from unittest.mock import MagicMock

import pytest

from postingest.config import ENV_ALTERNATES, ENV_PREFIX, Settings
from postingest.crud.memory_store import MemoryStore


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run each test from a clean tmp directory with no postingest/legacy env vars set."""
    monkeypatch.chdir(tmp_path)
    for name in Settings.model_fields:
        monkeypatch.delenv(f"{ENV_PREFIX}{name.upper()}", raising=False)
        for alt in ENV_ALTERNATES.get(name, ()):
            monkeypatch.delenv(alt, raising=False)


@pytest.fixture(name="memory_store")
def memory_store_fixture():
    return MemoryStore()


@pytest.fixture(name="store")
def store_fixture(memory_store):
    """MemoryStore wrapped in a mock so tests can assert which store calls were made."""
    return MagicMock(wraps=memory_store)


@pytest.fixture(name="payload")
def payload_fixture():
    """A complete, valid article payload."""
    return {
        "title": "Loja Virtual: Guia!",
        "siteDomain": "example.com",
        "excerpt": "Everything about online stores.",
        "type": "guide",
        "keywords": "ecommerce, lojas",
        "categories": ["cat1", {"_ref": "cat2"}],
        "body": [
            {"_type": "block", "_key": "intro", "style": "normal",
             "children": [{"_type": "span", "_key": "s1", "text": "Hello"}]},
            {"_type": "block", "style": "h2",
             "children": [{"_type": "span", "text": "Section"}]},
        ],
    }
