"""Document store client interface consumed by the ingestion pipeline"""

from __future__ import annotations
from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Any


class DocumentStore(ABC):
    """Schemaless document store keyed by ``_id`` with a ``_type`` discriminator.

    Implementations raise PersistenceError for every failure they encounter.
    """

    @abstractmethod
    def get(self, doc_id: str) -> dict | None:
        raise NotImplementedError

    @abstractmethod
    def fetch_one(self, doc_type: str, **filters: Any) -> dict | None:
        """Return the earliest-created document of doc_type whose fields equal filters."""
        raise NotImplementedError

    @abstractmethod
    def list_all(self, doc_type: str) -> list[dict]:
        raise NotImplementedError

    @abstractmethod
    def create(self, doc: dict) -> dict:
        """Insert doc, generating an ``_id`` when absent. Returns the stored document."""
        raise NotImplementedError

    @abstractmethod
    def create_if_not_exists(self, doc: dict) -> dict:
        """Insert doc unless its ``_id`` exists. Returns whichever document is stored."""
        raise NotImplementedError

    @abstractmethod
    def create_or_replace(self, doc: dict) -> dict:
        raise NotImplementedError

    @abstractmethod
    def patch(
        self,
        doc_id: str,
        set_fields: dict | None = None,
        set_if_missing: dict | None = None,
        unset: list[str] | None = None,
        ) -> dict:
        """Apply unset, then set_if_missing, then set to an existing document."""
        raise NotImplementedError


def apply_patch(
    doc: dict,
    set_fields: dict | None = None,
    set_if_missing: dict | None = None,
    unset: list[str] | None = None,
    ) -> dict:
    """Return a patched copy of doc: unset, then set_if_missing, then set."""
    patched = deepcopy(doc)
    for name in unset or []:
        patched.pop(name, None)
    for name, value in (set_if_missing or {}).items():
        patched.setdefault(name, deepcopy(value))
    patched.update(deepcopy(set_fields or {}))
    return patched
