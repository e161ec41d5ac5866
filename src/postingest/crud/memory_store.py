from copy import deepcopy
from dataclasses import dataclass, field
from uuid import uuid4

from postingest.core.utils.timestamps import now_iso
from postingest.crud.store import DocumentStore, apply_patch
from postingest.errors import PersistenceError


@dataclass
class MemoryStore(DocumentStore):
    _docs: dict[str, dict] = field(default_factory=dict)

    def _save(self, doc: dict, created_at: str | None = None) -> dict:
        stored = deepcopy(doc)
        now = now_iso()
        stored["_createdAt"] = created_at or now
        stored["_updatedAt"] = now
        self._docs[stored["_id"]] = stored
        return deepcopy(stored)

    def get(self, doc_id: str) -> dict | None:
        doc = self._docs.get(doc_id)
        return deepcopy(doc) if doc is not None else None

    def fetch_one(self, doc_type: str, **filters) -> dict | None:
        for doc in self._docs.values():
            if doc.get("_type") == doc_type and all(doc.get(k) == v for k, v in filters.items()):
                return deepcopy(doc)
        return None

    def list_all(self, doc_type: str) -> list[dict]:
        return [deepcopy(d) for d in self._docs.values() if d.get("_type") == doc_type]

    def create(self, doc: dict) -> dict:
        doc = {**doc, "_id": doc.get("_id") or uuid4().hex}
        if doc["_id"] in self._docs:
            raise PersistenceError(f"Document by ID \"{doc['_id']}\" already exists")
        return self._save(doc)

    def create_if_not_exists(self, doc: dict) -> dict:
        if doc["_id"] in self._docs:
            return self.get(doc["_id"])
        return self._save(doc)

    def create_or_replace(self, doc: dict) -> dict:
        existing = self._docs.get(doc["_id"])
        return self._save(doc, created_at=existing["_createdAt"] if existing else None)

    def patch(self, doc_id, set_fields=None, set_if_missing=None, unset=None) -> dict:
        existing = self._docs.get(doc_id)
        if existing is None:
            raise PersistenceError(f"Document \"{doc_id}\" not found")
        patched = apply_patch(existing, set_fields, set_if_missing, unset)
        return self._save(patched, created_at=existing["_createdAt"])
