"""SQLModel-backed DocumentStore"""

from __future__ import annotations
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator
from uuid import uuid4

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from postingest.crud.store import DocumentStore, apply_patch
from postingest.crud.tables import StoredDocument
from postingest.errors import PersistenceError


logger = logging.getLogger(__name__)

SYSTEM_FIELDS = ("_id", "_type", "_createdAt", "_updatedAt")


def _row_to_doc(row: StoredDocument) -> dict:
    return {
        **row.data,
        "_id": row.id,
        "_type": row.type,
        "_createdAt": row.created_at.isoformat(),
        "_updatedAt": row.updated_at.isoformat(),
    }


def _data(doc: dict) -> dict:
    """Document fields minus the ones kept in dedicated columns."""
    return {k: v for k, v in doc.items() if k not in SYSTEM_FIELDS}


class SQLStore(DocumentStore):
    def __init__(self, engine):
        self.engine = engine

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """Session that commits on success and maps SQL failures to PersistenceError."""
        try:
            with Session(self.engine) as session:
                yield session
                session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(str(e)) from e

    def get(self, doc_id: str) -> dict | None:
        with self._session() as session:
            row = session.get(StoredDocument, doc_id)
            return _row_to_doc(row) if row else None

    def fetch_one(self, doc_type: str, **filters) -> dict | None:
        """String filters are matched in SQL; any others are checked on the narrowed rows."""
        stmt = select(StoredDocument).where(StoredDocument.type == doc_type)
        for k, v in filters.items():
            if isinstance(v, str):
                stmt = stmt.where(StoredDocument.data[k].as_string() == v)
        stmt = stmt.order_by(StoredDocument.created_at.asc(), StoredDocument.id.asc())

        with self._session() as session:
            for row in session.exec(stmt):
                if all(row.data.get(k) == v for k, v in filters.items()):
                    return _row_to_doc(row)
        return None

    def list_all(self, doc_type: str) -> list[dict]:
        with self._session() as session:
            rows = session.exec(
                select(StoredDocument)
                .where(StoredDocument.type == doc_type)
                .order_by(StoredDocument.created_at.asc(), StoredDocument.id.asc())
            ).all()
            return [_row_to_doc(r) for r in rows]

    def _insert(self, session: Session, doc: dict) -> StoredDocument:
        row = StoredDocument(id=doc["_id"], type=doc["_type"], data=_data(doc))
        session.add(row)
        session.flush()
        logger.debug("Inserted %s", row.id)
        return row

    def create(self, doc: dict) -> dict:
        doc = {**doc, "_id": doc.get("_id") or uuid4().hex}
        with self._session() as session:
            return _row_to_doc(self._insert(session, doc))

    def create_if_not_exists(self, doc: dict) -> dict:
        try:
            with self._session() as session:
                row = session.get(StoredDocument, doc["_id"]) or self._insert(session, doc)
                return _row_to_doc(row)
        except PersistenceError as e:
            # A concurrent writer inserted the same id between our read and insert
            if isinstance(e.__cause__, IntegrityError) and (existing := self.get(doc["_id"])):
                return existing
            raise

    def create_or_replace(self, doc: dict) -> dict:
        with self._session() as session:
            row = session.get(StoredDocument, doc["_id"])
            if row is None:
                return _row_to_doc(self._insert(session, doc))
            row.type = doc["_type"]
            row.data = _data(doc)
            row.updated_at = datetime.now()
            session.add(row)
            session.flush()
            return _row_to_doc(row)

    def patch(self, doc_id, set_fields=None, set_if_missing=None, unset=None) -> dict:
        with self._session() as session:
            row = session.get(StoredDocument, doc_id)
            if row is None:
                raise PersistenceError(f"Document \"{doc_id}\" not found")
            row.data = _data(apply_patch(row.data, set_fields, set_if_missing, unset))
            row.updated_at = datetime.now()
            session.add(row)
            session.flush()
            return _row_to_doc(row)
