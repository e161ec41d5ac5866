"""DocumentStore backed by the Sanity content lake HTTP API (GROQ query + mutate)"""

from __future__ import annotations
import json
import logging
from typing import Any

import requests

from postingest.crud.store import DocumentStore
from postingest.errors import PersistenceError


logger = logging.getLogger(__name__)

API_HOST = "api.sanity.io"


def _groq_filter(filters: dict[str, Any]) -> str:
    return "".join(f" && {name}==${name}" for name in filters)


class SanityStore(DocumentStore):
    """Thin client over /data/query and /data/mutate.

    Every call is a single HTTP round-trip with a timeout. Failures surface as
    PersistenceError with the API's description; the token never appears in
    messages or logs.
    """

    def __init__(
        self,
        project_id: str,
        dataset: str,
        token: str,
        api_version: str = "2024-01-01",
        timeout: float = 10.0,
        session: requests.Session | None = None,
        ):
        self.dataset = dataset
        self.timeout = timeout
        self.base_url = f"https://{project_id}.{API_HOST}/v{api_version.lstrip('v')}/data"
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        })

    # --- transport ---

    def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise PersistenceError(f"Store request failed: {e.__class__.__name__}") from e

        if not response.ok:
            raise PersistenceError(self._error_message(response))
        try:
            return response.json()
        except ValueError as e:
            raise PersistenceError("Store returned a non-JSON response") from e

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            data = None
        error = data.get("error", {}) if isinstance(data, dict) else {}
        if isinstance(error, dict):
            detail = error.get("description") or error.get("message")
        else:
            detail = str(error)
        return f"Store error {response.status_code}: {detail or response.reason}"

    def query(self, groq: str, params: dict[str, Any] | None = None) -> Any:
        """Run a GROQ query; parameters are JSON-encoded as $name query args."""
        encoded = {f"${k}": json.dumps(v) for k, v in (params or {}).items()}
        logger.debug("GROQ %s", groq)
        data = self._request("GET", f"{self.base_url}/query/{self.dataset}", params={"query": groq, **encoded})
        return data.get("result")

    def mutate(self, mutations: list[dict]) -> list[dict]:
        """Submit mutations in one transaction; returns the affected documents."""
        data = self._request(
            "POST",
            f"{self.base_url}/mutate/{self.dataset}",
            params={"returnDocuments": "true", "visibility": "sync"},
            json={"mutations": mutations},
        )
        logger.debug("Transaction %s", data.get("transactionId"))
        return [r.get("document") or {"_id": r.get("id")} for r in data.get("results", [])]

    def _mutate_one(self, mutation: dict) -> dict:
        results = self.mutate([mutation])
        if not results:
            raise PersistenceError("Store returned no document for mutation")
        return results[0]

    # --- DocumentStore ---

    def get(self, doc_id: str) -> dict | None:
        return self.query("*[_id==$id][0]", {"id": doc_id})

    def fetch_one(self, doc_type: str, **filters) -> dict | None:
        groq = f"*[_type==$type{_groq_filter(filters)}] | order(_createdAt asc, _id asc)[0]"
        return self.query(groq, {"type": doc_type, **filters})

    def list_all(self, doc_type: str) -> list[dict]:
        return self.query("*[_type==$type] | order(_createdAt asc)", {"type": doc_type}) or []

    def create(self, doc: dict) -> dict:
        return self._mutate_one({"create": doc})

    def create_if_not_exists(self, doc: dict) -> dict:
        # The API omits the document when nothing was written
        stored = self._mutate_one({"createIfNotExists": doc})
        if set(stored) == {"_id"}:
            return self.get(doc["_id"]) or stored
        return stored

    def create_or_replace(self, doc: dict) -> dict:
        return self._mutate_one({"createOrReplace": doc})

    def patch(self, doc_id, set_fields=None, set_if_missing=None, unset=None) -> dict:
        operation: dict[str, Any] = {"id": doc_id}
        if unset:
            operation["unset"] = list(unset)
        if set_if_missing:
            operation["setIfMissing"] = set_if_missing
        if set_fields:
            operation["set"] = set_fields
        return self._mutate_one({"patch": operation})
