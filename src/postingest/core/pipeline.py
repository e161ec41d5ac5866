"""Pipeline step functions: ingestion and legacy field cleanup"""

import logging
from typing import Any

from postingest.core.blocks import LENIENT, repair_body
from postingest.core.models import IngestResult
from postingest.core.normalize import normalize
from postingest.core.resolve import resolve_categories, resolve_site
from postingest.core.upsert import ID_PREFIX, PATCH, upsert_article
from postingest.crud.store import DocumentStore
from postingest.errors import PersistenceError


logger = logging.getLogger(__name__)

LEGACY_FIELDS = [
    "excerpt",
    "keywords",
    "metaDescription",
    "metaTitle",
    "site",
    "type",
    "categories",
    "publishedAt",
    "author",
]


def run_ingest(
    raw_payload: Any,
    store: DocumentStore,
    repair_mode: str = LENIENT,
    strategy: str = PATCH,
    ) -> IngestResult:
    """Validate, resolve references, repair the body and upsert one article.

    ValidationError is raised before the store is touched. A PersistenceError
    after the site lookup can leave a newly created site without a post;
    the next attempt for the same domain reuses it.
    """
    submission = normalize(raw_payload)

    site, site_created = resolve_site(store, submission.site_domain)
    categories = resolve_categories(submission.categories)
    body = repair_body(submission.body, repair_mode)

    doc_id = upsert_article(store, submission, site, body, categories, strategy)
    return IngestResult(id=doc_id, slug=doc_id.removeprefix(ID_PREFIX), site_id=site.id, site_created=site_created)


def run_cleanup(store: DocumentStore, fields: list[str] | None = None) -> list[dict]:
    """Unset fields on every post. One failing document does not stop the rest.

    Returns a report of {id, status[, message]} per post.
    """
    fields = list(fields or LEGACY_FIELDS)
    results = []
    for post in store.list_all("post"):
        try:
            store.patch(post["_id"], unset=fields)
            results.append({"id": post["_id"], "status": "ok"})
        except PersistenceError as e:
            logger.warning("Cleanup failed for %s: %s", post["_id"], e)
            results.append({"id": post["_id"], "status": "error", "message": str(e)})
    return results
