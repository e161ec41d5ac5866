"""Idempotent article upsert keyed by a slug-derived document id"""

import logging

from postingest.core.models import ArticleSubmission, SiteRecord
from postingest.core.utils.slug import MAX_SLUG_LENGTH, derive_slug, fallback_slug, truncate
from postingest.core.utils.timestamps import now_iso
from postingest.crud.store import DocumentStore


logger = logging.getLogger(__name__)

ID_PREFIX = "post-"
META_TITLE_LENGTH = 60
META_DESCRIPTION_LENGTH = 160
# Written by earlier revisions of the ingester and no longer wanted on posts
UNSET_FIELDS = ["author"]

PATCH = "patch"
REPLACE = "replace"


def slug_for(submission: ArticleSubmission) -> str:
    """Slug from the hint (or title), never empty, at most 96 chars."""
    source = submission.slug_hint or submission.title
    return (derive_slug(source) or fallback_slug())[:MAX_SLUG_LENGTH]


def document_id_for(slug: str) -> str:
    return f"{ID_PREFIX}{slug}"


def build_article_fields(
    submission: ArticleSubmission,
    slug: str,
    site: SiteRecord,
    body: list[dict],
    categories: list[dict],
    ) -> dict:
    """Business attributes of a post, excluding identity and creation time."""
    return {
        "title": submission.title,
        "excerpt": submission.excerpt,
        "slug": {"_type": "slug", "current": slug},
        "site": {"_type": "reference", "_ref": site.id},
        "categories": categories,
        "body": body,
        "type": submission.type,
        "keywords": submission.keywords,
        "publishedAt": None,
        "metaTitle": truncate(submission.title, META_TITLE_LENGTH),
        "metaDescription": truncate(submission.excerpt, META_DESCRIPTION_LENGTH),
    }


def upsert_article(
    store: DocumentStore,
    submission: ArticleSubmission,
    site: SiteRecord,
    body: list[dict],
    categories: list[dict],
    strategy: str = PATCH,
    ) -> str:
    """Create or update the post for submission and return its document id.

    Repeated calls for the same slug converge on one document. ``createdAt``
    keeps the value written by the first successful call: the patch strategy
    relies on create-if-absent plus set-if-missing, the replace strategy
    carries the existing value forward. Store failures propagate as
    PersistenceError; nothing is retried here.
    """
    slug = slug_for(submission)
    doc_id = document_id_for(slug)
    fields = build_article_fields(submission, slug, site, body, categories)

    existing = store.get(doc_id)
    created_at = (existing or {}).get("createdAt") or now_iso()

    if strategy == REPLACE:
        saved = store.create_or_replace({"_id": doc_id, "_type": "post", **fields, "createdAt": created_at})
    else:
        store.create_if_not_exists({"_id": doc_id, "_type": "post", "title": submission.title, "createdAt": created_at})
        saved = store.patch(doc_id, set_fields=fields, set_if_missing={"createdAt": created_at}, unset=UNSET_FIELDS)

    logger.info("%s post %s", "Updated" if existing else "Created", saved["_id"])
    return saved["_id"]
