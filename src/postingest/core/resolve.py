"""Site get-or-create and category reference resolution"""

import logging
from typing import Any

from postingest.core.models import CategoryRef, SiteRecord
from postingest.core.utils.keys import KeyRegistry
from postingest.crud.store import DocumentStore


logger = logging.getLogger(__name__)

CATEGORY_ID_FIELDS = ("_ref", "id")


def resolve_site(store: DocumentStore, domain: str) -> tuple[SiteRecord, bool]:
    """Return (site, created) for domain, creating the site on first sight.

    Not atomic: concurrent first submissions for one domain may both create.
    fetch_one prefers the earliest-created match, so later lookups converge
    on a single record.
    """
    existing = store.fetch_one("site", domain=domain)
    if existing:
        logger.debug("Reusing site %s for %s", existing["_id"], domain)
        return SiteRecord(**existing), False

    created = store.create({"_type": "site", "title": domain, "domain": domain})
    logger.info("Created site %s for %s", created["_id"], domain)
    return SiteRecord(**created), True


def extract_category_id(category: Any) -> str | None:
    """Bare strings are ids; mappings carry one under '_ref' or 'id'."""
    if isinstance(category, str):
        return category.strip() or None
    if isinstance(category, dict):
        for name in CATEGORY_ID_FIELDS:
            value = category.get(name)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return None


def resolve_categories(raw_categories: Any) -> list[dict]:
    """Build keyed reference relations, in input order, for every usable category."""
    registry = KeyRegistry()
    refs = []
    for category in raw_categories if isinstance(raw_categories, (list, tuple)) else []:
        ref_id = extract_category_id(category)
        if ref_id is None:
            logger.warning("Dropping unresolvable category reference %r", category)
            continue
        refs.append(CategoryRef(_ref=ref_id, _key=registry.fresh()).model_dump(by_alias=True))
    return refs
