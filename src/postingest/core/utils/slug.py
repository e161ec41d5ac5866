"""Slug generation for document identifiers"""

import re
import unicodedata

from postingest.core.utils.keys import short_id


MAX_SLUG_LENGTH = 96
FALLBACK_LENGTH = 10


def derive_slug(text: str) -> str:
    """Convert text to a lowercase, ASCII, hyphen-separated slug of at most 96 chars.

    Accented letters fold to their base letter; anything else outside
    [a-z0-9], whitespace and '-' is dropped. May return '' (e.g. for CJK or
    punctuation-only input); callers substitute a fallback.
    """
    text = unicodedata.normalize("NFD", (text or "").lower())
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = re.sub(r'[^a-z0-9\s-]', '', text).strip()
    text = re.sub(r'\s+', '-', text)
    return re.sub(r'-+', '-', text)[:MAX_SLUG_LENGTH]


def fallback_slug() -> str:
    """Random slug used when derive_slug yields nothing."""
    return short_id(FALLBACK_LENGTH)


def truncate(text: str | None, limit: int) -> str:
    return (text or "")[:limit]
