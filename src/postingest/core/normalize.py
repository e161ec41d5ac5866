"""Payload validation and coercion into an ArticleSubmission"""

import json
from typing import Any

from postingest.core.markdown import markdown_to_blocks
from postingest.core.models import ArticleSubmission
from postingest.errors import ValidationError


REQUIRED_FIELDS = {"title": "title", "siteDomain": "site_domain"}


def parse_payload(raw: Any) -> Any:
    """Decode a transport body (bytes or JSON text) into a Python value.

    Already-decoded values pass through. A JSON document that itself decodes
    to a string (a double-encoded body) is decoded once more.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValidationError("Invalid JSON body") from e
    for _ in range(2):
        if not isinstance(raw, str):
            break
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, RecursionError) as e:
            # RecursionError: nesting deeper than the decoder can follow
            raise ValidationError("Invalid JSON body") from e
    return raw


def _clean_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def coerce_keywords(value: Any) -> list[str]:
    """Accept a list of strings or a comma-separated string; drop blanks and non-strings."""
    if isinstance(value, (list, tuple)):
        parts = [v for v in value if isinstance(v, str)]
    elif isinstance(value, str):
        parts = value.split(",")
    else:
        return []
    return [p.strip() for p in parts if p.strip()]


def coerce_slug_hint(value: Any) -> str | None:
    """Return a non-blank slug hint, or None to derive the slug from the title."""
    if isinstance(value, dict):
        value = value.get("current")
    return value.strip() if isinstance(value, str) and value.strip() else None


def coerce_body(value: Any) -> list:
    """Block arrays pass through; markdown strings are converted; anything else is empty."""
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str) and value.strip():
        return markdown_to_blocks(value)
    return []


def coerce_categories(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, (str, dict)):
        return [value]
    return []


def normalize(raw_payload: Any) -> ArticleSubmission:
    """Validate a raw payload and return its canonical ArticleSubmission.

    Raises ValidationError when the payload is not a JSON object or when
    title/siteDomain are missing or blank. Every other field degrades
    gracefully to its empty value.
    """
    payload = parse_payload(raw_payload)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError(
            "Payload must be a JSON object",
            [{"field": "body", "message": f"expected object, got {type(payload).__name__}"}],
        )

    values = {attr: _clean_str(payload.get(name)) for name, attr in REQUIRED_FIELDS.items()}
    issues = [
        {"field": name, "message": f"{name} is required"}
        for name, attr in REQUIRED_FIELDS.items() if not values[attr]
    ]
    if issues:
        raise ValidationError("title and siteDomain required", issues)

    return ArticleSubmission(
        title=values["title"],
        site_domain=values["site_domain"],
        excerpt=payload["excerpt"] if isinstance(payload.get("excerpt"), str) else "",
        slug_hint=coerce_slug_hint(payload.get("slugHint", payload.get("slug"))),
        body=coerce_body(payload.get("body")),
        categories=coerce_categories(payload.get("categories")),
        keywords=coerce_keywords(payload.get("keywords")),
        type=_clean_str(payload.get("type")) or None,
    )
