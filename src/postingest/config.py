"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from postingest.errors import ConfigurationError


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "POSTINGEST_"

# Names accepted from older deployments, checked after POSTINGEST_<FIELD>
ENV_ALTERNATES: dict[str, tuple[str, ...]] = {
    "project_id":    ("SANITY_PROJECT_ID",),
    "dataset":       ("SANITY_DATASET",),
    "token":         ("SANITY_TOKEN", "SANITY_API_TOKEN"),
    "ingest_secret": ("INGEST_SECRET", "SANITY_PREVIEW_SECRET"),
    "api_version":   ("SANITY_API_VERSION",),
}


class Settings(BaseModel):
    app_name:      str = "postingest"
    backend:       str = Field(default="sanity", pattern="^(sanity|sql|memory)$", description="Document store backend")
    project_id:    str | None = Field(default=None, description="Content lake project identifier")
    dataset:       str | None = Field(default=None, description="Content lake dataset name")
    token:         str | None = Field(default=None, repr=False, description="Write token for the content lake")
    api_version:   str = Field(default="2024-01-01", description="Content lake API version date")
    ingest_secret: str | None = Field(default=None, repr=False, description="Shared secret required on ingestion")
    secret_header: str = Field(default="x-ingest-secret", description="Header carrying the ingestion secret")
    cleanup_secret_header: str = Field(default="x-cleanup-secret", description="Header carrying the secret for /api/cleanup")
    db_url:        str = Field(default="sqlite:///postingest.db", description="Database URL for the sql backend")
    repair_mode:   str = Field(default="lenient", pattern="^(lenient|strict)$", description="Handling of unrecognizable rich-text nodes")
    upsert_strategy: str = Field(default="patch", pattern="^(patch|replace)$", description="patch or replace on upsert")
    request_timeout: float = Field(default=10.0, gt=0, description="Store request timeout in seconds")
    log_level:     str = Field(default="INFO", description="Root log level")


def _from_env(name: str) -> str | None:
    """Return the first non-empty env value for a setting, primary name first."""
    for key in (f"{ENV_PREFIX}{name.upper()}", *ENV_ALTERNATES.get(name, ())):
        if val := os.getenv(key):
            return val
    return None


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then env vars (with legacy alternates), then non-None overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping of settings")

    for name in Settings.model_fields:
        if val := _from_env(name):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**data)
    except PydanticValidationError as e:
        # Names only; values may be secrets
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise ValueError(f"Invalid configuration: {', '.join(fields)}") from e


def missing_settings(settings: Settings) -> list[str]:
    """Names of required settings that are unset for the configured backend."""
    required = ["ingest_secret"]
    if settings.backend == "sanity":
        required = ["project_id", "dataset", "token", *required]
    return [name for name in required if not getattr(settings, name)]


def require_settings(settings: Settings) -> Settings:
    """Raise ConfigurationError listing every missing required setting."""
    if missing := missing_settings(settings):
        raise ConfigurationError(missing)
    return settings


def build_store(settings: Settings):
    """Construct the DocumentStore selected by settings.backend."""
    if settings.backend == "memory":
        from postingest.crud.memory_store import MemoryStore
        return MemoryStore()
    if settings.backend == "sql":
        from postingest.crud.database import init_db, make_engine
        from postingest.crud.sql_store import SQLStore
        engine = make_engine(settings.db_url)
        init_db(engine)
        return SQLStore(engine)

    missing = [n for n in ("project_id", "dataset", "token") if not getattr(settings, n)]
    if missing:
        raise ConfigurationError(missing)
    from postingest.crud.sanity_store import SanityStore
    return SanityStore(
        project_id=settings.project_id,
        dataset=settings.dataset,
        token=settings.token,
        api_version=settings.api_version,
        timeout=settings.request_timeout,
    )
