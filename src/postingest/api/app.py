"""FastAPI application: bearer-secret protected article ingestion endpoint"""

import hmac
import logging

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from postingest.config import Settings, build_store, load_config, require_settings
from postingest.core.pipeline import run_cleanup, run_ingest
from postingest.core.utils.timestamps import now_iso
from postingest.crud.store import DocumentStore
from postingest.errors import AuthorizationError, IngestError, PersistenceError, ValidationError


logger = logging.getLogger(__name__)


def check_secret(settings: Settings, provided: str | None) -> None:
    """Raise AuthorizationError unless provided matches the configured secret."""
    expected = settings.ingest_secret or ""
    if not expected or not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
        raise AuthorizationError()


def create_app(settings: Settings | None = None, store: DocumentStore | None = None) -> FastAPI:
    """Build the app. Settings are loaded lazily per request when not given, so
    configuration problems surface as 500 responses rather than import errors.
    """
    app = FastAPI(
        title="Post Ingest API",
        description="Idempotent ingestion of article payloads into the content store",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.store = store

    def _settings() -> Settings:
        current = app.state.settings
        if current is None:
            try:
                current = load_config()
            except ValueError as e:
                raise IngestError(str(e)) from e
        return require_settings(current)

    def _store(current: Settings) -> DocumentStore:
        if app.state.store is None:
            app.state.store = build_store(current)
        return app.state.store

    @app.exception_handler(IngestError)
    async def ingest_error_handler(request: Request, exc: IngestError):
        content = {"error": exc.message}
        if isinstance(exc, ValidationError) and exc.issues:
            content["details"] = exc.issues
        if isinstance(exc, PersistenceError):
            logger.error("Store failure on %s: %s", request.url.path, exc.message, exc_info=exc)
        elif exc.status_code >= 500:
            logger.error("%s: %s", request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})

    @app.post("/api/ingest")
    async def ingest(request: Request):
        """Upsert one article. Body: JSON object (or JSON-encoded string) of the submission."""
        current = _settings()
        check_secret(current, request.headers.get(current.secret_header))
        body = await request.body()
        result = await run_in_threadpool(
            run_ingest, body or b"{}", _store(current), current.repair_mode, current.upsert_strategy,
        )
        logger.info("Ingested %s (site %s)", result.id, result.site_id)
        return {"ok": True, "id": result.id}

    @app.post("/api/cleanup")
    async def cleanup(request: Request):
        """Strip legacy fields from every post. Secret via header or ?secret=."""
        current = _settings()
        provided = request.headers.get(current.cleanup_secret_header) or request.query_params.get("secret")
        check_secret(current, provided)
        processed = await run_in_threadpool(run_cleanup, _store(current))
        failed = sum(1 for r in processed if r["status"] != "ok")
        logger.info("Cleanup processed %d posts, %d failed", len(processed), failed)
        return {"ok": True, "processed": processed}

    @app.get("/api/health")
    async def health():
        return {"status": "OK", "timestamp": now_iso()}

    return app


app = create_app()
