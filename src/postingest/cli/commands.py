"""CLI command implementations"""

import json
from pathlib import Path
from typing import Annotated, List, Optional

import typer

from postingest.config import Settings, build_store, load_config
from postingest.core.pipeline import LEGACY_FIELDS, run_cleanup, run_ingest
from postingest.crud.database import init_db, make_engine, reset_db
from postingest.crud.memory_store import MemoryStore
from postingest.errors import IngestError


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _store(settings: Settings):
    try:
        return build_store(settings)
    except IngestError as e:
        _fail(e.message)


def serve_cmd(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", help="Bind port")] = 8000,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes")] = False,
    ):
    """Run the ingestion API with uvicorn."""
    import uvicorn

    uvicorn.run("postingest.api.app:app", host=host, port=port, reload=reload)


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    db_url: Annotated[Optional[str], typer.Option("--db-url", help="Database URL for the sql backend")] = None,
    ):
    """Initialize the sql backend schema. Use --reset to clear existing data."""
    settings = _settings(overrides={"db_url": db_url})
    engine = make_engine(settings.db_url)
    if reset:
        reset_db(engine)
        typer.echo("Existing data cleared.")
    else:
        init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")


def ingest_cmd(
    path: Annotated[Path, typer.Argument(help="JSON file holding one article payload")],
    backend: Annotated[Optional[str], typer.Option("--backend", help="sanity, sql or memory")] = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Run against an in-memory store")] = False,
    ):
    """Ingest one article payload and print the stored document id."""
    settings = _settings(overrides={"backend": backend})
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        _fail(f"Cannot read {path}", e)

    store = MemoryStore() if dry_run else _store(settings)
    try:
        result = run_ingest(raw, store, settings.repair_mode, settings.upsert_strategy)
    except IngestError as e:
        _fail(e.message)

    if dry_run:
        typer.echo(json.dumps(store.get(result.id), indent=2, ensure_ascii=False))
    typer.echo(f"{'created site, ' if result.site_created else ''}ingested: {result.id}")


def cleanup_cmd(
    fields: Annotated[Optional[List[str]], typer.Option("--field", help="Field to unset; repeatable")] = None,
    backend: Annotated[Optional[str], typer.Option("--backend", help="sanity, sql or memory")] = None,
    ):
    """Remove legacy fields from every stored post."""
    settings = _settings(overrides={"backend": backend})
    store = _store(settings)
    try:
        results = run_cleanup(store, fields or LEGACY_FIELDS)
    except IngestError as e:
        _fail("Cleanup failed", e)

    for r in results:
        typer.echo(f"  {r['status']}: {r['id']}" + (f" ({r['message']})" if "message" in r else ""))
    failed = sum(r["status"] == "error" for r in results)
    typer.echo(f"Cleanup complete - {len(results) - failed} ok, {failed} failed")
    if failed:
        raise typer.Exit(1)
