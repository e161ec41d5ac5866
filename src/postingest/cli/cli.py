"""CLI entrypoint: Typer app definition and command registration"""

import logging
from typing import Annotated, Optional

import typer

from postingest.cli.commands import cleanup_cmd, ingest_cmd, init_cmd, serve_cmd
from postingest.config import load_config


app = typer.Typer(name="postingest", no_args_is_help=True, help="Article ingestion into a structured content store")


@app.callback()
def main(
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="Log level (default: INFO or POSTINGEST_LOG_LEVEL)")] = None,
    ):
    """Configure logging once for every command."""
    try:
        level = log_level or load_config().log_level
    except ValueError:  # reported by the command itself
        level = "INFO"
    logging.basicConfig(level=level.upper(), format="%(asctime)s - %(levelname)s - %(message)s")


app.command(name="serve")(serve_cmd)
app.command(name="init")(init_cmd)
app.command(name="ingest")(ingest_cmd)
app.command(name="cleanup")(cleanup_cmd)
