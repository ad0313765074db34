import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from pipe_registry.cli.db import db_app
from pipe_registry.cli.ingest import ingest
from pipe_registry.cli.query import query_app
from pipe_registry.cli.serve import serve
from pipe_registry.config import log_level

app = typer.Typer(
    name="pipe-registry",
    help="Pipe Registry CLI: store pipe containers and derive their functions.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def configure(
    level: Annotated[str | None, typer.Option("--log-level", help="Logging level (default from PIPE_REGISTRY_LOG_LEVEL).")] = None,
) -> None:
    logging.basicConfig(
        level=(level or log_level()).upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
        force=True,
    )


app.add_typer(db_app, name="db")
app.command("ingest")(ingest)
app.add_typer(query_app, name="query")
app.command("serve")(serve)


def main() -> None:
    app()
