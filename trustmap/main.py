from __future__ import annotations

import sys
from pathlib import Path

import typer

from trustmap.config import get_settings
from trustmap.exceptions import TrustmapError
from trustmap.orchestrator import run_enumeration
from trustmap.reporter import print_summary
from trustmap.utils.logging import configure_logging, get_logger

log = get_logger("trustmap")

app = typer.Typer(help="Enumerate the domains of a forest and their trusts into an XML report.")


@app.command()
def run(
    output: Path = typer.Argument(
        ...,
        dir_okay=False,
        help="Report file to write (overwritten if it exists).",
    ),
) -> None:
    """
    Enumerate every domain of the forest and the trusts each one maintains.

    Connection and credential settings come from the environment
    (TRUSTMAP_SERVER, TRUSTMAP_AUTH, ...) or a .env file.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)

    if output.exists():
        log.warning(f"{output} already exists and will be overwritten", extra={"output": str(output)})

    try:
        summary = run_enumeration(output, settings=settings)
    except TrustmapError as exc:
        log.error(str(exc))
        raise typer.Exit(code=1) from exc

    print_summary(summary)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
