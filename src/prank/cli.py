"""Typer CLI entrypoint for the scoring pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer

from .config import ConfigManager
from .container import create_container
from .exceptions import ConfigurationError
from .logging import configure_logging
from .schemas import load_config

app = typer.Typer(help="Multi-criteria candidate scoring CLI.")


@app.command()
def run(
    candidates: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Candidates JSONL path."),
    output: Optional[Path] = typer.Option(
        None,
        exists=False,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Output JSON path.",
    ),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    max_workers: Optional[int] = typer.Option(None, min=1, help="Worker threads for this run."),
    disable: list[str] = typer.Option([], "--disable", help="Score card name to skip (repeatable)."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
) -> None:
    """Score candidates with the configured score cards."""
    settings: dict[str, Any] = {}
    if config:
        try:
            settings = load_config(ConfigManager.read(config)).to_settings()
        except ConfigurationError as exc:
            raise typer.BadParameter(str(exc), param_name="config") from exc

    configure_logging(log_level)

    container = create_container(settings=settings)
    try:
        options = container.request_options()
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc), param_name="config") from exc

    overrides: dict[str, Any] = {}
    if max_workers is not None:
        overrides["max_workers"] = max_workers
    if disable:
        overrides["disabled_cards"] = options.disabled_cards | frozenset(disable)
    if overrides:
        options = options.model_copy(update=overrides)

    pipeline = container.pipeline()
    payload = pipeline.run(candidates_path=candidates, output_path=output, options=options)

    typer.echo(
        f"Scored {payload['metadata']['candidate_count']} candidates "
        f"({payload['completed']}/{payload['scheduled']} units, "
        f"{len(payload['failures'])} failures)."
        + (f" Results saved to {output}." if output else "")
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
