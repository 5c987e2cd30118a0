"""Summarise an annotation file folder by folder."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from image_review.review_lib import config as config_mod, log as log_mod
from image_review.review_lib.models import StoreFormatError
from image_review.review_lib.reporting import summarize_store
from image_review.review_lib.store import load_store


def main(
    output: Optional[Path] = typer.Option(None, "--output", help="Annotation JSON file to summarise"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
) -> None:
    """Print correct/incorrect/unset counts for every folder in the annotation file."""
    log_mod.setup_logging(log_level)
    cfg = config_mod.load_config(output)
    if not cfg.export_path.exists():
        typer.echo(f"No annotations found at {cfg.export_path}")
        raise typer.Exit(code=0)
    try:
        store = load_store(cfg.export_path)
    except StoreFormatError as exc:
        typer.echo(f"Cannot read {cfg.export_path}: {exc}", err=True)
        raise typer.Exit(code=1)

    summaries = summarize_store(store)
    if not summaries:
        typer.echo(f"{cfg.export_path} has no folders")
        return
    for summary in summaries:
        typer.echo(f"{summary.folder_path}: {summary.total} image(s) | {summary.describe()}")
        if summary.commented:
            typer.echo(f"  {summary.commented} incorrect image(s) with a reason")


def run() -> None:  # pragma: no cover
    typer.run(main)


if __name__ == "__main__":  # pragma: no cover
    run()
