"""Entry point bundling the review commands."""
from __future__ import annotations

import typer

from image_review.cli import report, review

app = typer.Typer(add_completion=False, help="Review folders of images and record verdicts.")
app.command("review")(review.main)
app.command("report")(report.main)


def run() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    run()
