"""Interactive terminal shell for reviewing a folder of images."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import typer

from image_review.review_lib import config as config_mod, log as log_mod
from image_review.review_lib.session import ReviewSession
from image_review.review_lib.view import ViewDescription
from image_review.review_lib.workflow import (
    AdvanceStep,
    ChooseFolder,
    CommentAdded,
    CommentTyped,
    Event,
    Export,
    MarkCorrect,
    MarkIncorrect,
    Next,
    Previous,
    ResetSelection,
    RetreatStep,
    ReviewWorkflow,
    WorkflowState,
)

QUIT_COMMANDS = {"q", "quit", "exit"}

SIMPLE_COMMANDS = {
    "f": ChooseFolder,
    "n": Next,
    "p": Previous,
    "c": MarkCorrect,
    "i": MarkIncorrect,
    "r": ResetSelection,
    "e": Export,
    ">": AdvanceStep,
    "<": RetreatStep,
}

ACTION_KEYS = {
    ChooseFolder: "f choose folder",
    Previous: "p previous",
    Next: "n next",
    MarkCorrect: "c correct",
    MarkIncorrect: "i incorrect",
    ResetSelection: "r reset",
    CommentTyped: "t TEXT type reason",
    CommentAdded: "a [TEXT] save reason",
    Export: "e export",
    RetreatStep: "< back",
    AdvanceStep: "> continue",
}


class PromptPicker:
    """Directory picker backed by a terminal prompt; blank input cancels."""

    def __init__(self, initial: Optional[Union[str, Path]] = None) -> None:
        self._pending = initial

    def __call__(self) -> Optional[str]:
        if self._pending is not None:
            value, self._pending = self._pending, None
            return str(Path(value).expanduser())
        raw = typer.prompt("Folder path (blank to cancel)", default="", show_default=False).strip()
        if not raw:
            return None
        return str(Path(raw).expanduser())


def parse_command(line: str, state: WorkflowState) -> Optional[Event]:
    """Translate one line of input into an event, or None if it is not a command."""
    text = line.strip()
    if not text:
        return None
    key, _, rest = text.partition(" ")
    if key in SIMPLE_COMMANDS and not rest:
        return SIMPLE_COMMANDS[key]()
    if key == "t":
        return CommentTyped(rest)
    if key == "a":
        return CommentAdded(rest if rest else state.draft_comment)
    return None


def format_view(view: ViewDescription) -> str:
    lines = [f"== {view.title} | {view.step.title} =="]
    lines.extend(view.lines)
    if view.image is not None:
        if view.image.valid:
            meta = view.image.metadata
            if meta is not None and meta.width and meta.height:
                detail = f"{meta.format or 'image'} {meta.width}x{meta.height}"
                if meta.exif_datetime:
                    detail += f" taken {meta.exif_datetime}"
                lines.append(f"[{detail}]")
        else:
            lines.append(f"[{view.image.error}: {view.image.path}]")
    if view.comment_input_visible:
        lines.append(f"Reason draft: {view.draft_comment!r}")
    if view.status:
        lines.append(view.status)
    keys = [ACTION_KEYS[action] for action in view.actions if action in ACTION_KEYS]
    keys.append("q quit")
    lines.append("Keys: " + " | ".join(keys))
    return "\n".join(lines)


def main(
    folder: Optional[Path] = typer.Option(None, "--folder", help="Folder to load before the first prompt"),
    output: Optional[Path] = typer.Option(None, "--output", help="Annotation JSON file (merged on export)"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write logs to this file"),
) -> None:
    """Step through a folder of images and mark each one correct or incorrect."""
    cfg = config_mod.load_config(output, log_file)
    log_mod.setup_logging(log_level, cfg.log_file)
    logger = logging.getLogger("cli.review")

    workflow = ReviewWorkflow(picker=PromptPicker(folder), export_path=cfg.export_path, logger=logger)
    session = ReviewSession(workflow, on_render=lambda view: typer.echo(format_view(view)))
    typer.echo(f"Annotations are merged into {cfg.export_path} on export.")
    typer.echo(format_view(session.view()))
    if folder is not None:
        session.dispatch(ChooseFolder())

    while True:
        try:
            line = typer.prompt(">", default="", show_default=False)
        except typer.Abort:
            break
        if line.strip() in QUIT_COMMANDS:
            break
        event = parse_command(line, session.state)
        if event is None:
            typer.echo("Unknown command")
            continue
        if not session.view().allows(event):
            typer.echo("Not available here")
            continue
        session.dispatch(event)

    if session.state.folder_path and not (session.state.export_status and session.state.export_status.ok):
        typer.echo("Quitting without a successful export; annotations for this folder were not saved.")


def run() -> None:  # pragma: no cover
    typer.run(main)


if __name__ == "__main__":  # pragma: no cover
    run()
