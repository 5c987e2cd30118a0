"""Render a workflow state into a toolkit-independent view description."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .imaging import ImageMetadata, is_valid_image, probe_image
from .models import Annotation
from .reporting import summarize_records
from .workflow import (
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
    Step,
    WorkflowState,
)

ImageCheck = Callable[[str], bool]
ImageProbe = Callable[[str], ImageMetadata]

ANNOTATION_LABELS = {
    Annotation.CORRECT: "correct",
    Annotation.INCORRECT: "incorrect",
    Annotation.UNSET: "not set",
}


@dataclass
class ImagePanel:
    path: str
    valid: bool
    error: Optional[str] = None
    metadata: Optional[ImageMetadata] = None


@dataclass
class ViewDescription:
    title: str
    step: Step
    lines: List[str] = field(default_factory=list)
    image: Optional[ImagePanel] = None
    actions: List[type] = field(default_factory=list)
    comment_input_visible: bool = False
    draft_comment: str = ""
    status: Optional[str] = None

    def allows(self, event: Event) -> bool:
        return type(event) in self.actions


def render(
    state: WorkflowState,
    image_check: ImageCheck = is_valid_image,
    image_probe: ImageProbe = probe_image,
) -> ViewDescription:
    """Describe what the shell should show for ``state``.

    Nothing here mutates the state; the only I/O is the image sniff for the
    current image on the Images step.
    """
    view = ViewDescription(title=f"Image {state.current_image_index}", step=state.step)
    if state.export_status is not None:
        view.status = state.export_status.message

    if state.step is Step.WELCOME_CHOOSE_FOLDER:
        _render_welcome(state, view)
    elif state.step is Step.IMAGES:
        _render_images(state, view, image_check, image_probe)
    else:
        _render_end(state, view)

    if state.has_previous_step:
        view.actions.append(RetreatStep)
    if state.can_advance_step:
        view.actions.append(AdvanceStep)
    return view


def _render_welcome(state: WorkflowState, view: ViewDescription) -> None:
    view.lines.append("Choose a folder of images to review.")
    if state.folder_loaded:
        view.lines.append(f"Folder: {state.folder_path} ({state.image_count} file(s))")
        view.lines.append("Continue to start reviewing, or choose a different folder.")
    elif state.folder_path:
        view.lines.append(f"Previous folder: {state.folder_path}")
    view.actions.append(ChooseFolder)


def _render_images(
    state: WorkflowState,
    view: ViewDescription,
    image_check: ImageCheck,
    image_probe: ImageProbe,
) -> None:
    record = state.current_record
    if record is None:
        view.lines.append(f"No files found in {state.folder_path or 'the selected folder'}.")
        view.actions.append(Export)
        return

    view.lines.append(f"Folder: {state.folder_path}")
    view.lines.append(f"Image {state.current_image_index + 1} of {state.image_count}: {record.image_path}")
    view.lines.append(f"Annotation: {ANNOTATION_LABELS[record.annotation]}")
    if record.annotation is Annotation.INCORRECT and record.comments:
        view.lines.append(f"Reason: {record.comments}")

    if image_check(record.image_path):
        view.image = ImagePanel(path=record.image_path, valid=True, metadata=image_probe(record.image_path))
    else:
        view.image = ImagePanel(path=record.image_path, valid=False, error="Not a valid image")

    if state.has_previous_image:
        view.actions.append(Previous)
    if state.has_next_image:
        view.actions.append(Next)
    view.actions.extend([MarkCorrect, MarkIncorrect, ResetSelection, Export])
    if state.incorrect_flow_active:
        view.comment_input_visible = True
        view.draft_comment = state.draft_comment
        view.actions.extend([CommentTyped, CommentAdded])


def _render_end(state: WorkflowState, view: ViewDescription) -> None:
    summary = summarize_records(state.folder_path, state.records)
    view.lines.append(f"Reviewed {state.folder_path or 'no folder'}")
    view.lines.append(summary.describe())
    view.actions.append(Export)
