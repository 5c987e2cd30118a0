"""Review workflow: steps, events and the state transition function."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from .models import Annotation, AnnotationRecord, ImageReference, StoreFormatError
from .scanner import scan
from .store import AnnotatedStore, FolderAnnotations, export_merge

DirectoryPicker = Callable[[], Optional[Union[str, Path]]]
Scanner = Callable[[str], List[ImageReference]]
Exporter = Callable[[Path, AnnotatedStore], object]


class Step(Enum):
    WELCOME_CHOOSE_FOLDER = "welcome_choose_folder"
    IMAGES = "images"
    END = "end"

    @property
    def can_advance(self) -> bool:
        return self is not Step.END

    @property
    def title(self) -> str:
        return STEP_TITLES[self]


STEP_TITLES = {
    Step.WELCOME_CHOOSE_FOLDER: "Choose a folder",
    Step.IMAGES: "Review images",
    Step.END: "Done",
}

STEPS: Tuple[Step, ...] = (Step.WELCOME_CHOOSE_FOLDER, Step.IMAGES, Step.END)


# Events ---------------------------------------------------------------------


class Event:
    """Base class for everything the shell can dispatch."""


@dataclass(frozen=True)
class ChooseFolder(Event):
    pass


@dataclass(frozen=True)
class Next(Event):
    pass


@dataclass(frozen=True)
class Previous(Event):
    pass


@dataclass(frozen=True)
class MarkCorrect(Event):
    pass


@dataclass(frozen=True)
class MarkIncorrect(Event):
    pass


@dataclass(frozen=True)
class ResetSelection(Event):
    pass


@dataclass(frozen=True)
class CommentTyped(Event):
    text: str


@dataclass(frozen=True)
class CommentAdded(Event):
    text: str


@dataclass(frozen=True)
class Export(Event):
    pass


@dataclass(frozen=True)
class AdvanceStep(Event):
    pass


@dataclass(frozen=True)
class RetreatStep(Event):
    pass


# Store deltas ---------------------------------------------------------------


class StoreDelta:
    """A change to the in-memory store, applied unconditionally after a transition."""

    def apply(self, store: AnnotatedStore) -> AnnotatedStore:
        raise NotImplementedError


@dataclass(frozen=True)
class NoChange(StoreDelta):
    def apply(self, store: AnnotatedStore) -> AnnotatedStore:
        return store


@dataclass(frozen=True, eq=False)
class ReplaceFolder(StoreDelta):
    """Swap the whole in-memory store for a freshly initialised folder fragment."""

    fragment: AnnotatedStore

    def apply(self, store: AnnotatedStore) -> AnnotatedStore:
        return self.fragment


@dataclass(frozen=True)
class SetAnnotation(StoreDelta):
    folder_path: str
    index: int
    value: Annotation
    clear_comments: bool = False

    def apply(self, store: AnnotatedStore) -> AnnotatedStore:
        return store.set_annotation(self.folder_path, self.index, self.value, clear_comments=self.clear_comments)


@dataclass(frozen=True)
class SetComment(StoreDelta):
    folder_path: str
    index: int
    text: Optional[str]

    def apply(self, store: AnnotatedStore) -> AnnotatedStore:
        return store.set_comment(self.folder_path, self.index, self.text)


# State ----------------------------------------------------------------------


@dataclass(frozen=True)
class ExportStatus:
    ok: bool
    message: str


@dataclass(frozen=True)
class WorkflowState:
    steps: Tuple[Step, ...] = STEPS
    current_step_index: int = 0
    folder_path: str = ""
    store: AnnotatedStore = field(default_factory=AnnotatedStore)
    current_image_index: int = 0
    draft_comment: str = ""
    incorrect_flow_active: bool = False
    folder_loaded: bool = False
    export_status: Optional[ExportStatus] = None

    @property
    def step(self) -> Step:
        return self.steps[self.current_step_index]

    @property
    def records(self) -> FolderAnnotations:
        return self.store.records(self.folder_path)

    @property
    def image_count(self) -> int:
        return len(self.records)

    @property
    def current_record(self) -> Optional[AnnotationRecord]:
        return self.store.record(self.folder_path, self.current_image_index)

    @property
    def has_previous_step(self) -> bool:
        return self.current_step_index > 0

    @property
    def can_advance_step(self) -> bool:
        if self.current_step_index + 1 >= len(self.steps) or not self.step.can_advance:
            return False
        if self.step is Step.WELCOME_CHOOSE_FOLDER:
            return self.folder_loaded
        return True

    @property
    def has_next_image(self) -> bool:
        return self.current_image_index + 1 < self.image_count

    @property
    def has_previous_image(self) -> bool:
        return self.current_image_index != 0


@dataclass(frozen=True, eq=False)
class Transition:
    state: WorkflowState
    delta: StoreDelta


# Machine --------------------------------------------------------------------


class ReviewWorkflow:
    """Turns (state, event) into the next state plus the store delta that produced it.

    The incoming state is never modified. The picker is the only blocking
    collaborator; ``Export`` performs a synchronous read-merge-write through
    ``exporter``.
    """

    def __init__(
        self,
        *,
        picker: DirectoryPicker,
        export_path: Path,
        scanner: Scanner = scan,
        exporter: Exporter = export_merge,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.picker = picker
        self.export_path = Path(export_path)
        self.scanner = scanner
        self.exporter = exporter
        self.logger = logger or logging.getLogger("review_lib.workflow")
        self._handlers: Dict[type, Callable[..., Tuple[WorkflowState, StoreDelta]]] = {
            ChooseFolder: self._choose_folder,
            Next: self._next_image,
            Previous: self._previous_image,
            MarkCorrect: self._mark_correct,
            MarkIncorrect: self._mark_incorrect,
            ResetSelection: self._reset_selection,
            CommentTyped: self._comment_typed,
            CommentAdded: self._comment_added,
            Export: self._export,
            AdvanceStep: self._advance_step,
            RetreatStep: self._retreat_step,
        }

    def transition(self, state: WorkflowState, event: Event) -> Transition:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise ValueError(f"Unsupported event: {event!r}")
        self.logger.debug(
            "event=%s step=%s index=%d",
            type(event).__name__,
            state.step.value,
            state.current_image_index,
        )
        next_state, delta = handler(state, event)
        return Transition(state=replace(next_state, store=delta.apply(next_state.store)), delta=delta)

    # Folder selection

    def _choose_folder(self, state: WorkflowState, event: Event) -> Tuple[WorkflowState, StoreDelta]:
        picked = self.picker()
        if picked is None:
            self.logger.info("Folder selection cancelled")
            return replace(state, folder_loaded=False), NoChange()
        folder_path = str(picked)
        images = self.scanner(folder_path)
        fragment = AnnotatedStore.init(folder_path, images)
        self.logger.info("Loaded folder %s with %d file(s)", folder_path, len(images))
        if state.folder_path and state.folder_path != folder_path:
            self.logger.info("Discarding unexported annotations for %s", state.folder_path)
        next_state = replace(
            state,
            folder_path=folder_path,
            current_image_index=0,
            draft_comment="",
            incorrect_flow_active=False,
            folder_loaded=True,
            export_status=None,
        )
        return next_state, ReplaceFolder(fragment)

    # Image navigation

    def _next_image(self, state: WorkflowState, event: Event) -> Tuple[WorkflowState, StoreDelta]:
        index = state.current_image_index
        if state.has_next_image:
            index += 1
        else:
            self.logger.debug("Next ignored at last image index=%d", index)
        return self._moved_to(state, index), NoChange()

    def _previous_image(self, state: WorkflowState, event: Event) -> Tuple[WorkflowState, StoreDelta]:
        index = state.current_image_index
        if index > 0:
            index -= 1
        else:
            self.logger.debug("Previous ignored at first image")
        return self._moved_to(state, index), NoChange()

    @staticmethod
    def _moved_to(state: WorkflowState, index: int) -> WorkflowState:
        return replace(state, current_image_index=index, incorrect_flow_active=False, draft_comment="")

    # Classification

    def _mark_correct(self, state: WorkflowState, event: Event) -> Tuple[WorkflowState, StoreDelta]:
        delta = SetAnnotation(state.folder_path, state.current_image_index, Annotation.CORRECT, clear_comments=True)
        return replace(state, incorrect_flow_active=False, draft_comment=""), delta

    def _mark_incorrect(self, state: WorkflowState, event: Event) -> Tuple[WorkflowState, StoreDelta]:
        record = state.current_record
        draft = record.comments if record is not None and record.comments else state.draft_comment
        delta = SetAnnotation(state.folder_path, state.current_image_index, Annotation.INCORRECT)
        return replace(state, incorrect_flow_active=True, draft_comment=draft), delta

    def _reset_selection(self, state: WorkflowState, event: Event) -> Tuple[WorkflowState, StoreDelta]:
        delta = SetAnnotation(state.folder_path, state.current_image_index, Annotation.UNSET)
        return replace(state, incorrect_flow_active=False, draft_comment=""), delta

    def _comment_typed(self, state: WorkflowState, event: CommentTyped) -> Tuple[WorkflowState, StoreDelta]:
        return replace(state, draft_comment=event.text), NoChange()

    def _comment_added(self, state: WorkflowState, event: CommentAdded) -> Tuple[WorkflowState, StoreDelta]:
        text = event.text if event.text.strip() else None
        delta = SetComment(state.folder_path, state.current_image_index, text)
        return replace(state, incorrect_flow_active=False, draft_comment=""), delta

    # Persistence

    def _export(self, state: WorkflowState, event: Event) -> Tuple[WorkflowState, StoreDelta]:
        if not state.folder_path:
            status = ExportStatus(ok=False, message="No folder selected; nothing to export")
            return replace(state, export_status=status), NoChange()
        fragment = state.store.fragment(state.folder_path)
        try:
            self.exporter(self.export_path, fragment)
        except (StoreFormatError, OSError) as exc:
            self.logger.error("Export to %s failed: %s", self.export_path, exc)
            status = ExportStatus(ok=False, message=f"Export failed: {exc}")
        else:
            status = ExportStatus(
                ok=True,
                message=f"Exported {state.image_count} record(s) for {state.folder_path} to {self.export_path}",
            )
        return replace(state, export_status=status), NoChange()

    # Step navigation

    def _advance_step(self, state: WorkflowState, event: Event) -> Tuple[WorkflowState, StoreDelta]:
        if not state.can_advance_step:
            self.logger.debug("Advance ignored at step=%s folder_loaded=%s", state.step.value, state.folder_loaded)
            return state, NoChange()
        return replace(state, current_step_index=state.current_step_index + 1), NoChange()

    def _retreat_step(self, state: WorkflowState, event: Event) -> Tuple[WorkflowState, StoreDelta]:
        if not state.has_previous_step:
            return state, NoChange()
        leaving = state.step
        next_state = replace(state, current_step_index=state.current_step_index - 1)
        if leaving is Step.IMAGES:
            next_state = replace(next_state, folder_loaded=False, incorrect_flow_active=False, draft_comment="")
        return next_state, NoChange()
