"""Single-threaded event loop glue between a shell and the workflow."""
from __future__ import annotations

from typing import Callable, Optional

from .view import ViewDescription, render
from .workflow import Event, ReviewWorkflow, StoreDelta, WorkflowState

RenderCallback = Callable[[ViewDescription], None]


class ReviewSession:
    """Holds the live state and processes one event at a time.

    ``dispatch`` finishes the transition (including any export) before it
    returns, then hands the fresh view to ``on_render``.
    """

    def __init__(
        self,
        workflow: ReviewWorkflow,
        *,
        on_render: Optional[RenderCallback] = None,
        renderer: Callable[[WorkflowState], ViewDescription] = render,
        state: Optional[WorkflowState] = None,
    ) -> None:
        self.workflow = workflow
        self.on_render = on_render
        self.renderer = renderer
        self._state = state or WorkflowState()
        self._last_delta: Optional[StoreDelta] = None

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def last_delta(self) -> Optional[StoreDelta]:
        return self._last_delta

    def view(self) -> ViewDescription:
        return self.renderer(self._state)

    def dispatch(self, event: Event) -> ViewDescription:
        result = self.workflow.transition(self._state, event)
        self._state = result.state
        self._last_delta = result.delta
        view = self.renderer(self._state)
        if self.on_render is not None:
            self.on_render(view)
        return view
