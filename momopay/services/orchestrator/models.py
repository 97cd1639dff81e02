"""In-memory run record for one provisioning-and-payment workflow.

The run lives for a single inbound request. Its timeline is an ordered audit
trail of every state transition, kept only for logging and the response.
"""

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, Field

from momopay.common.errors import MomoError
from momopay.common.state_machine import FAILED, START, TERMINAL_STATES, validate_transition


class TimelineEntry(BaseModel):
    """One applied state transition."""

    from_state: str
    to_state: str
    reason: str
    at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class WorkflowRun(BaseModel):
    """Current state of one workflow run."""

    run_id: str = Field(default_factory=lambda: str(uuid4()))
    state: str = START
    failing_step: str | None = None
    timeline: list[TimelineEntry] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, new_state: str, reason: str) -> None:
        """Apply one validated transition and record it."""

        validate_transition(self.state, new_state)
        self.timeline.append(TimelineEntry(from_state=self.state, to_state=new_state, reason=reason))
        self.state = new_state

    def fail(self, error: MomoError) -> None:
        self.failing_step = error.step
        self.advance(FAILED, reason=f"{error.step}:{error.reason}")
