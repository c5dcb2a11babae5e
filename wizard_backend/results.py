"""
Result types returned by FlowManager.handle()

These are the ONLY return types from the command handler.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from wizard_backend.commands import FlowSnapshot
from wizard_backend.contracts import FilteredStep, FlowStatus


@dataclass(frozen=True)
class StepResult:
    """
    Successful command result.

    Returned by: StartFlow, SubmitStep, ChangeAnswers

    Attributes:
        status: FlowStatus after the command
        state: Opaque snapshot (pass back in the next command)
        step: Filtered step to render (None when blocked or complete)
        step_index: Position of `step` in visible_step_ids (None when terminal)
        visible_step_ids: Steps not skipped, in configuration order
        blocked_reason: Reason when status is BLOCKED
        answers: Accumulated answers (hidden-field answers cleared)
        debug: Events fired, answers cleared, etc.
    """
    status: FlowStatus
    state: FlowSnapshot
    step: Optional[FilteredStep]
    step_index: Optional[int]
    visible_step_ids: Tuple[str, ...]
    blocked_reason: Optional[str] = None
    answers: Dict[str, Any] = field(default_factory=dict)
    debug: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.status in (FlowStatus.BLOCKED, FlowStatus.COMPLETE)


@dataclass(frozen=True)
class IllegalCommand:
    """
    Command rejected by FlowManager (invalid lifecycle transition).

    Examples:
    - SubmitStep after the flow is blocked or complete
    - ChangeAnswers with a snapshot that has no current step

    Attributes:
        reason: Human-readable explanation
        command_type: Name of rejected command type
    """
    reason: str
    command_type: str
