"""
Wizard commands and the session snapshot they carry.

A host drives FlowManager by passing one of these to handle(); it never
calls the pipeline stages directly or reads snapshot internals.
"""

from dataclasses import dataclass
from typing import Dict, Any
import copy


@dataclass(frozen=True)
class FlowSnapshot:
    """
    Sealed copy of one wizard session between commands.

    Holds answers, current step id, status, blocked reason, the last
    FlowState and revision bookkeeping. Only FlowManager reads the
    contents; hosts store it, pass it back, or dump it with to_json().
    Contents are copied in and out, so a held snapshot never changes.
    """
    _data: Dict[str, Any]

    @property
    def revision(self) -> int:
        """
        Sequence number of this snapshot within its session.

        The one field hosts may read: FlowSession compares it with a
        result's parent revision to drop out-of-date results.
        """
        return self._data.get('revision', 0)

    def to_json(self) -> dict:
        """Plain dict copy, safe for json.dumps()."""
        return copy.deepcopy(self._data)

    @staticmethod
    def from_json(data: dict) -> "FlowSnapshot":
        """
        Rebuild a snapshot from a to_json() dict (e.g. loaded from disk).

        Args:
            data: Snapshot dict

        Returns:
            FlowSnapshot: Owns a private copy of data
        """
        return FlowSnapshot(_data=copy.deepcopy(data))


# Command types

@dataclass(frozen=True)
class StartFlow:
    """
    Begin a new session from empty answers.

    Returns: StepResult with the first visible step (or blocked/complete).
    """
    pass


@dataclass(frozen=True)
class SubmitStep:
    """
    Submit the current step's form data and advance.

    form_data is merged into the current step's stored answers.
    sequence is the issue number FlowSession assigned (0 if unsequenced).
    Returns: StepResult with next step, blocked, or complete.
    """
    form_data: Dict[str, Any]
    state: FlowSnapshot
    sequence: int = 0


@dataclass(frozen=True)
class ChangeAnswers:
    """
    In-progress edit of the current step (live recomputation).

    form_data replaces the current step's stored answers; the flow stays
    on the current step unless a rule blocks it.
    Returns: StepResult for the same step with updated visibility.
    """
    form_data: Dict[str, Any]
    state: FlowSnapshot
    sequence: int = 0


Command = StartFlow | SubmitStep | ChangeAnswers
