"""
Flow Session - Latest-wins sequencing of flow results

FlowManager is a functional core: it never holds session state. A host
(console loop, UI adapter) needs one place that owns the current snapshot
and decides which of several in-flight results wins. That place is
FlowSession.

Sequencing rules:
- prepare_change()/prepare_submit() number commands as they are issued.
  The number travels through FlowManager into the result's snapshot.
- A result from another session (different session_id) is rejected.
- A result whose command was issued before the last applied one is
  rejected: a newer input already landed.
- A result from the newest command that was computed from a superseded
  snapshot is not applied as-is. Its command is replayed against the
  current snapshot, so the newest input lands on top of everything
  applied before it. Replays only happen while the flow is still on the
  step the command was written for.

Synchronous hosts just call change()/submit(), which issue, handle and
accept in one go.
"""

import logging
from typing import Any, Dict, Optional

from wizard_backend.commands import ChangeAnswers, Command, FlowSnapshot, StartFlow, SubmitStep
from wizard_backend.core.flow_manager import FlowManager
from wizard_backend.results import IllegalCommand, StepResult

logger = logging.getLogger(__name__)


class FlowSession:
    """
    Holds the current snapshot for one wizard session.

    Example:
        session = FlowSession(FlowManager(config))
        result = session.start()
        result = session.change({'age': 41})
        result = session.submit({'age': 41, 'dui': False})

    Deferred evaluation:
        command = session.prepare_change({'age': 41})
        result = manager.handle(command)      # e.g. on a worker
        session.accept(result)
    """

    def __init__(self, manager: FlowManager):
        self.manager = manager
        self.current: Optional[StepResult] = None
        self._issued = 0
        self._applied = 0
        self._pending: Dict[int, Command] = {}

    @property
    def revision(self) -> int:
        return self.current.state.revision if self.current is not None else 0

    @property
    def session_id(self) -> Optional[str]:
        if self.current is None:
            return None
        return self.current.state.to_json().get('session_id')

    def start(self) -> StepResult:
        """Start (or restart) the session with fresh state."""
        result = self.manager.handle(StartFlow())
        self.current = result
        self._issued = 0
        self._applied = 0
        self._pending = {}
        return result

    # =========================================================================
    # Issuing
    # =========================================================================

    def prepare_change(self, form_data: Dict[str, Any]) -> ChangeAnswers:
        """Numbered ChangeAnswers against the current snapshot."""
        snapshot = self._snapshot()
        self._issued += 1
        command = ChangeAnswers(form_data=form_data, state=snapshot, sequence=self._issued)
        self._pending[self._issued] = command
        return command

    def prepare_submit(self, form_data: Dict[str, Any]) -> SubmitStep:
        """Numbered SubmitStep against the current snapshot."""
        snapshot = self._snapshot()
        self._issued += 1
        command = SubmitStep(form_data=form_data, state=snapshot, sequence=self._issued)
        self._pending[self._issued] = command
        return command

    def submit(self, form_data: Dict[str, Any]) -> StepResult | IllegalCommand:
        return self._run(self.prepare_submit(form_data))

    def change(self, form_data: Dict[str, Any]) -> StepResult | IllegalCommand:
        return self._run(self.prepare_change(form_data))

    # =========================================================================
    # Accepting
    # =========================================================================

    def accept(self, result: StepResult) -> bool:
        """
        Apply a result, replaying its command if it was computed too early.

        Args:
            result: StepResult from FlowManager.handle()

        Returns:
            bool: True if the session now reflects the result's command,
                False if the result was discarded
        """
        data = result.state.to_json()

        if self.current is None:
            self.current = result
            return True

        if data.get('session_id') != self.session_id:
            logger.debug(
                f"Discarding result from session {data.get('session_id')} "
                f"(current session {self.session_id})"
            )
            return False

        sequence = data.get('command_sequence', 0)
        parent = data.get('parent_revision')

        if sequence and sequence <= self._applied:
            logger.debug(
                f"Discarding superseded result (command {sequence}, "
                f"command {self._applied} already applied)"
            )
            return False

        if parent == self.revision:
            self._apply(result, sequence)
            return True

        command = self._pending.get(sequence)
        if command is None or self._step_of(command.state) != self._step_of(self.current.state):
            logger.debug(
                f"Discarding stale result (computed from revision {parent}, "
                f"current revision {self.revision})"
            )
            return False

        logger.debug(f"Replaying command {sequence} on revision {self.revision}")
        replayed = self.manager.handle(type(command)(
            form_data=command.form_data,
            state=self.current.state,
            sequence=sequence,
        ))

        if isinstance(replayed, IllegalCommand):
            logger.warning(f"Replay of {replayed.command_type} rejected: {replayed.reason}")
            self._pending.pop(sequence, None)
            return False

        self._apply(replayed, sequence)
        return True

    # =========================================================================
    # Helpers
    # =========================================================================

    def _apply(self, result: StepResult, sequence: int) -> None:
        self.current = result
        if sequence:
            self._applied = sequence
            self._pending = {
                number: command for number, command in self._pending.items()
                if number > sequence
            }

    @staticmethod
    def _step_of(snapshot: FlowSnapshot) -> Optional[str]:
        return snapshot.to_json().get('current_step_id')

    def _snapshot(self) -> FlowSnapshot:
        if self.current is None:
            raise RuntimeError("Session not started; call start() first")
        return self.current.state

    def _run(self, command: Command) -> StepResult | IllegalCommand:
        result = self.manager.handle(command)

        if isinstance(result, IllegalCommand):
            logger.warning(f"{result.command_type} rejected: {result.reason}")
            self._pending.pop(command.sequence, None)
            return result

        self.accept(result)
        return self.current
