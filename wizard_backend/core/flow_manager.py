"""
Flow Manager - Step-flow orchestration (Functional Core)

Responsibilities:
- Accept commands (StartFlow, SubmitStep, ChangeAnswers)
- Run the evaluation pipeline: flatten -> evaluate -> reduce
- Clear answers of fields that end up hidden
- Decide the next observable state: next step, blocked, or complete
- Project the step to render with hidden fields removed

Design principles:
- Ephemeral per command (no session state held between commands)
- Functional core with sealed snapshot in/out
- Full recomputation on every command (never patch previous flow state)
- Thin orchestration layer (logic lives in the pipeline modules)

State machine:
    collecting --submit--> collecting | blocked | complete
    collecting --change--> collecting | blocked
    blocked, complete: terminal (commands return IllegalCommand)
"""

import copy
import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from wizard_backend.commands import ChangeAnswers, Command, FlowSnapshot, StartFlow, SubmitStep
from wizard_backend.contracts import TERMINAL_STATUSES, FlowEvent, FlowState, FlowStatus
from wizard_backend.core.fact_flattener import flatten
from wizard_backend.core.flow_config import FlowConfig
from wizard_backend.core.flow_reducer import reduce_events
from wizard_backend.core.rule_engine import RuleEngine
from wizard_backend.core.step_projector import project_step
from wizard_backend.results import IllegalCommand, StepResult

logger = logging.getLogger(__name__)


class FlowManager:
    """
    Orchestrates a multi-step wizard flow.

    Functional core design:
    - Configuration and rule engine cached (immutable)
    - handle() transforms snapshot deterministically
    - No implicit state accumulation
    """

    def __init__(self, config: FlowConfig, rule_engine: Optional[RuleEngine] = None):
        """
        Initialize Flow Manager.

        Args:
            config: Validated flow configuration
            rule_engine: Engine for config.rules (built from config if omitted)

        Raises:
            TypeError: If rule_engine has no callable evaluate()
        """
        if rule_engine is None:
            rule_engine = RuleEngine(list(config.rules))

        if not callable(getattr(rule_engine, 'evaluate', None)):
            raise TypeError("rule_engine must have callable evaluate() method")

        self.config = config
        self.engine = rule_engine
        self._fact_keys = config.fact_keys()
        self._default_hidden = config.default_hidden_fields()

        logger.info(f"Flow Manager initialized ({len(config.steps)} steps)")

    # =========================================================================
    # Public API
    # =========================================================================

    def handle(self, command: Command) -> StepResult | IllegalCommand:
        """
        Process a single command.

        Args:
            command: StartFlow, SubmitStep or ChangeAnswers

        Returns:
            StepResult on success, IllegalCommand on lifecycle violation

        Raises:
            TypeError: If command is not a known command type
        """
        if isinstance(command, StartFlow):
            return self._start()

        if isinstance(command, (SubmitStep, ChangeAnswers)):
            data = command.state.to_json()
            rejection = self._check_collecting(data, type(command).__name__)
            if rejection is not None:
                return rejection

            data['command_sequence'] = command.sequence

            if isinstance(command, SubmitStep):
                return self._submit(data, command.form_data)
            return self._change(data, command.form_data)

        raise TypeError(f"Unknown command type: {type(command).__name__}")

    def evaluate(self, answers: Dict[str, Any]) -> Tuple[FlowState, Dict[str, Any], List[str], List[FlowEvent]]:
        """
        Run the evaluation pipeline to a fixed point.

        Answers of hidden fields are cleared and the rules rerun until no
        further answers are cleared. Clearing only removes answers, so the
        loop ends after at most one pass per stored answer.

        Args:
            answers: {step_id: {field: value}}

        Returns:
            tuple: (flow_state, cleaned_answers, cleared_paths, events)
        """
        answers = copy.deepcopy(answers)
        cleared_paths: List[str] = []

        while True:
            facts = flatten(answers, self._fact_keys)
            events = self.engine.evaluate(facts)
            flow_state = reduce_events(self._default_hidden, events)

            cleared = self._clear_hidden_answers(answers, flow_state)
            if not cleared:
                return flow_state, answers, cleared_paths, events

            logger.debug(f"Cleared answers of hidden fields: {cleared}")
            cleared_paths.extend(cleared)

    def visible_step_ids(self, flow_state: FlowState) -> Tuple[str, ...]:
        """All configured steps minus skipped ones, in configuration order."""
        return tuple(
            step_id for step_id in self.config.step_ids
            if step_id not in flow_state.skipped_steps
        )

    # =========================================================================
    # Command Handlers
    # =========================================================================

    def _start(self) -> StepResult:
        session_id = uuid.uuid4().hex[:8]
        flow_state, answers, cleared, events = self.evaluate({})
        visible = self.visible_step_ids(flow_state)

        logger.info(f"Started flow session {session_id}")

        if flow_state.blocked is not None:
            status, current = FlowStatus.BLOCKED, None
        elif not visible:
            status, current = FlowStatus.COMPLETE, None
        else:
            status, current = FlowStatus.COLLECTING, visible[0]

        data = {
            'session_id': session_id,
            'revision': 0,
            'command_sequence': 0,
            'answers': answers,
            'submitted_steps': [],
        }

        return self._build_result(data, status, current, flow_state, events, cleared)

    def _submit(self, data: Dict[str, Any], form_data: Dict[str, Any]) -> StepResult:
        current = data['current_step_id']
        answers = data['answers']
        answers[current] = {**answers.get(current, {}), **copy.deepcopy(form_data)}

        flow_state, answers, cleared, events = self.evaluate(answers)
        data['answers'] = answers
        data['submitted_steps'] = data.get('submitted_steps', []) + [current]

        if flow_state.blocked is not None:
            logger.info(f"Session {data['session_id']} blocked: {flow_state.blocked}")
            return self._build_result(data, FlowStatus.BLOCKED, None, flow_state, events, cleared)

        next_step = self._next_visible_step(current, flow_state)

        if next_step is None:
            logger.info(f"Session {data['session_id']} complete")
            return self._build_result(data, FlowStatus.COMPLETE, None, flow_state, events, cleared)

        logger.info(f"Session {data['session_id']}: {current} -> {next_step}")
        return self._build_result(data, FlowStatus.COLLECTING, next_step, flow_state, events, cleared)

    def _change(self, data: Dict[str, Any], form_data: Dict[str, Any]) -> StepResult:
        current = data['current_step_id']
        answers = data['answers']
        answers[current] = copy.deepcopy(form_data)

        flow_state, answers, cleared, events = self.evaluate(answers)
        data['answers'] = answers

        if flow_state.blocked is not None:
            logger.info(f"Session {data['session_id']} blocked: {flow_state.blocked}")
            return self._build_result(data, FlowStatus.BLOCKED, None, flow_state, events, cleared)

        return self._build_result(data, FlowStatus.COLLECTING, current, flow_state, events, cleared)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _check_collecting(self, data: Dict[str, Any], command_type: str) -> Optional[IllegalCommand]:
        status = data.get('status')

        if status in TERMINAL_STATUSES:
            return IllegalCommand(
                reason=f"Flow is {status}; start a new session",
                command_type=command_type
            )

        current = data.get('current_step_id')
        if status != FlowStatus.COLLECTING.value or not self.config.has_step(current or ''):
            return IllegalCommand(
                reason="Snapshot has no current step",
                command_type=command_type
            )

        return None

    def _next_visible_step(self, current: str, flow_state: FlowState) -> Optional[str]:
        """
        First non-skipped step after `current` in configuration order.

        Positions come from the configuration, not from the previous visible
        list, so a skip set that changed during this submit cannot shift the
        flow onto the wrong step.
        """
        step_ids = self.config.step_ids
        position = step_ids.index(current)

        for step_id in step_ids[position + 1:]:
            if step_id not in flow_state.skipped_steps:
                return step_id

        return None

    def _clear_hidden_answers(self, answers: Dict[str, Any], flow_state: FlowState) -> List[str]:
        cleared = []

        for step_id, hidden in flow_state.hidden_fields.items():
            step_answers = answers.get(step_id)
            if not isinstance(step_answers, dict):
                continue

            for field_name in sorted(hidden):
                if field_name in step_answers:
                    del step_answers[field_name]
                    cleared.append(f"{step_id}.{field_name}")

        return cleared

    def _build_result(
        self,
        data: Dict[str, Any],
        status: FlowStatus,
        current_step_id: Optional[str],
        flow_state: FlowState,
        events: List[FlowEvent],
        cleared: List[str]
    ) -> StepResult:
        """
        Build StepResult with a fresh sealed snapshot.

        Every result bumps the revision, so FlowSession can tell which
        snapshot a result was computed from.
        """
        visible = self.visible_step_ids(flow_state)

        snapshot_data = dict(data)
        snapshot_data['revision'] = data.get('revision', 0) + 1
        snapshot_data['parent_revision'] = data.get('revision', 0)
        snapshot_data['status'] = status.value
        snapshot_data['current_step_id'] = current_step_id
        snapshot_data['blocked_reason'] = flow_state.blocked
        snapshot_data['flow_state'] = flow_state.to_dict()

        step = None
        step_index = None
        if current_step_id is not None:
            step = project_step(
                self.config.get_step(current_step_id),
                flow_state.hidden_for(current_step_id)
            )
            if current_step_id in visible:
                step_index = visible.index(current_step_id)

        return StepResult(
            status=status,
            state=FlowSnapshot.from_json(snapshot_data),
            step=step,
            step_index=step_index,
            visible_step_ids=visible,
            blocked_reason=flow_state.blocked,
            answers=copy.deepcopy(data['answers']),
            debug={
                'events': [event.to_dict() for event in events],
                'cleared_answers': list(cleared),
            },
        )
