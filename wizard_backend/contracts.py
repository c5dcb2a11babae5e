"""
Semantic contracts for the step-flow wizard engine.

This module defines immutable data structures that serve as contracts
between modules. These are NOT validators - they define shape and
semantics without enforcing rules. Validation lives in FlowConfig.

Design principles:
- Frozen dataclasses (immutable after creation)
- No validation logic (contracts, not validators)
- No dependencies on other modules
- Definition layer only (no enforcement)

Contents:
- UNKNOWN: Sentinel for declared-but-unanswered facts
- EventKind / FlowStatus: Closed string enums (JSON friendly)
- Step, Rule, FlowEvent: Static configuration
- FlowState: Derived per-evaluation state (blocked / skipped / hidden)
- FilteredStep: Step view with hidden fields removed

Usage:
    from wizard_backend.contracts import Step, Rule, FlowEvent, EventKind
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple


class _Unknown:
    """
    Sentinel type for facts that are declared but not yet answered.

    Distinct from None: a renderer may legitimately submit null, while
    UNKNOWN means the user has not answered at all. There is exactly one
    instance (UNKNOWN); compare with `is`.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


UNKNOWN = _Unknown()


class EventKind(str, Enum):
    """
    Flow-control events a rule can emit.

    BLOCK_FLOW:  Terminate the flow with a user-facing reason.
                 params: reason
    SKIP_STEP:   Remove a step from the visible sequence.
                 params: stepId
    SHOW_FIELD:  Remove a field from the step's hidden set.
                 params: stepId, fieldId
    HIDE_FIELD:  Add a field to the step's hidden set.
                 params: stepId, fieldId
    """
    BLOCK_FLOW = "BLOCK_FLOW"
    SKIP_STEP = "SKIP_STEP"
    SHOW_FIELD = "SHOW_FIELD"
    HIDE_FIELD = "HIDE_FIELD"


# Required params per event kind (single source of truth for validation)
EVENT_PARAMS = {
    EventKind.BLOCK_FLOW: ("reason",),
    EventKind.SKIP_STEP: ("stepId",),
    EventKind.SHOW_FIELD: ("stepId", "fieldId"),
    EventKind.HIDE_FIELD: ("stepId", "fieldId"),
}

VALID_EVENT_TYPES = {kind.value for kind in EventKind}


class FlowStatus(str, Enum):
    """
    Session status for the flow orchestrator.

    COLLECTING: A step is being shown and answers are accepted.
    BLOCKED:    A BLOCK_FLOW rule fired. Terminal.
    COMPLETE:   No visible step remains after the last submission. Terminal.
    """
    COLLECTING = "collecting"
    BLOCKED = "blocked"
    COMPLETE = "complete"


TERMINAL_STATUSES = {FlowStatus.BLOCKED.value, FlowStatus.COMPLETE.value}


@dataclass(frozen=True)
class Step:
    """
    One page of the wizard.

    Attributes:
        id: Unique step identifier, also the first segment of fact paths.
        title: Heading shown by the renderer.
        schema: Data schema (object with 'properties' and 'required').
            Opaque to the engine except for property filtering.
        ui_schema: Presentation schema keyed by property name, plus
            'ui:*' directives such as 'ui:order'.
        default_hidden_fields: Fields hidden before any rule fires.

    Note:
        schema and ui_schema are plain dicts. FlowConfig hands out deep
        copies, and StepProjector never mutates them.
    """
    id: str
    title: str
    schema: Dict[str, Any]
    ui_schema: Dict[str, Any] = field(default_factory=dict)
    default_hidden_fields: FrozenSet[str] = frozenset()

    @property
    def field_names(self) -> Tuple[str, ...]:
        """Declared property names in schema order."""
        return tuple(self.schema.get("properties", {}).keys())


@dataclass(frozen=True)
class FlowEvent:
    """
    Event emitted by a rule whose condition holds.

    Attributes:
        type: EventKind
        params: Event parameters (see EVENT_PARAMS)
    """
    type: EventKind
    params: Dict[str, Any] = field(default_factory=dict)

    @property
    def step_id(self) -> Optional[str]:
        return self.params.get("stepId")

    @property
    def field_id(self) -> Optional[str]:
        return self.params.get("fieldId")

    @property
    def reason(self) -> Optional[str]:
        return self.params.get("reason")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "params": dict(self.params)}


@dataclass(frozen=True)
class Rule:
    """
    Declarative condition -> event mapping.

    Attributes:
        conditions: Condition tree. Combinators 'all', 'any' (lists) and
            'not' (single child) over atomic predicates
            {'fact': 'step.field', 'operator': 'lessThan', 'value': 25}.
        event: Event emitted when the condition tree is true.
        name: Optional label used in logs.
    """
    conditions: Dict[str, Any]
    event: FlowEvent
    name: Optional[str] = None


@dataclass(frozen=True)
class FlowState:
    """
    Derived flow state for one evaluation.

    Produced by reduce_events() and never patched afterwards: every
    answer change produces a fresh FlowState from the declared defaults.

    Attributes:
        blocked: Block reason, or None if the flow may continue.
        skipped_steps: Step ids removed from the visible sequence.
        hidden_fields: step_id -> field names hidden on that step.
    """
    blocked: Optional[str] = None
    skipped_steps: FrozenSet[str] = frozenset()
    hidden_fields: Dict[str, FrozenSet[str]] = field(default_factory=dict)

    def hidden_for(self, step_id: str) -> FrozenSet[str]:
        return self.hidden_fields.get(step_id, frozenset())

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe view (sets become sorted lists)."""
        return {
            "blocked": self.blocked,
            "skipped_steps": sorted(self.skipped_steps),
            "hidden_fields": {
                step_id: sorted(fields)
                for step_id, fields in sorted(self.hidden_fields.items())
            },
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "FlowState":
        return FlowState(
            blocked=data.get("blocked"),
            skipped_steps=frozenset(data.get("skipped_steps", [])),
            hidden_fields={
                step_id: frozenset(fields)
                for step_id, fields in data.get("hidden_fields", {}).items()
            },
        )


@dataclass(frozen=True)
class FilteredStep:
    """
    Step view handed to the form renderer.

    Hidden properties are removed from schema, required, and ui_schema.
    """
    id: str
    title: str
    schema: Dict[str, Any]
    ui_schema: Dict[str, Any]
    hidden_fields: FrozenSet[str] = frozenset()

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(self.schema.get("properties", {}).keys())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "schema": self.schema,
            "uiSchema": self.ui_schema,
        }
