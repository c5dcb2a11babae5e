"""
Flow State Reducer - Fold rule events into a FlowState

reduce_events() is the only place events change flow state. It starts
from the declared defaults every time, so a field hidden by a rule that no
longer applies is visible again on the next evaluation.

Event handling (in the order received):
- BLOCK_FLOW:  blocked = reason (first BLOCK wins; later ones are ignored)
- SKIP_STEP:   step added to skipped_steps
- SHOW_FIELD:  field removed from hidden_fields[step]
- HIDE_FIELD:  field added to hidden_fields[step]
"""

import logging
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Set

from wizard_backend.contracts import EventKind, FlowEvent, FlowState

logger = logging.getLogger(__name__)


def reduce_events(
    base_hidden: Mapping[str, Iterable[str]],
    events: Iterable[FlowEvent]
) -> FlowState:
    """
    Build a fresh FlowState from default-hidden fields and events.

    Args:
        base_hidden: step_id -> default hidden field names
        events: Events from RuleEngine.evaluate(), in rule order

    Returns:
        FlowState: Complete replacement for the previous cycle's state

    Raises:
        ValueError: If an event kind is not handled (closed set)
    """
    blocked: Optional[str] = None
    skipped: Set[str] = set()
    hidden: Dict[str, Set[str]] = {step_id: set(fields) for step_id, fields in base_hidden.items()}

    for event in events:
        kind = event.type

        if kind is EventKind.BLOCK_FLOW:
            if blocked is None:
                blocked = event.reason
            else:
                logger.warning(
                    f"Ignoring additional BLOCK_FLOW '{event.reason}' "
                    f"(flow already blocked: '{blocked}')"
                )

        elif kind is EventKind.SKIP_STEP:
            skipped.add(event.step_id)

        elif kind is EventKind.SHOW_FIELD:
            hidden.get(event.step_id, set()).discard(event.field_id)

        elif kind is EventKind.HIDE_FIELD:
            hidden.setdefault(event.step_id, set()).add(event.field_id)

        else:
            raise ValueError(f"Unhandled event type: {kind}")

    hidden_fields: Dict[str, FrozenSet[str]] = {
        step_id: frozenset(fields) for step_id, fields in hidden.items() if fields
    }

    return FlowState(
        blocked=blocked,
        skipped_steps=frozenset(skipped),
        hidden_fields=hidden_fields,
    )
