"""
Tests for the Flow State Reducer

Run with: pytest tests/test_flow_reducer.py -v
"""

import logging

import pytest

from wizard_backend.contracts import EventKind, FlowEvent, FlowState
from wizard_backend.core.flow_reducer import reduce_events


def block(reason):
    return FlowEvent(EventKind.BLOCK_FLOW, {"reason": reason})


def skip(step_id):
    return FlowEvent(EventKind.SKIP_STEP, {"stepId": step_id})


def show(step_id, field_id):
    return FlowEvent(EventKind.SHOW_FIELD, {"stepId": step_id, "fieldId": field_id})


def hide(step_id, field_id):
    return FlowEvent(EventKind.HIDE_FIELD, {"stepId": step_id, "fieldId": field_id})


BASE_HIDDEN = {"driver": frozenset({"homeowner"})}


def test_no_events_yields_defaults():
    state = reduce_events(BASE_HIDDEN, [])

    assert state == FlowState(blocked=None, skipped_steps=frozenset(), hidden_fields=BASE_HIDDEN)


def test_block_sets_reason():
    state = reduce_events(BASE_HIDDEN, [block("Driver has a DUI")])

    assert state.blocked == "Driver has a DUI"


def test_first_block_wins(caplog):
    with caplog.at_level(logging.WARNING):
        state = reduce_events({}, [block("first"), block("second")])

    assert state.blocked == "first"
    assert "second" in caplog.text


def test_skip_accumulates():
    state = reduce_events({}, [skip("vehicle"), skip("payment"), skip("vehicle")])

    assert state.skipped_steps == frozenset({"vehicle", "payment"})


def test_show_removes_default_hidden_field():
    state = reduce_events(BASE_HIDDEN, [show("driver", "homeowner")])

    assert state.hidden_for("driver") == frozenset()
    assert "driver" not in state.hidden_fields


def test_hide_already_hidden_field_is_idempotent():
    state = reduce_events(BASE_HIDDEN, [hide("driver", "homeowner")])

    assert state.hidden_fields == BASE_HIDDEN


def test_hide_on_step_without_defaults():
    state = reduce_events(BASE_HIDDEN, [hide("vehicle", "year")])

    assert state.hidden_for("vehicle") == frozenset({"year"})
    assert state.hidden_for("driver") == frozenset({"homeowner"})


def test_show_then_hide_follows_event_order():
    shown_last = reduce_events(BASE_HIDDEN, [hide("driver", "homeowner"), show("driver", "homeowner")])
    hidden_last = reduce_events(BASE_HIDDEN, [show("driver", "homeowner"), hide("driver", "homeowner")])

    assert shown_last.hidden_for("driver") == frozenset()
    assert hidden_last.hidden_for("driver") == frozenset({"homeowner"})


def test_show_unknown_step_is_a_no_op():
    state = reduce_events({}, [show("vehicle", "year")])

    assert state.hidden_fields == {}


def test_base_hidden_is_not_mutated():
    base = {"driver": {"homeowner"}}

    reduce_events(base, [show("driver", "homeowner"), hide("driver", "dui")])

    assert base == {"driver": {"homeowner"}}


def test_every_reduction_starts_from_defaults():
    """A field shown in one cycle is hidden again when the event stops firing."""
    shown = reduce_events(BASE_HIDDEN, [show("driver", "homeowner")])
    next_cycle = reduce_events(BASE_HIDDEN, [])

    assert shown.hidden_for("driver") == frozenset()
    assert next_cycle.hidden_for("driver") == frozenset({"homeowner"})


def test_unhandled_event_type_raises():
    class Bogus:
        type = "BOGUS"

    with pytest.raises(ValueError):
        reduce_events({}, [Bogus()])


def test_round_trip_through_dict():
    state = reduce_events(BASE_HIDDEN, [block("x"), skip("vehicle"), hide("vehicle", "year")])

    assert FlowState.from_dict(state.to_dict()) == state
