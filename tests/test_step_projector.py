"""
Tests for the Step Projector

Run with: pytest tests/test_step_projector.py -v
"""

import copy

from wizard_backend.contracts import Step
from wizard_backend.core.step_projector import project_step


def make_step():
    return Step(
        id="profile",
        title="Profile",
        schema={
            "type": "object",
            "properties": {
                "age": {"type": "number"},
                "income": {"type": "number"},
                "employer": {"type": "string"},
            },
            "required": ["age", "income"],
        },
        ui_schema={
            "ui:order": ["employer", "income", "age"],
            "income": {"ui:title": "Yearly income"},
            "employer": {"ui:placeholder": "Company"},
        },
        default_hidden_fields=frozenset({"employer"}),
    )


def test_empty_hidden_returns_equivalent_step():
    step = make_step()

    filtered = project_step(step, frozenset())

    assert filtered.schema == step.schema
    assert filtered.ui_schema == step.ui_schema
    assert filtered.hidden_fields == frozenset()


def test_hidden_properties_removed_from_schema_and_ui_schema():
    filtered = project_step(make_step(), {"employer"})

    assert filtered.field_names == ("age", "income")
    assert "employer" not in filtered.ui_schema
    assert filtered.ui_schema["income"] == {"ui:title": "Yearly income"}


def test_required_dropped_for_hidden_fields():
    filtered = project_step(make_step(), {"income"})

    assert filtered.schema["required"] == ["age"]


def test_required_subset_of_properties():
    step = make_step()

    for hidden in [set(), {"age"}, {"income"}, {"age", "income"}, {"age", "income", "employer"}]:
        filtered = project_step(step, hidden)
        assert set(filtered.schema["required"]) <= set(filtered.schema["properties"])


def test_ui_order_filtered():
    filtered = project_step(make_step(), {"employer"})

    assert filtered.ui_schema["ui:order"] == ["income", "age"]


def test_ui_directives_kept():
    step = make_step()
    step.ui_schema["ui:submitButtonOptions"] = {"norender": False}

    filtered = project_step(step, {"age"})

    assert filtered.ui_schema["ui:submitButtonOptions"] == {"norender": False}


def test_source_step_not_mutated():
    step = make_step()
    before_schema = copy.deepcopy(step.schema)
    before_ui = copy.deepcopy(step.ui_schema)

    filtered = project_step(step, {"age", "employer"})
    filtered.schema["properties"]["income"]["type"] = "string"

    assert step.schema == before_schema
    assert step.ui_schema == before_ui


def test_unknown_hidden_names_ignored():
    filtered = project_step(make_step(), {"nickname"})

    assert filtered.field_names == ("age", "income", "employer")
    assert filtered.hidden_fields == frozenset()


def test_to_dict_uses_renderer_keys():
    data = project_step(make_step(), {"employer"}).to_dict()

    assert set(data) == {"id", "title", "schema", "uiSchema"}
