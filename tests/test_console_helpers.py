"""
Tests for the console harness helpers (answer mapping and display)

Run with: pytest tests/test_console_helpers.py -v
"""

from wizard_backend.contracts import FilteredStep
from wizard_backend.utils.answer_mappings import map_answer
from wizard_backend.utils.display_helpers import (
    field_label,
    format_answers_for_display,
    format_field_value,
    ordered_fields,
)


# ========================
# Answer mapping
# ========================

def test_boolean_synonyms():
    assert map_answer({"type": "boolean"}, "Yes") == (True, None)
    assert map_answer({"type": "boolean"}, " nope ") == (False, None)


def test_boolean_rejects_other_text():
    value, error = map_answer({"type": "boolean"}, "maybe")

    assert value is None
    assert error == "Please answer yes or no"


def test_number_whole_values_become_int():
    value, error = map_answer({"type": "number"}, "41")

    assert value == 41
    assert isinstance(value, int)
    assert error is None


def test_number_keeps_fraction():
    assert map_answer({"type": "number"}, "2.5") == (2.5, None)


def test_number_rejects_text():
    assert map_answer({"type": "number"}, "forty") == (None, "Please enter a number")


def test_integer_rejects_fraction():
    assert map_answer({"type": "integer"}, "2.5") == (None, "Please enter an integer")


def test_minimum_and_maximum():
    schema = {"type": "number", "minimum": 16, "maximum": 120}

    assert map_answer(schema, "12") == (None, "Must be at least 16")
    assert map_answer(schema, "130") == (None, "Must be at most 120")
    assert map_answer(schema, "16") == (16, None)


def test_enum_case_insensitive():
    schema = {"type": "string", "enum": ["Personal", "Commercial"]}

    assert map_answer(schema, "commercial") == ("Commercial", None)
    assert map_answer(schema, "fleet") == (None, "Choose one of: Personal, Commercial")


def test_plain_string_passthrough():
    assert map_answer({"type": "string"}, "  Ada  ") == ("Ada", None)


# ========================
# Display
# ========================

def make_step(ui_schema):
    return FilteredStep(
        id="vehicle",
        title="Vehicle Info",
        schema={
            "type": "object",
            "properties": {
                "type": {"type": "string", "title": "Kind"},
                "year": {"type": "number"},
                "vin": {"type": "string"},
            },
        },
        ui_schema=ui_schema,
    )


def test_field_label_precedence():
    step = make_step({"type": {"ui:title": "Vehicle Type"}})

    assert field_label(step, "type") == "Vehicle Type"
    assert field_label(make_step({}), "type") == "Kind"
    assert field_label(step, "year") == "Year"


def test_ordered_fields_without_order():
    assert ordered_fields(make_step({})) == ["type", "year", "vin"]


def test_ordered_fields_with_order():
    assert ordered_fields(make_step({"ui:order": ["year", "type"]})) == ["year", "type", "vin"]


def test_ordered_fields_with_wildcard():
    step = make_step({"ui:order": ["vin", "*", "type"]})

    assert ordered_fields(step) == ["vin", "year", "type"]


def test_format_field_value():
    assert format_field_value(True) == "Yes"
    assert format_field_value(None) == "Not specified"
    assert format_field_value(2022) == "2022"


def test_format_answers_for_display():
    lines = format_answers_for_display({"driver": {"age": 41, "dui": False}})

    assert lines == ["driver", "  Age: 41", "  Dui: No"]
