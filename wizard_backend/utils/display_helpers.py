"""
Display Helpers - Convert filtered steps and answers to readable text

Used by the console harness to stand in for a form renderer.
"""

from typing import Any, Dict, List

from wizard_backend.contracts import FilteredStep


# Value mappings: convert stored values to readable text
VALUE_LABELS = {
    True: 'Yes',
    False: 'No',
}


def format_field_name(field_name: str) -> str:
    """
    Convert technical field name to human-readable label.

    Fallback when the uiSchema has no 'ui:title'.
    """
    return field_name.replace('_', ' ').title()


def field_label(step: FilteredStep, field_name: str) -> str:
    """
    Label for a field: uiSchema 'ui:title', then schema 'title', then the name.
    """
    ui_entry = step.ui_schema.get(field_name, {})
    if ui_entry.get('ui:title'):
        return ui_entry['ui:title']

    prop = step.schema.get('properties', {}).get(field_name, {})
    if prop.get('title'):
        return prop['title']

    return format_field_name(field_name)


def field_placeholder(step: FilteredStep, field_name: str) -> str:
    return step.ui_schema.get(field_name, {}).get('ui:placeholder', '')


def ordered_fields(step: FilteredStep) -> List[str]:
    """
    Field names in render order.

    Honors 'ui:order' (with '*' standing for every unlisted field), else
    schema property order.
    """
    names = list(step.field_names)
    order = step.ui_schema.get('ui:order')

    if not order:
        return names

    listed = [name for name in order if name in names]
    rest = [name for name in names if name not in listed]

    if '*' in order:
        star = order.index('*')
        before = [name for name in order[:star] if name in names]
        after = [name for name in order[star + 1:] if name in names]
        return before + rest + after

    return listed + rest


def format_field_value(value: Any) -> str:
    """
    Convert field value to human-readable text.
    """
    if value is None:
        return "Not specified"

    if isinstance(value, bool):
        return VALUE_LABELS[value]

    return str(value)


def format_answers_for_display(answers: Dict[str, Any]) -> List[str]:
    """
    One line per answered field, grouped by step.

    Args:
        answers: {step_id: {field: value}}

    Returns:
        list[str]: e.g. ['driver', '  Age: 41', '  Dui: No']
    """
    lines = []

    for step_id, step_answers in answers.items():
        lines.append(step_id)
        for field_name, value in step_answers.items():
            lines.append(f"  {format_field_name(field_name)}: {format_field_value(value)}")

    return lines
