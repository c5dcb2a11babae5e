"""
Step Projector - Remove hidden fields from a step for rendering

The renderer validates submissions against the schema it is given, so
filtering has to keep the schema self-consistent:
- hidden properties are removed from schema['properties']
- hidden names are removed from schema['required']
- hidden keys are removed from the uiSchema, including 'ui:order' entries

The source Step is never mutated.
"""

import copy
from typing import AbstractSet, Any, Dict

from wizard_backend.contracts import FilteredStep, Step


def project_step(step: Step, hidden: AbstractSet[str] = frozenset()) -> FilteredStep:
    """
    Build the filtered view of a step.

    Args:
        step: Step from FlowConfig
        hidden: Field names to remove (FlowState.hidden_for(step.id))

    Returns:
        FilteredStep: New schema/uiSchema dicts with hidden fields removed
    """
    schema = copy.deepcopy(step.schema)
    ui_schema = copy.deepcopy(step.ui_schema)

    if not hidden:
        return FilteredStep(id=step.id, title=step.title, schema=schema, ui_schema=ui_schema)

    schema["properties"] = {
        name: spec for name, spec in schema.get("properties", {}).items()
        if name not in hidden
    }

    if "required" in schema:
        schema["required"] = [name for name in schema["required"] if name not in hidden]

    return FilteredStep(
        id=step.id,
        title=step.title,
        schema=schema,
        ui_schema=_filter_ui_schema(ui_schema, hidden),
        hidden_fields=frozenset(hidden) & frozenset(step.field_names),
    )


def _filter_ui_schema(ui_schema: Dict[str, Any], hidden: AbstractSet[str]) -> Dict[str, Any]:
    filtered = {key: value for key, value in ui_schema.items() if key not in hidden}

    # ui:order may only name rendered properties
    if isinstance(filtered.get("ui:order"), list):
        filtered["ui:order"] = [name for name in filtered["ui:order"] if name not in hidden]

    return filtered
