"""
Flow Configuration - Static description of steps and rules

Responsibilities:
- Load the flow configuration ({steps, rules}) from JSON or a dict
- Validate it once, failing fast with every problem listed
- Expose immutable Step / Rule objects and derived lookups
  (fact keys, default-hidden fields, step order)

Design principles:
- Loaded once per process, immutable thereafter
- Fail fast: ConfigurationError on load, never at evaluation time
- Accessors return copies (callers cannot mutate configuration)

Configuration format:
    {
        "steps": [
            {
                "id": "driver",
                "title": "Driver Info",
                "defaultHiddenFields": ["homeowner"],
                "schema": {"type": "object", "properties": {...}, "required": [...]},
                "uiSchema": {...}
            }
        ],
        "rules": [
            {
                "name": "block_dui",
                "conditions": {"all": [{"fact": "driver.dui", "operator": "equal", "value": true}]},
                "event": {"type": "BLOCK_FLOW", "params": {"reason": "Driver has a DUI"}}
            }
        ]
    }
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from wizard_backend.contracts import (
    EVENT_PARAMS,
    VALID_EVENT_TYPES,
    EventKind,
    FlowEvent,
    Rule,
    Step,
)
from wizard_backend.core.rule_engine import COMBINATORS, OPERATORS
from wizard_backend.errors import ConfigurationError

logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "data/flow_config.json"


class FlowConfig:
    """
    Validated, immutable flow configuration.

    Build with FlowConfig.load(path) or FlowConfig.from_dict(data).
    """

    def __init__(self, steps: List[Step], rules: List[Rule]):
        self._steps: Tuple[Step, ...] = tuple(steps)
        self._rules: Tuple[Rule, ...] = tuple(rules)
        self._steps_by_id = {step.id: step for step in self._steps}

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def load(cls, config_path: str = DEFAULT_CONFIG_PATH) -> "FlowConfig":
        """
        Load and validate configuration from a JSON file.

        Args:
            config_path: Path to flow configuration JSON

        Returns:
            FlowConfig

        Raises:
            FileNotFoundError: If file doesn't exist
            ConfigurationError: If configuration is inconsistent
        """
        path = Path(config_path)

        if not path.exists():
            raise FileNotFoundError(f"Flow configuration not found: {config_path}")

        with open(path, 'r') as f:
            data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FlowConfig":
        """
        Validate and build configuration from a dict.

        The input is deep copied; later changes to `data` do not leak in.

        Raises:
            ConfigurationError: If configuration is inconsistent
        """
        data = copy.deepcopy(data)

        errors = validate_config(data)
        if errors:
            raise ConfigurationError(errors)

        steps = [_build_step(raw) for raw in data["steps"]]
        rules = [_build_rule(raw) for raw in data.get("rules", [])]

        config = cls(steps, rules)
        logger.info(f"Flow configuration loaded: {len(steps)} steps, {len(rules)} rules")
        return config

    # =========================================================================
    # Public API
    # =========================================================================

    @property
    def steps(self) -> Tuple[Step, ...]:
        """Deep copies; editing them never reaches the configuration."""
        return copy.deepcopy(self._steps)

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return copy.deepcopy(self._rules)

    @property
    def step_ids(self) -> Tuple[str, ...]:
        return tuple(step.id for step in self._steps)

    def get_step(self, step_id: str) -> Step:
        """
        Get a deep copy of a step by id.

        Raises:
            KeyError: If step_id is not configured
        """
        return copy.deepcopy(self._steps_by_id[step_id])

    def has_step(self, step_id: str) -> bool:
        return step_id in self._steps_by_id

    def fact_keys(self) -> List[str]:
        """
        Every declared fact path ('stepId.fieldName'), in step/schema order.
        """
        return [
            f"{step.id}.{field_name}"
            for step in self._steps
            for field_name in step.field_names
        ]

    def default_hidden_fields(self) -> Dict[str, FrozenSet[str]]:
        """
        Declared default-hidden fields per step.

        Only steps with at least one default-hidden field appear.
        """
        return {
            step.id: step.default_hidden_fields
            for step in self._steps
            if step.default_hidden_fields
        }

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the configuration format."""
        return {
            "steps": [
                {
                    "id": step.id,
                    "title": step.title,
                    "defaultHiddenFields": sorted(step.default_hidden_fields),
                    "schema": copy.deepcopy(step.schema),
                    "uiSchema": copy.deepcopy(step.ui_schema),
                }
                for step in self._steps
            ],
            "rules": [
                {
                    **({"name": rule.name} if rule.name else {}),
                    "conditions": copy.deepcopy(rule.conditions),
                    "event": rule.event.to_dict(),
                }
                for rule in self._rules
            ],
        }


# =============================================================================
# Builders (input already validated)
# =============================================================================

def _build_step(raw: Dict[str, Any]) -> Step:
    return Step(
        id=raw["id"],
        title=raw.get("title", raw["id"]),
        schema=raw["schema"],
        ui_schema=raw.get("uiSchema", {}),
        default_hidden_fields=frozenset(raw.get("defaultHiddenFields", [])),
    )


def _build_rule(raw: Dict[str, Any]) -> Rule:
    event = raw["event"]
    return Rule(
        conditions=_conditions_of(raw),
        event=FlowEvent(type=EventKind(event["type"]), params=dict(event.get("params", {}))),
        name=raw.get("name"),
    )


def _conditions_of(raw_rule: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if "conditions" in raw_rule:
        return raw_rule["conditions"]
    return raw_rule.get("condition")


# =============================================================================
# Validation
# =============================================================================

def validate_config(data: Dict[str, Any]) -> List[str]:
    """
    Validate configuration structure and cross-references.

    Checks:
    - 'steps' is a non-empty list; every step has an id and object schema
    - No duplicate step ids
    - defaultHiddenFields and required reference declared properties
    - Every rule has a condition tree and an event
    - Combinators are well formed; predicates use declared facts and known operators
    - Event types are known and carry their required params
    - Event stepId / fieldId reference configured steps and properties

    Args:
        data: Raw configuration dict

    Returns:
        list[str]: Error messages (empty if valid)
    """
    errors = []

    steps = data.get("steps")
    if not isinstance(steps, list) or not steps:
        return ["Missing or empty 'steps' in flow configuration"]

    fields_by_step: Dict[str, set] = {}

    for i, step in enumerate(steps):
        if not isinstance(step, dict) or "id" not in step:
            errors.append(f"Step at index {i} missing 'id'")
            continue

        step_id = step["id"]

        if not isinstance(step_id, str):
            errors.append(f"Step at index {i} has non-string id {step_id!r}")
            continue

        if step_id in fields_by_step:
            errors.append(f"Duplicate step id '{step_id}'")
            continue

        schema = step.get("schema")
        if not isinstance(schema, dict) or not isinstance(schema.get("properties"), dict):
            errors.append(f"Step '{step_id}' missing schema 'properties'")
            fields_by_step[step_id] = set()
            continue

        properties = set(schema["properties"])
        fields_by_step[step_id] = properties

        for field_name in step.get("defaultHiddenFields", []):
            if not isinstance(field_name, str) or field_name not in properties:
                errors.append(
                    f"Step '{step_id}' hides undeclared field '{field_name}' by default"
                )

        for field_name in schema.get("required", []):
            if not isinstance(field_name, str) or field_name not in properties:
                errors.append(f"Step '{step_id}' requires undeclared field '{field_name}'")

    fact_keys = {
        f"{step_id}.{field_name}"
        for step_id, fields in fields_by_step.items()
        for field_name in fields
    }

    rules = data.get("rules", [])
    if not isinstance(rules, list):
        errors.append("'rules' must be a list")
        return errors

    for i, rule in enumerate(rules):
        if not isinstance(rule, dict):
            errors.append(f"rule[{i}] is not an object")
            continue

        label = rule.get("name") or f"rule[{i}]"

        conditions = _conditions_of(rule)
        if not isinstance(conditions, dict):
            errors.append(f"{label} missing 'conditions'")
        else:
            errors.extend(_validate_condition(conditions, fact_keys, label))

        errors.extend(_validate_event(rule.get("event"), fields_by_step, label))

    return errors


def _validate_condition(condition: Any, fact_keys: set, label: str) -> List[str]:
    """Recursively validate a condition tree."""
    if not isinstance(condition, dict):
        return [f"{label}: condition must be an object, got {type(condition).__name__}"]

    present = COMBINATORS & set(condition)

    if len(present) > 1:
        return [f"{label}: condition mixes combinators {sorted(present)}"]

    if "all" in present or "any" in present:
        key = present.pop()
        children = condition[key]
        if not isinstance(children, list):
            return [f"{label}: '{key}' must be a list"]
        errors = []
        for child in children:
            errors.extend(_validate_condition(child, fact_keys, label))
        return errors

    if "not" in present:
        return _validate_condition(condition["not"], fact_keys, label)

    errors = []
    fact = condition.get("fact")
    operator = condition.get("operator")

    if fact is None:
        errors.append(f"{label}: predicate missing 'fact'")
    elif not isinstance(fact, str):
        errors.append(f"{label}: fact must be a string, got {fact!r}")
    elif fact not in fact_keys:
        errors.append(f"{label}: references undeclared fact '{fact}'")

    if operator is None:
        errors.append(f"{label}: predicate missing 'operator'")
    elif not isinstance(operator, str) or operator not in OPERATORS:
        errors.append(f"{label}: unknown operator '{operator}'")

    if "value" not in condition:
        errors.append(f"{label}: predicate missing 'value'")

    return errors


def _validate_event(event: Any, fields_by_step: Dict[str, set], label: str) -> List[str]:
    """Validate event type, params, and step/field references."""
    if not isinstance(event, dict):
        return [f"{label} missing 'event'"]

    event_type = event.get("type")
    if not isinstance(event_type, str) or event_type not in VALID_EVENT_TYPES:
        return [f"{label}: unknown event type '{event_type}'"]

    params = event.get("params", {})
    if not isinstance(params, dict):
        return [f"{label}: event params must be an object"]

    errors = [
        f"{label}: {event_type} param '{param}' must be a string, got {params[param]!r}"
        for param in ("stepId", "fieldId")
        if params.get(param) is not None and not isinstance(params[param], str)
    ]
    if errors:
        return errors

    for param in EVENT_PARAMS[EventKind(event_type)]:
        if param not in params:
            errors.append(f"{label}: {event_type} missing param '{param}'")

    step_id = params.get("stepId")
    if step_id is not None and step_id not in fields_by_step:
        errors.append(f"{label}: {event_type} references unknown step '{step_id}'")
        return errors

    field_id = params.get("fieldId")
    if field_id is not None and step_id is not None and field_id not in fields_by_step[step_id]:
        errors.append(
            f"{label}: {event_type} references unknown field '{field_id}' on step '{step_id}'"
        )

    return errors
