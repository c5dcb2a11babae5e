"""
Fact Flattener - Nested answers to dotted-path facts

Pure functions. The rule engine only ever sees the flat mapping produced
here, so every declared fact path is guaranteed to exist (UNKNOWN when
unanswered) and evaluation never fails on a missing key.

Usage:
    facts = flatten(answers, config.fact_keys())
    # {'driver.age': 41, 'driver.dui': UNKNOWN, ...}
"""

from typing import Any, Dict, Iterable, Mapping, Optional

from wizard_backend.contracts import UNKNOWN


def flatten(answers: Mapping[str, Any], fact_keys: Iterable[str] = ()) -> Dict[str, Any]:
    """
    Flatten nested answers into dotted-path facts.

    Every key in fact_keys is pre-seeded with UNKNOWN, then leaf values from
    answers overwrite them. Nested mappings are recursed and their keys
    dot-joined; lists and other non-mapping values are opaque leaves.

    Args:
        answers: {step_id: {field: value, ...}, ...}
        fact_keys: Declared fact paths (FlowConfig.fact_keys())

    Returns:
        dict: {'step_id.field': value} for every declared and answered path

    Examples:
        >>> flatten({}, ['driver.age'])
        {'driver.age': UNKNOWN}

        >>> flatten({'driver': {'age': 41}}, ['driver.age', 'driver.dui'])
        {'driver.age': 41, 'driver.dui': UNKNOWN}

        >>> flatten({'driver.age': 41})
        {'driver.age': 41}
    """
    facts = {key: UNKNOWN for key in fact_keys}
    _overlay(answers, None, facts)
    return facts


def _overlay(obj: Mapping[str, Any], prefix: Optional[str], facts: Dict[str, Any]) -> None:
    for key, value in obj.items():
        path = f"{prefix}.{key}" if prefix else str(key)

        if isinstance(value, Mapping):
            _overlay(value, path, facts)
        else:
            facts[path] = value
