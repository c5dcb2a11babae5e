"""
Rule Engine - Stateless rule evaluation for step flows

Responsibilities:
- Evaluate each rule's condition tree against flattened facts
- Emit the configured event for every rule whose condition holds
- Recover from type-incompatible comparisons (one bad rule cannot block the flow)

Design principles:
- Stateless: All state comes from the facts parameter
- Deterministic: Same input always produces same output
- Declaration order: Rules are evaluated in configuration order, all matches fire
- No short-circuit between rules (a rule never disables a later rule)

Condition structure:
    {"all": [cond, ...]}      logical AND (empty = True)
    {"any": [cond, ...]}      logical OR (empty = False)
    {"not": cond}             negation
    {"fact": "driver.age", "operator": "lessThan", "value": 25}
"""

import logging
from numbers import Number
from typing import Any, Dict, List

from wizard_backend.contracts import UNKNOWN, FlowEvent, Rule
from wizard_backend.errors import EvaluationError

logger = logging.getLogger(__name__)


COMBINATORS = {"all", "any", "not"}


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid numeric operand
    return isinstance(value, Number) and not isinstance(value, bool)


def _require_numbers(actual: Any, expected: Any, operator: str) -> None:
    if not (_is_number(actual) and _is_number(expected)):
        raise EvaluationError(
            f"Operator '{operator}' needs numeric operands, "
            f"got {type(actual).__name__} and {type(expected).__name__}",
            operator=operator
        )


def _require_collection(value: Any, operator: str) -> None:
    if not isinstance(value, (list, tuple, set, frozenset, str)):
        raise EvaluationError(
            f"Operator '{operator}' needs a list or string, got {type(value).__name__}",
            operator=operator
        )


def _same(actual: Any, expected: Any) -> bool:
    # True == 1 and False == 0 in Python; a bool only equals a bool
    if isinstance(actual, bool) != isinstance(expected, bool):
        return False
    return actual == expected


def _member(item: Any, collection: Any) -> bool:
    if isinstance(collection, str):
        return item in collection
    if item not in collection:
        return False
    return any(_same(item, candidate) for candidate in collection)


def _equal(actual, expected):
    return _same(actual, expected)


def _not_equal(actual, expected):
    return not _same(actual, expected)


def _less_than(actual, expected):
    _require_numbers(actual, expected, "lessThan")
    return actual < expected


def _less_than_inclusive(actual, expected):
    _require_numbers(actual, expected, "lessThanInclusive")
    return actual <= expected


def _greater_than(actual, expected):
    _require_numbers(actual, expected, "greaterThan")
    return actual > expected


def _greater_than_inclusive(actual, expected):
    _require_numbers(actual, expected, "greaterThanInclusive")
    return actual >= expected


def _in(actual, expected):
    _require_collection(expected, "in")
    return _member(actual, expected)


def _not_in(actual, expected):
    _require_collection(expected, "notIn")
    return not _member(actual, expected)


def _contains(actual, expected):
    _require_collection(actual, "contains")
    return _member(expected, actual)


def _does_not_contain(actual, expected):
    _require_collection(actual, "doesNotContain")
    return not _member(expected, actual)


# Operator name -> comparison(actual, expected)
OPERATORS = {
    "equal": _equal,
    "notEqual": _not_equal,
    "lessThan": _less_than,
    "lessThanInclusive": _less_than_inclusive,
    "greaterThan": _greater_than,
    "greaterThanInclusive": _greater_than_inclusive,
    "in": _in,
    "notIn": _not_in,
    "contains": _contains,
    "doesNotContain": _does_not_contain,
}


def compare(actual: Any, operator: str, expected: Any) -> bool:
    """
    Apply a comparison operator to one fact value.

    UNKNOWN handling:
        - equal: True only when expected is also UNKNOWN
        - every other operator: False (an unanswered fact satisfies nothing)

    Args:
        actual: Fact value (may be UNKNOWN)
        operator: Operator name (key of OPERATORS)
        expected: Literal from the rule

    Returns:
        bool: Comparison result

    Raises:
        EvaluationError: Operand types incompatible with the operator
        KeyError: Unknown operator (prevented by configuration validation)
    """
    comparison = OPERATORS[operator]

    if actual is UNKNOWN or expected is UNKNOWN:
        if operator == "equal":
            return actual is expected
        return False

    try:
        return bool(comparison(actual, expected))
    except TypeError as e:
        # e.g. unhashable list tested for membership in a set
        raise EvaluationError(f"Operator '{operator}' failed: {e}", operator=operator) from e


class RuleEngine:
    """
    Stateless evaluator for flow rules.

    Holds only the immutable rule list. evaluate() can be called any number
    of times, from any number of sessions, with identical results for
    identical facts.
    """

    def __init__(self, rules: List[Rule], strict: bool = False):
        """
        Initialize engine with rules.

        Args:
            rules: Validated rules, in declaration order
            strict: If True, EvaluationError propagates instead of being
                logged and treated as a false predicate
        """
        self.rules = tuple(rules)
        self.strict = strict

        logger.info(f"Rule Engine initialized with {len(self.rules)} rules (strict={strict})")

    # =========================================================================
    # Public API
    # =========================================================================

    def evaluate(self, facts: Dict[str, Any]) -> List[FlowEvent]:
        """
        Evaluate every rule against facts.

        Args:
            facts: Flattened facts (every declared path present)

        Returns:
            list[FlowEvent]: One event per matching rule, in rule order
        """
        events = []

        for index, rule in enumerate(self.rules):
            label = rule.name or f"rule[{index}]"

            if self._evaluate_condition(rule.conditions, facts, label):
                logger.debug(f"{label} fired {rule.event.type.value} {rule.event.params}")
                events.append(rule.event)

        return events

    # =========================================================================
    # Condition Evaluation
    # =========================================================================

    def _evaluate_condition(self, condition: Dict[str, Any], facts: Dict[str, Any], label: str) -> bool:
        """
        Evaluate a condition tree bottom-up.

        Args:
            condition: Combinator or atomic predicate
            facts: Flattened facts
            label: Rule label for logging

        Returns:
            bool: Evaluation result
        """
        if "all" in condition:
            return all(self._evaluate_condition(sub, facts, label) for sub in condition["all"])

        if "any" in condition:
            return any(self._evaluate_condition(sub, facts, label) for sub in condition["any"])

        if "not" in condition:
            return not self._evaluate_condition(condition["not"], facts, label)

        return self._evaluate_predicate(condition, facts, label)

    def _evaluate_predicate(self, predicate: Dict[str, Any], facts: Dict[str, Any], label: str) -> bool:
        fact_path = predicate["fact"]
        operator = predicate["operator"]
        expected = predicate.get("value")
        actual = facts.get(fact_path, UNKNOWN)

        try:
            return compare(actual, operator, expected)
        except EvaluationError as e:
            e.fact = fact_path
            if self.strict:
                raise
            logger.warning(f"{label}: predicate on '{fact_path}' treated as false: {e}")
            return False
