"""
Error taxonomy for the wizard engine.

ConfigurationError is fatal at load time. EvaluationError is raised by
individual comparisons and recovered by the rule engine unless it runs in
strict mode. A blocked flow is a normal result, not an exception.
"""

from typing import List, Optional


class ConfigurationError(ValueError):
    """
    Flow configuration is inconsistent.

    Raised once with every problem found, so a broken configuration can be
    fixed in a single pass.

    Attributes:
        errors: Individual validation messages
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        message = "Flow configuration validation failed:\n  - " + "\n  - ".join(self.errors)
        super().__init__(message)


class EvaluationError(Exception):
    """
    Comparison applied to incompatible operand types.

    Attributes:
        fact: Dotted fact path of the failing predicate
        operator: Operator name
    """

    def __init__(self, message: str, fact: Optional[str] = None, operator: Optional[str] = None):
        self.fact = fact
        self.operator = operator
        super().__init__(message)
