"""
Answer Mappings - Convert typed console answers to schema values

Responsibilities:
- Map free-text answers to the property's declared type
  (number, integer, boolean, string enum)
- Accept common yes/no phrasings for boolean fields
- Check the constraints the data schema declares (enum, minimum, maximum)

Design principles:
- Case-insensitive matching
- Return an error message instead of raising (the console re-prompts)
- Stand-in for the form renderer's validator; the engine never calls this
"""

from typing import Any, Dict, Optional, Tuple

# Boolean mappings (yes/no responses)
BOOLEAN_MAP = {
    # True
    'yes': True,
    'y': True,
    'yeah': True,
    'yep': True,
    'true': True,
    'correct': True,

    # False
    'no': False,
    'n': False,
    'nope': False,
    'nah': False,
    'false': False,
    'incorrect': False,
}


def map_answer(field_schema: Dict[str, Any], raw_value: str) -> Tuple[Any, Optional[str]]:
    """
    Map raw text to a value for one schema property.

    Args:
        field_schema: Property schema, e.g. {'type': 'number', 'minimum': 16}
        raw_value: Text typed by the user

    Returns:
        tuple: (value, None) on success, (None, error message) otherwise

    Examples:
        >>> map_answer({'type': 'boolean'}, 'Yes')
        (True, None)

        >>> map_answer({'type': 'number', 'minimum': 16}, '12')
        (None, 'Must be at least 16')
    """
    normalized = raw_value.strip()
    field_type = field_schema.get('type', 'string')

    if field_type == 'boolean':
        key = normalized.lower()
        if key not in BOOLEAN_MAP:
            return None, "Please answer yes or no"
        return BOOLEAN_MAP[key], None

    if field_type in ('number', 'integer'):
        try:
            value = int(normalized) if field_type == 'integer' else float(normalized)
        except ValueError:
            return None, f"Please enter a{'n integer' if field_type == 'integer' else ' number'}"

        # 41.0 -> 41 so facts compare cleanly and answers print naturally
        if isinstance(value, float) and value.is_integer():
            value = int(value)

        return _check_range(field_schema, value)

    enum = field_schema.get('enum')
    if enum is not None:
        for option in enum:
            if str(option).lower() == normalized.lower():
                return option, None
        return None, f"Choose one of: {', '.join(str(option) for option in enum)}"

    return normalized, None


def _check_range(field_schema: Dict[str, Any], value) -> Tuple[Any, Optional[str]]:
    minimum = field_schema.get('minimum')
    maximum = field_schema.get('maximum')

    if minimum is not None and value < minimum:
        return None, f"Must be at least {minimum}"

    if maximum is not None and value > maximum:
        return None, f"Must be at most {maximum}"

    return value, None
