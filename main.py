"""
Console Test Harness for FlowManager (Functional Core)

Simple console loop standing in for the form renderer: asks every visible
field of the current step, sends a live ChangeAnswers after each answer so
newly shown fields are asked in the same step, then submits the step.
"""

import json
import logging
import sys

from wizard_backend.contracts import FlowStatus
from wizard_backend.core.flow_config import DEFAULT_CONFIG_PATH, FlowConfig
from wizard_backend.core.flow_manager import FlowManager
from wizard_backend.core.flow_session import FlowSession
from wizard_backend.results import IllegalCommand
from wizard_backend.utils.answer_mappings import map_answer
from wizard_backend.utils.display_helpers import (
    field_label,
    field_placeholder,
    format_answers_for_display,
    ordered_fields,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Commands that trigger early exit
EXIT_COMMANDS = {"quit", "exit", "stop"}


class SessionEnded(Exception):
    """User typed an exit command."""


def print_separator(char="=", length=60):
    """Print a separator line"""
    print(char * length)


def ask_field(step, field_name):
    """
    Prompt until the answer maps to a valid value.

    Returns:
        Mapped value, or None if an optional field was left blank
    """
    prop = step.schema['properties'][field_name]
    required = field_name in step.schema.get('required', [])
    label = field_label(step, field_name)
    placeholder = field_placeholder(step, field_name)

    if prop.get('enum'):
        label = f"{label} ({' / '.join(str(option) for option in prop['enum'])})"
    elif prop.get('type') == 'boolean':
        label = f"{label} (yes / no)"

    prompt = f"{label}{' *' if required else ''}"
    if placeholder:
        prompt += f" [{placeholder}]"

    while True:
        raw = input(f"{prompt}: ").strip()

        if raw.lower() in EXIT_COMMANDS:
            raise SessionEnded()

        if not raw:
            if required:
                print("  This field is required.")
                continue
            return None

        value, error = map_answer(prop, raw)
        if error:
            print(f"  {error}")
            continue

        return value


def collect_step(session, result):
    """
    Ask the visible fields of one step, reacting live to rule changes.

    Returns:
        Latest result (may already be terminal if a change blocked the flow)
    """
    step_id = result.step.id
    form = dict(result.answers.get(step_id, {}))
    asked = set()

    print_separator("-")
    position = result.step_index + 1 if result.step_index is not None else "-"
    print(f"Step {position} of {len(result.visible_step_ids)}: {result.step.title}")
    print_separator("-")

    while True:
        pending = [name for name in ordered_fields(result.step) if name not in asked]
        if not pending:
            return session.submit(form)

        field_name = pending[0]
        asked.add(field_name)

        value = ask_field(result.step, field_name)
        if value is None:
            continue

        form[field_name] = value
        result = session.change(form)

        if isinstance(result, IllegalCommand) or result.is_terminal:
            return result

        # Answers of fields that became hidden are cleared by the engine
        form = dict(result.answers.get(step_id, {}))


def main():
    """Run console wizard"""
    print_separator()
    print("STEP FLOW WIZARD - CONSOLE TEST")
    print_separator()

    try:
        config = FlowConfig.load(DEFAULT_CONFIG_PATH)
        session = FlowSession(FlowManager(config))
    except (FileNotFoundError, ValueError) as e:
        print(f"\nFailed to initialize: {e}")
        return 1

    print("Type 'quit', 'exit', or 'stop' to end early\n")

    result = session.start()

    try:
        while not isinstance(result, IllegalCommand) and result.status == FlowStatus.COLLECTING:
            result = collect_step(session, result)

    except (SessionEnded, KeyboardInterrupt, EOFError):
        print("\n\nSession ended by user")
        return 0

    print_separator()

    if isinstance(result, IllegalCommand):
        print(f"ERROR: {result.reason}")
        return 1

    if result.status == FlowStatus.BLOCKED:
        print(f"BLOCKED: {result.blocked_reason}")
    else:
        print("COMPLETE")
        for line in format_answers_for_display(result.answers):
            print(line)
        print()
        print(json.dumps(result.answers, indent=2))

    print_separator()
    return 0


if __name__ == '__main__':
    sys.exit(main())
