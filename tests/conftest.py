"""
Shared fixtures: the driver/vehicle flow used across the test suite.
"""

import copy
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from wizard_backend.core.flow_config import FlowConfig
from wizard_backend.core.flow_manager import FlowManager


DRIVER_VEHICLE_FLOW = {
    "steps": [
        {
            "id": "driver",
            "title": "Driver Info",
            "defaultHiddenFields": ["homeowner"],
            "schema": {
                "type": "object",
                "properties": {
                    "age": {"type": "number", "minimum": 16},
                    "dui": {"type": "boolean"},
                    "homeowner": {"type": "boolean"},
                },
                "required": ["age"],
            },
            "uiSchema": {
                "age": {"ui:widget": "updown", "ui:title": "Your Age"},
                "dui": {"ui:widget": "radio", "ui:title": "Any DUI?"},
                "homeowner": {"ui:widget": "radio", "ui:title": "Do you own a home?"},
            },
        },
        {
            "id": "vehicle",
            "title": "Vehicle Info",
            "schema": {
                "type": "object",
                "properties": {
                    "type": {"type": "string", "enum": ["Personal", "Commercial"]},
                    "year": {"type": "number"},
                },
                "required": ["type"],
            },
            "uiSchema": {
                "ui:order": ["year", "type"],
                "year": {"ui:placeholder": "e.g. 2022"},
                "type": {"ui:widget": "radio", "ui:title": "Vehicle Type"},
            },
        },
    ],
    "rules": [
        {
            "name": "block_dui",
            "conditions": {"all": [{"fact": "driver.dui", "operator": "equal", "value": True}]},
            "event": {"type": "BLOCK_FLOW", "params": {"reason": "Driver has a DUI"}},
        },
        {
            "name": "skip_vehicle_under_25",
            "conditions": {"all": [{"fact": "driver.age", "operator": "lessThan", "value": 25}]},
            "event": {"type": "SKIP_STEP", "params": {"stepId": "vehicle"}},
        },
        {
            "name": "show_homeowner_30_plus",
            "conditions": {"all": [{"fact": "driver.age", "operator": "greaterThanInclusive", "value": 30}]},
            "event": {"type": "SHOW_FIELD", "params": {"stepId": "driver", "fieldId": "homeowner"}},
        },
        {
            "name": "hide_homeowner_under_30",
            "conditions": {"all": [{"fact": "driver.age", "operator": "lessThan", "value": 30}]},
            "event": {"type": "HIDE_FIELD", "params": {"stepId": "driver", "fieldId": "homeowner"}},
        },
    ],
}


@pytest.fixture
def flow_dict():
    """Fresh copy of the driver/vehicle configuration dict."""
    return copy.deepcopy(DRIVER_VEHICLE_FLOW)


@pytest.fixture
def flow_config(flow_dict):
    return FlowConfig.from_dict(flow_dict)


@pytest.fixture
def manager(flow_config):
    return FlowManager(flow_config)
