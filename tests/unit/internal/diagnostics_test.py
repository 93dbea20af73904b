from __future__ import annotations

import logging

from component_resolution_engine.config import EngineConfig
from component_resolution_engine.internal.diagnostics import (
    component_trace,
    format_component_name,
    validate_component_name,
    warn,
)
from component_resolution_engine.model.definition import Definition
from component_resolution_engine.model.instance import Instance
from unit.helpers.fakes import CapturedWarnings


def _tree() -> tuple[Instance, Instance]:
    root = Instance(Definition({}))
    child = Instance(Definition({}))
    child.options = {"name": "todo-item"}
    child.parent = root
    child.root = root
    return root, child


def test_format_component_name():
    root, child = _tree()
    orphan = Instance(Definition({}))
    orphan.root = root

    assert format_component_name(None) == "<Anonymous>"
    assert format_component_name(root) == "<Root>"
    assert format_component_name(child) == "<TodoItem>"
    assert format_component_name(orphan) == "<Anonymous>"


def test_component_trace_nearest_first():
    root, child = _tree()
    trace = component_trace(child)

    assert trace.startswith("\n\nfound in\n\n")
    assert trace.index("<TodoItem>") < trace.index("<Root>")
    assert component_trace(None) == ""


def test_warn_logs_by_default(caplog):
    with caplog.at_level(logging.WARNING):
        warn(EngineConfig(), "something odd")
    assert "[component-engine warn]: something odd" in caplog.text


def test_warn_silent_suppresses(caplog):
    captured = CapturedWarnings()
    with caplog.at_level(logging.WARNING):
        warn(EngineConfig(silent=True, warn_handler=captured), "hidden")
    assert caplog.text == ""
    assert captured.messages == []


def test_warn_handler_receives_trace():
    _, child = _tree()
    captured = CapturedWarnings()

    warn(captured.config(), "bad prop", child)

    message, instance, trace = captured.messages[0]
    assert message == "bad prop"
    assert instance is child
    assert "<TodoItem>" in trace


def test_validate_component_name():
    captured = CapturedWarnings()
    config = captured.config()

    assert validate_component_name(config, "todo-item") is True
    assert validate_component_name(config, "Todo_Item2") is True
    assert validate_component_name(config, "1st-item") is False
    assert validate_component_name(config, "has space") is False
    assert len(captured.messages) == 2
    assert 'Invalid component name: "1st-item"' in captured.messages[0][0]
