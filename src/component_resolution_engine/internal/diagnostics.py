from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from component_resolution_engine.config import EngineConfig

if TYPE_CHECKING:
    from component_resolution_engine.model.instance import Instance

_VALID_COMPONENT_NAME = re.compile(r"^[A-Za-z][\w-]*$")


def format_component_name(instance: Instance | None) -> str:
    if instance is None:
        return "<Anonymous>"
    if instance.root is instance and instance.parent is None:
        return "<Root>"
    name = instance.name
    if name is None:
        return "<Anonymous>"
    pascal = "".join(part[:1].upper() + part[1:] for part in re.split(r"[-_]", name))
    return f"<{pascal}>"


def component_trace(instance: Instance | None) -> str:
    """
    Render the instance's ancestry, nearest first, for a warning message.
    """
    if instance is None:
        return ""
    lines: list[str] = []
    current: Instance | None = instance
    while current is not None:
        prefix = "---> " if not lines else "     "
        lines.append(f"{prefix}{format_component_name(current)}")
        current = current.parent
    return "\n\nfound in\n\n" + "\n".join(lines)


def warn(config: EngineConfig, message: str, instance: Instance | None = None) -> None:
    """
    Advisory, non-fatal diagnostic. Never raises on its own.
    """
    if config.silent:
        return
    trace = component_trace(instance)
    if config.warn_handler is not None:
        config.warn_handler(message, instance, trace)
        return
    logging.warning(f"[component-engine warn]: {message}{trace}")


def validate_component_name(config: EngineConfig, name: str) -> bool:
    if not _VALID_COMPONENT_NAME.match(name):
        warn(
            config,
            f'Invalid component name: "{name}". Component names should start with '
            "a letter and contain only letters, digits, underscores and hyphens.",
        )
        return False
    return True
