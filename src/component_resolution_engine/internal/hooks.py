from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from component_resolution_engine.model.instance import HOOK_EVENT_PREFIX, Instance
from component_resolution_engine.model.options import LifecycleHook


def hook_handlers(instance: Instance, hook: LifecycleHook) -> Sequence[Callable[..., Any]]:
    handlers = instance.options.get(hook.value)
    if handlers is None:
        return ()
    if callable(handlers):
        return (handlers,)
    return handlers


@dataclass(frozen=True, slots=True)
class LifecycleHookInvoker:
    """
    Calls the handlers registered for a hook, in registration order.

    Handler exceptions propagate to the caller unchanged. After the option
    handlers, ``hook:<name>`` subscribers on the instance's event channel run.
    """

    def invoke(self, instance: Instance, hook: LifecycleHook) -> None:
        handlers = hook_handlers(instance, hook)
        if handlers:
            logging.debug(
                f"calling hook: {hook.value} uid={instance.uid} handlers={len(handlers)}"
            )
        for handler in handlers:
            handler(instance)
        if instance.has_hook_event:
            instance.events.publish(f"{HOOK_EVENT_PREFIX}{hook.value}", instance)
