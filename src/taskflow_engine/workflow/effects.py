"""Effect dispatch: the bridge from workflow intent to host application state.

Workflows only name an effect and its parameters. What the effect does is
decided by the dispatcher the host supplies.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping

from .models import UnknownEffectError, WorkflowExecutionError
from .variables import VariableStore

logger = logging.getLogger(__name__)

EffectHandler = Callable[[Mapping[str, str], VariableStore], None]


class EffectDispatcher(ABC):
    """Performs named side effects on behalf of a workflow."""

    @abstractmethod
    def dispatch(self, effect_name: str, parameters: Mapping[str, str], store: VariableStore) -> None:
        """Perform ``effect_name`` with already-interpolated ``parameters``.

        Raises:
            UnknownEffectError: If the effect name is not recognized
        """


class EffectRegistry(EffectDispatcher):
    """Dispatcher backed by a name -> handler table."""

    def __init__(self):
        self._handlers: dict[str, EffectHandler] = {}

    def register(self, effect_name: str, handler: EffectHandler) -> None:
        """Register (or replace) the handler for an effect name."""
        if not effect_name or not effect_name.strip():
            raise ValueError("Effect name must not be blank")
        self._handlers[effect_name] = handler

    def effect(self, effect_name: str) -> Callable[[EffectHandler], EffectHandler]:
        """Decorator form of :meth:`register`."""

        def decorator(handler: EffectHandler) -> EffectHandler:
            self.register(effect_name, handler)
            return handler

        return decorator

    def has_effect(self, effect_name: str) -> bool:
        return effect_name in self._handlers

    def effect_names(self) -> list[str]:
        return list(self._handlers)

    def dispatch(self, effect_name, parameters, store):
        handler = self._handlers.get(effect_name)
        if handler is None:
            raise UnknownEffectError(effect_name)
        logger.debug(f"Dispatching effect {effect_name} with {dict(parameters)}")
        handler(parameters, store)


def _parse_int_or_default(raw_value: str | None, default: int) -> int:
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return int(raw_value.strip())
    except ValueError:
        return default


def add_gold(parameters: Mapping[str, str], store: VariableStore) -> None:
    """``addGold``: add ``amount`` to the ``gold`` variable (unparsable numbers count as 0)."""
    delta_gold = _parse_int_or_default(parameters.get("amount"), 0)
    current_gold = _parse_int_or_default(store.get("gold"), 0)
    next_gold = current_gold + delta_gold
    store.put("gold", str(next_gold))
    logger.info(f"[Effect] addGold: {delta_gold}, now gold={next_gold}")


def set_flag(parameters: Mapping[str, str], store: VariableStore) -> None:
    """``setFlag``: store ``value`` under ``key``."""
    flag_key = parameters.get("key")
    if flag_key is None or not flag_key.strip():
        raise WorkflowExecutionError("setFlag requires key")
    flag_value = parameters.get("value")
    store.put(flag_key, flag_value)
    logger.info(f"[Effect] setFlag: {flag_key}={flag_value}")


def grant_title(parameters: Mapping[str, str], store: VariableStore) -> None:
    """``grantTitle``: store ``value`` as ``player_title``."""
    title_value = parameters.get("value")
    store.put("player_title", title_value)
    logger.info(f"[Effect] grantTitle: {title_value}")


DEMO_EFFECTS: dict[str, EffectHandler] = {
    "addGold": add_gold,
    "setFlag": set_flag,
    "grantTitle": grant_title,
}


def register_demo_effects(registry: EffectRegistry) -> EffectRegistry:
    """Register the demo game effects (addGold, setFlag, grantTitle)."""
    for effect_name, handler in DEMO_EFFECTS.items():
        registry.register(effect_name, handler)
    return registry


def create_demo_dispatcher() -> EffectRegistry:
    """New registry with the demo game effects."""
    return register_demo_effects(EffectRegistry())
