"""
Skill base class and registries.

A skill is a conversation script: it declares parameter containers and may
define ``parse_<name>`` / ``reaction_<name>`` methods and ``begin`` /
``finish`` lifecycle hooks. Callables that have to survive a round trip
through persisted context are registered by name in the skill's
``HandlerRegistry`` so the change log can store the name instead of code.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Dict, Optional, Type

from skillbot.core.errors import InvalidArgument, SkillNotFound
from skillbot.core.parameters.registry import ParameterType


async def invoke(fn: Callable, *args: Any) -> Any:
    """Call a skill-supplied function that may be sync or async."""
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class HandlerRegistry:
    def __init__(self) -> None:
        self._handlers: Dict[str, Callable] = {}

    def register(self, name: Optional[str] = None) -> Callable:
        def decorator(fn: Callable) -> Callable:
            self.add(name or fn.__name__, fn)
            return fn

        return decorator

    def add(self, name: str, fn: Callable) -> None:
        if not callable(fn):
            raise TypeError(f"Handler {name} is not callable")
        self._handlers[name] = fn

    def get(self, name: str) -> Optional[Callable]:
        return self._handlers.get(name)

    def name_of(self, fn: Callable) -> Optional[str]:
        for name, handler in self._handlers.items():
            if handler is fn or handler == fn:
                return name
        return None

    def __contains__(self, name: str) -> bool:
        return name in self._handlers


class Skill:
    """
    Base class for skills.

    Subclasses call ``super().__init__()`` and then fill the parameter
    containers, e.g.::

        self.required_parameter = {
            "pizza": {"message": {"type": "text", "text": "Which pizza?"}},
        }
    """

    type: Optional[str] = None
    clear_context_on_finish = True

    def __init__(self) -> None:
        self.required_parameter: Dict[str, dict] = {}
        self.optional_parameter: Dict[str, dict] = {}
        self.dynamic_parameter: Dict[str, dict] = {}
        self.handlers = HandlerRegistry()

    def begin(self, bot, event, context) -> None:
        """Runs once when the skill is launched, before any parameter is collected."""

    def finish(self, bot, event, context) -> None:
        """Runs once every parameter has been collected."""

    def container(self, param_type: ParameterType) -> Dict[str, dict]:
        if param_type not in (ParameterType.REQUIRED, ParameterType.OPTIONAL, ParameterType.DYNAMIC):
            raise InvalidArgument(f"Skill has no top-level container for {param_type}")
        container = getattr(self, param_type.value, None)
        if container is None:
            container = {}
            setattr(self, param_type.value, container)
        return container


class SkillRegistry:
    def __init__(self) -> None:
        self._skills: Dict[str, Type[Skill]] = {}

    def register(self, skill_type: str, skill_class: Optional[Type[Skill]] = None):
        def decorator(cls: Type[Skill]) -> Type[Skill]:
            self._skills[skill_type] = cls
            return cls

        if skill_class is not None:
            return decorator(skill_class)
        return decorator

    def create(self, skill_type: str) -> Skill:
        cls = self._skills.get(skill_type)
        if cls is None:
            raise SkillNotFound(f"Skill not registered: {skill_type}")
        skill = cls()
        skill.type = skill_type
        return skill

    def __contains__(self, skill_type: str) -> bool:
        return skill_type in self._skills
