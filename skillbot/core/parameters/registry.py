from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from skillbot.core.errors import ParameterNotFound

logger = logging.getLogger(__name__)


class ParameterType(str, Enum):
    """Parameter containers a skill can hold, plus the not-found marker."""
    REQUIRED = "required_parameter"
    OPTIONAL = "optional_parameter"
    DYNAMIC = "dynamic_parameter"
    SUB = "sub_parameter"
    NOT_APPLICABLE = "not_applicable"

# Allow string values for the enum
ParameterType.__str__ = lambda self: self.value

# Lookup order for top-level containers
CONTAINER_TYPES = (ParameterType.REQUIRED, ParameterType.OPTIONAL, ParameterType.DYNAMIC)


@dataclass(frozen=True)
class ParameterDefinition:
    name: str
    type: ParameterType
    message: Any = None
    parser: Any = None
    reaction: Any = None
    condition: Any = None
    list_policy: Any = False
    sub_parameter: Dict[str, dict] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_list(self) -> bool:
        # An empty policy object still marks a list parameter
        return isinstance(self.list_policy, Mapping) or bool(self.list_policy)

    @classmethod
    def from_raw(cls, name: str, param_type: ParameterType, raw: Mapping[str, Any]) -> "ParameterDefinition":
        message = raw.get("message")
        if message is None:
            message = raw.get("message_to_confirm")
        return cls(
            name=name,
            type=param_type,
            message=message,
            parser=raw.get("parser"),
            reaction=raw.get("reaction"),
            condition=raw.get("condition"),
            list_policy=raw.get("list", False),
            sub_parameter=dict(raw.get("sub_parameter") or {}),
            raw=dict(raw),
        )


class ParameterRegistry:
    """
    Classifies and resolves parameter names against the active skill.

    Sub-parameters are only visible while ``context.parent_parameter`` points
    at the parameter that declares them.
    """

    def __init__(self, context) -> None:
        self._context = context

    def classify(self, name: str) -> ParameterType:
        skill = self._context.skill
        for param_type in CONTAINER_TYPES:
            if name in skill.container(param_type):
                return param_type
        if name in self._sub_container():
            return ParameterType.SUB
        return ParameterType.NOT_APPLICABLE

    def resolve(self, name: str) -> ParameterDefinition:
        param_type = self.classify(name)
        if param_type == ParameterType.NOT_APPLICABLE:
            raise ParameterNotFound(f'Parameter: "{name}" not found in skill.')

        if param_type == ParameterType.SUB:
            raw = self._sub_container()[name]
        else:
            raw = self._context.skill.container(param_type)[name]
        return ParameterDefinition.from_raw(name, param_type, raw or {})

    def _sub_container(self) -> Dict[str, dict]:
        parent = self._context.parent_parameter
        if not parent:
            return {}
        container = self._context.skill.container(ParameterType(parent["type"]))
        parent_definition = container.get(parent["name"]) or {}
        return parent_definition.get("sub_parameter") or {}
