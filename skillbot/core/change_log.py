"""
Change log for runtime mutations of parameter definitions.

Skills can override a parameter at runtime (``bot.collect({...})``,
``bot.change_message(...)``). Each override is recorded in
``context.param_change_history`` in a JSON-safe form so it can be replayed
onto a fresh skill instance when the context is loaded in the next turn.

Callables are stored as ``{"__handler__": name}`` when the skill knows them
by name (registered handler or skill method). Anything else falls back to
``{"__source__": text}``, which is kept for inspection but never executed
on replay.

A record made by ``collect`` replaces the whole definition (``mode: replace``);
one made by ``change_message`` is merged field by field (``mode: merge``).
The turn and the replay both go through ``apply_change``.
"""

from __future__ import annotations

import copy
import inspect
import logging
import textwrap
from typing import Any, Callable, Dict, List, Mapping, Optional

from skillbot.core.contracts.loader import validate_change_record
from skillbot.core.parameters.registry import ParameterType

logger = logging.getLogger(__name__)

CALLABLE_FIELDS = ("message", "condition", "parser", "reaction")
HANDLER_KEY = "__handler__"
SOURCE_KEY = "__source__"

# How a recorded change lands on the existing definition
MERGE = "merge"
REPLACE = "replace"


def describe_callable(fn: Callable, skill) -> Dict[str, str]:
    name = skill.handlers.name_of(fn) if skill is not None else None
    if name is None and skill is not None and getattr(fn, "__self__", None) is skill:
        name = fn.__name__
    if name is not None:
        return {HANDLER_KEY: name}

    try:
        source = textwrap.dedent(inspect.getsource(fn)).strip()
    except (OSError, TypeError):
        source = repr(fn)
    return {SOURCE_KEY: source}


def serialize_definition(definition: Mapping[str, Any], skill) -> Dict[str, Any]:
    param = dict(definition)

    # message_to_confirm is the legacy name of message
    if "message_to_confirm" in param:
        legacy = param.pop("message_to_confirm")
        if param.get("message") is None:
            param["message"] = legacy

    for key in CALLABLE_FIELDS:
        if callable(param.get(key)):
            param[key] = describe_callable(param[key], skill)

    if isinstance(param.get("sub_parameter"), Mapping):
        param["sub_parameter"] = {
            sub_name: serialize_definition(sub_definition or {}, skill)
            for sub_name, sub_definition in param["sub_parameter"].items()
        }
    return copy.deepcopy(param)


class ChangeLog:
    def __init__(self, context) -> None:
        self._context = context

    def record(
        self,
        param_type: ParameterType | str,
        name: str,
        definition: Mapping[str, Any],
        mode: str = MERGE,
    ) -> dict:
        entry = {
            "type": str(ParameterType(param_type)),
            "name": name,
            "mode": mode,
            "param": serialize_definition(definition, self._context.skill),
        }
        validate_change_record(entry)
        self._context.param_change_history.insert(0, entry)
        logger.debug("Saved change log for %s %s.", entry["type"], name)
        return entry

    def change(
        self,
        param_type: ParameterType | str,
        name: str,
        definition: Mapping[str, Any],
        mode: str = MERGE,
    ) -> dict:
        """Record a change and apply it to the active skill the same way replay will."""
        param_type = ParameterType(param_type)
        self.record(param_type, name, definition, mode)
        container = self._context.skill.container(param_type)
        return apply_change(container, name, definition, mode)


def _revive_value(value: Any, skill) -> Optional[Any]:
    if not isinstance(value, Mapping):
        return value
    if HANDLER_KEY in value:
        handler_name = value[HANDLER_KEY]
        fn = skill.handlers.get(handler_name) or getattr(skill, handler_name, None)
        if fn is None or not callable(fn):
            logger.warning("Handler %s is not available on skill %s; keeping its current definition.",
                           handler_name, skill.type)
            return None
        return fn
    if SOURCE_KEY in value:
        logger.warning("Skipping source-only callable in change log of skill %s.", skill.type)
        return None
    return value


def revive_definition(param: Mapping[str, Any], skill) -> Dict[str, Any]:
    revived: Dict[str, Any] = {}
    for key, value in param.items():
        if key in CALLABLE_FIELDS:
            value = _revive_value(value, skill)
            if value is None:
                continue
        elif key == "sub_parameter" and isinstance(value, Mapping):
            value = {sub_name: revive_definition(sub or {}, skill) for sub_name, sub in value.items()}
        revived[key] = copy.deepcopy(value) if not callable(value) else value
    return revived


def merge_definition(current: Mapping[str, Any], changes: Mapping[str, Any]) -> Dict[str, Any]:
    """Overlay field changes on a definition, merging ``sub_parameter`` entry by entry."""
    merged = dict(current or {})
    for key, value in changes.items():
        if key == "sub_parameter" and isinstance(merged.get(key), Mapping):
            subs = dict(merged[key])
            for sub_name, sub_changes in value.items():
                subs[sub_name] = merge_definition(subs.get(sub_name) or {}, sub_changes)
            merged[key] = subs
        else:
            merged[key] = value
    return merged


def apply_change(container: Dict[str, dict], name: str, changes: Mapping[str, Any], mode: str = MERGE) -> dict:
    """Land a change on ``container[name]``. Used both in the turn and on replay."""
    if mode == REPLACE:
        container[name] = dict(changes)
    else:
        container[name] = merge_definition(container.get(name) or {}, changes)
    return container[name]


def replay(skill, history: List[dict]) -> None:
    """Apply recorded changes onto a freshly created skill, oldest first."""
    for entry in reversed(history):
        container = skill.container(ParameterType(entry["type"]))
        changes = revive_definition(entry["param"], skill)
        apply_change(container, entry["name"], changes, entry.get("mode", MERGE))
