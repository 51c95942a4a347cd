"""
Confirmation queue and confirmed-value store.

``to_confirm`` is ordered most-recently-queued first. ``apply`` runs
parse, commit and react strictly in that order; a rejected value is never
committed, so the parameter stays queued for a re-prompt.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Union

from skillbot.core.change_log import REPLACE
from skillbot.core.errors import (
    InvalidArgument,
    InvalidParameterDefinition,
    MalformedParameterContainer,
    ParameterNotFound,
)
from skillbot.core.flow import FlowSignal
from skillbot.core.parameters.registry import ParameterType

logger = logging.getLogger(__name__)


class ConfirmationStore:
    def __init__(self, bot) -> None:
        self._bot = bot

    @property
    def _context(self):
        return self._bot.context

    async def apply(self, name: str, value: Any, parse: bool = False, react: bool = True) -> FlowSignal:
        error = None
        if parse:
            try:
                value = await self._bot.parsers.parse(name, value)
            except ValueError as e:
                # Parser rejections are ValueErrors, anything else is a defect
                error = e
                logger.debug('Parser rejected value %r for parameter "%s": %s', value, name, e)

        if error is None:
            self.commit(name, value)

        if react:
            return await self._bot.reactions.react(error, name, value)
        return self._context.flow

    def commit(self, name: str, value: Any, is_change: bool = False) -> None:
        logger.debug("Adding %r to parameter: %s.", value, name)
        definition = self._bot.parameters.resolve(name)
        context = self._context

        if definition.is_list:
            policy = definition.list_policy
            if not isinstance(policy, (bool, Mapping)):
                raise InvalidParameterDefinition("list property should be boolean or object.")

            values = context.confirmed.get(name)
            if not isinstance(values, list):
                values = []
                context.confirmed[name] = values

            if isinstance(policy, Mapping) and policy.get("order") == "old":
                values.append(value)
            else:
                values.insert(0, value)
        else:
            context.confirmed[name] = value

        if not is_change:
            context.previous.confirmed.insert(0, name)
            context.previous.processed.insert(0, name)

        if name in context.to_confirm:
            logger.debug("Removing %s from to_confirm.", name)
            context.to_confirm.remove(name)

        if context.confirming == name:
            logger.debug("Clearing confirming.")
            context.confirming = None

    def enqueue(self, arg: Union[str, Mapping[str, dict]], dedup: bool = True) -> str:
        if isinstance(arg, str):
            name = arg
            if self._bot.parameters.classify(name) == ParameterType.NOT_APPLICABLE:
                raise ParameterNotFound(f'Parameter: "{name}" not found in skill.')
        elif isinstance(arg, Mapping):
            if len(arg) != 1:
                raise MalformedParameterContainer("Malformed parameter container object. You can pass just 1 parameter.")
            (name, definition), = arg.items()
            self._override_definition(name, dict(definition or {}))
        else:
            raise InvalidArgument("Invalid argument.")

        context = self._context
        if dedup and name in context.to_confirm:
            logger.debug("Removing earlier occurrence of %s from to_confirm to dedup.", name)
            context.to_confirm.remove(name)

        logger.debug("Reserved collection of parameter: %s.", name)
        context.to_confirm.insert(0, name)
        return name

    def dig(self, name: str) -> None:
        """
        Start collecting the sub-parameters of ``name``.

        The sub-parameters are queued in declaration order ahead of the parent,
        which stays queued until ``surface`` hands it their values.
        """
        context = self._context
        if context.parent_parameter:
            raise InvalidArgument(f"Already collecting sub parameters of {context.parent_parameter['name']}.")

        definition = self._bot.parameters.resolve(name)
        if definition.type == ParameterType.SUB or not definition.sub_parameter:
            raise InvalidArgument(f"Parameter: {name} has no sub parameter.")

        logger.debug("Digging into sub parameters of %s.", name)
        context.parent_parameter = {"type": str(definition.type), "name": name}
        if name not in context.to_confirm:
            context.to_confirm.insert(0, name)
        for sub_name in reversed(list(definition.sub_parameter)):
            self.enqueue(sub_name)

    def surface(self) -> dict:
        """Stop collecting sub-parameters and return their confirmed values keyed by name."""
        context = self._context
        parent = context.parent_parameter
        if not parent:
            raise InvalidArgument("Not collecting sub parameters.")

        definition = self._bot.parameters.resolve(parent["name"])
        values = {}
        for sub_name in definition.sub_parameter:
            if sub_name in context.to_confirm:
                context.to_confirm.remove(sub_name)
            if sub_name in context.confirmed:
                values[sub_name] = context.confirmed.pop(sub_name)

        logger.debug("Surfacing from sub parameters of %s.", parent["name"])
        context.parent_parameter = None
        return values

    def _override_definition(self, name: str, definition: dict) -> None:
        skill = self._context.skill
        param_type = ParameterType.DYNAMIC
        for candidate in (ParameterType.REQUIRED, ParameterType.OPTIONAL):
            if name in skill.container(candidate):
                logger.debug("Found %s in %s so we override it.", name, candidate)
                param_type = candidate
                break
        else:
            logger.debug("%s not found in skill so we add it as dynamic parameter.", name)

        self._bot.change_log.change(param_type, name, definition, mode=REPLACE)
