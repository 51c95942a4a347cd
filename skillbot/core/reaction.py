from __future__ import annotations

import logging
from typing import Any, Optional

from skillbot.core.flow import FlowSignal
from skillbot.core.skill import invoke

logger = logging.getLogger(__name__)


class ReactionDispatcher:
    """Runs the reaction of a parameter after its value was accepted or rejected."""

    def __init__(self, bot) -> None:
        self._bot = bot

    async def react(self, error: Optional[BaseException], name: str, value: Any) -> FlowSignal:
        bot = self._bot
        context = bot.context

        # A reaction never overrides an earlier pause, exit or init in the same turn
        if context.flow.halts:
            logger.debug("Detected %s flag so we skip reaction.", context.flow.kind)
            return context.flow

        definition = bot.parameters.resolve(name)
        reaction = definition.reaction
        if reaction is None:
            reaction = getattr(context.skill, f"reaction_{name}", None)

        if reaction is None:
            logger.debug("Reaction for %s not found.", name)
            return context.flow

        logger.debug("Reaction for %s found. Performing reaction...", name)
        result = await invoke(reaction, error, value, bot, bot.event, context)
        if isinstance(result, FlowSignal):
            bot.flow.apply(result)
        return context.flow
