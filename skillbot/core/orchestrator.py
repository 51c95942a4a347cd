"""
Turn orchestration around the parameter confirmation core.

One call to ``Orchestrator.run_turn`` processes one inbound event for one
session: it loads (or launches) the conversation context, applies the
user's reply to the parameter being confirmed, then walks ``to_confirm``
one parameter at a time until it has to ask the user something, the skill
finishes, or a flow signal stops the turn.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

from skillbot.config import build_audit, build_memory, load_config
from skillbot.core.bot import Bot
from skillbot.core.context import Context
from skillbot.core.errors import ContractViolation
from skillbot.core.flow import FlowKind
from skillbot.core.parameters.registry import ParameterType
from skillbot.core.parsing.builtin import BuiltinParserRegistry
from skillbot.core.skill import SkillRegistry, invoke

logger = logging.getLogger(__name__)

TurnStatus = Literal["collecting", "paused", "exited", "completed", "restarted"]


@dataclass
class _Turn:
    """Per-call state. ``bot`` follows skill switches."""
    session_id: str
    user_id: str
    event: Dict[str, Any]
    bot: Optional[Bot] = None


@dataclass(frozen=True)
class TurnResult:
    status: TurnStatus
    skill: Optional[str]
    confirming: Optional[str]
    context: Optional[Context] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "skill": self.skill,
            "confirming": self.confirming,
        }


class Orchestrator:
    def __init__(
        self,
        skills: SkillRegistry,
        memory=None,
        messenger=None,
        builtin_parser: Optional[BuiltinParserRegistry] = None,
        audit=None,
        config: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.config = config if config is not None else load_config()
        self.skills = skills
        self.memory = memory if memory is not None else build_memory(self.config)
        self.messenger = messenger
        self.builtin_parser = builtin_parser
        self.audit = audit if audit is not None else build_audit(self.config)
        self.retention = (self.config.get("memory") or {}).get("retention")
        self.max_skill_switches = (self.config.get("orchestrator") or {}).get("max_skill_switches", 5)

    async def run_turn(
        self,
        event: Dict[str, Any],
        skill_type: Optional[str] = None,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> TurnResult:
        """
        Process one inbound event.

        Args:
            event: Canonical event with ``session_id`` and optionally ``user_id`` and ``text``
            skill_type: Skill to launch when no conversation is in progress
            parameters: Values to apply to the launched skill up front

        Returns:
            TurnResult: Outcome of the turn
        """
        session_id = event.get("session_id")
        if not session_id:
            raise ContractViolation("Event has no session_id.")
        turn = _Turn(session_id=session_id, user_id=event.get("user_id") or session_id, event=event)

        document = self.memory.get(session_id)
        context = Context.from_dict(document, self.skills) if document else None

        try:
            if context is None or context.is_complete:
                if skill_type is None:
                    raise ContractViolation("No conversation in progress and no skill to launch.")
                previous = context.previous if context is not None else None
                bot = await self._launch(turn, skill_type, parameters, previous)
                self._record_incoming(bot, turn.user_id)
            else:
                bot = turn.bot = self._bot(context, event)
                self._record_incoming(bot, turn.user_id)
                if context.confirming:
                    await bot.apply_parameter(context.confirming, event.get("text"), parse=True, react=True)
            return await self._advance(turn)
        except Exception:
            current = turn.bot.context if turn.bot is not None else context
            if current is not None:
                self.audit.skill_status(turn.user_id, current.skill.type, "abend", current.confirming)
            raise

    async def _advance(self, turn: _Turn) -> TurnResult:
        user_id = turn.user_id
        switches = 0
        while True:
            bot = turn.bot
            context = bot.context
            await self._collect_next(bot)

            finished = False
            if context.flow.kind == FlowKind.CONTINUE and context.confirming is None:
                await invoke(context.skill.finish, bot, bot.event, context)
                self.audit.skill_status(user_id, context.skill.type, "completed")
                finished = True

            if context.flow.kind != FlowKind.SWITCH_SKILL:
                return await self._settle(bot, turn.session_id, user_id, finished)

            switches += 1
            if switches > self.max_skill_switches:
                raise ContractViolation(f"Skill switched more than {self.max_skill_switches} times in one turn.")
            if not finished:
                self.audit.skill_status(user_id, context.skill.type, "aborted", context.confirming)
            await self._flush(bot)

            intent = context.switch_intent
            logger.debug("Switching from %s to %s.", context.skill.type, intent["name"])
            await self._launch(turn, intent["name"], intent.get("parameters"))

    async def _collect_next(self, bot: Bot) -> None:
        context = bot.context
        while not context.flow.halts and context.to_confirm:
            name = context.to_confirm[0]
            parent = context.parent_parameter

            # Back at the parent: every sub-parameter has been collected
            if parent and parent["name"] == name:
                await bot.apply_parameter(name, bot.surface(), parse=True, react=True)
                continue

            definition = bot.get_parameter(name)

            if definition.condition is not None:
                applies = await invoke(definition.condition, bot, bot.event, context)
                if not applies:
                    logger.debug("Condition of %s is not met so we skip it.", name)
                    context.to_confirm.pop(0)
                    continue

            if definition.sub_parameter and not parent:
                bot.dig(name)
                continue

            context.confirming = name
            message = definition.message
            if callable(message):
                message = await invoke(message, bot, bot.event, context)
            if message is not None:
                bot.queue(message)
            await self._flush(bot, to_collect=True)
            return

    async def _settle(self, bot: Bot, session_id: str, user_id: str, finished: bool) -> TurnResult:
        context = bot.context
        kind = context.flow.kind
        skill_type = context.skill.type
        await self._flush(bot)

        if kind == FlowKind.RESTART:
            self.audit.skill_status(user_id, skill_type, "aborted", context.confirming)
            self.memory.delete(session_id)
            return TurnResult(status="restarted", skill=skill_type, confirming=None)

        if finished and kind == FlowKind.CONTINUE:
            if context.skill.clear_context_on_finish:
                self.memory.delete(session_id)
                return TurnResult(status="completed", skill=skill_type, confirming=None)
            self._save(session_id, context)
            return TurnResult(status="completed", skill=skill_type, confirming=None, context=context)

        if kind == FlowKind.EXIT:
            context.confirming = None
            status = "exited"
        elif kind == FlowKind.PAUSE:
            status = "paused"
        else:
            status = "collecting"

        self._save(session_id, context)
        return TurnResult(status=status, skill=skill_type, confirming=context.confirming, context=context)

    async def _launch(
        self,
        turn: _Turn,
        skill_type: str,
        parameters: Optional[Dict[str, Any]] = None,
        previous=None,
    ) -> Bot:
        skill = self.skills.create(skill_type)
        context = Context.launch(skill)
        if previous is not None:
            context.previous = previous
        bot = turn.bot = self._bot(context, turn.event)
        self.audit.skill_status(turn.user_id, skill_type, "launched")

        await invoke(skill.begin, bot, turn.event, context)
        for name, value in (parameters or {}).items():
            if context.flow.halts:
                break
            if bot.check_parameter_type(name) == ParameterType.NOT_APPLICABLE:
                logger.debug("Skipping %s since %s does not define it.", name, skill_type)
                continue
            await bot.apply_parameter(name, value, parse=True, react=True)
        return bot

    def _bot(self, context: Context, event: Dict[str, Any]) -> Bot:
        return Bot(
            context,
            event=event,
            messenger=self.messenger,
            builtin_parser=self.builtin_parser,
            audit=self.audit,
            language=self.config.get("language"),
        )

    def _record_incoming(self, bot: Bot, user_id: str) -> None:
        text = bot.event.get("text")
        if text is None:
            return
        message = {"type": "text", "text": text}
        context = bot.context
        context.previous.message.insert(0, {"from": "user", "message": message, "skill": context.skill.type})
        self.audit.chat(user_id, context.chat_id, context.skill.type, "user", message)

    async def _flush(self, bot: Bot, to_collect: bool = False) -> None:
        if not bot.context.message_queue or bot.messenger is None:
            return
        await bot.reply(to_collect=to_collect)

    def _save(self, session_id: str, context: Context) -> None:
        self.memory.put(session_id, context.to_dict(), self.retention)
