from skillbot.core.bot import Bot
from skillbot.core.context import Context
from skillbot.core.flow import FlowKind, FlowSignal
from skillbot.core.orchestrator import Orchestrator, TurnResult
from skillbot.core.skill import Skill, SkillRegistry

__all__ = [
    "Bot",
    "Context",
    "FlowKind",
    "FlowSignal",
    "Orchestrator",
    "TurnResult",
    "Skill",
    "SkillRegistry",
]
