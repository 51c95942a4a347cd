"""
Flow-control signals raised by reactions and skill lifecycle hooks.

A turn carries exactly one ``FlowSignal``. Bot methods (``pause``,
``exit``, ``init``, ``switch_skill``) replace it, and a reaction may return
one instead of calling the bot. The orchestrator reads the signal between
parameter confirmations to decide whether to keep processing the skill.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from skillbot.core.errors import InvalidArgument

logger = logging.getLogger(__name__)


class FlowKind(str, Enum):
    """What the orchestrator should do with the rest of the turn."""
    CONTINUE = "continue"
    PAUSE = "pause"
    EXIT = "exit"
    RESTART = "restart"
    SWITCH_SKILL = "switch_skill"

# Allow string values for the enum
FlowKind.__str__ = lambda self: self.value


@dataclass(frozen=True)
class FlowSignal:
    kind: FlowKind = FlowKind.CONTINUE
    intent: Optional[Dict[str, Any]] = None

    @property
    def halts(self) -> bool:
        return self.kind != FlowKind.CONTINUE

    @classmethod
    def pause(cls) -> "FlowSignal":
        return cls(kind=FlowKind.PAUSE)

    @classmethod
    def exit(cls) -> "FlowSignal":
        return cls(kind=FlowKind.EXIT)

    @classmethod
    def restart(cls) -> "FlowSignal":
        return cls(kind=FlowKind.RESTART)

    @classmethod
    def switch_skill(cls, intent: Dict[str, Any]) -> "FlowSignal":
        _validate_intent(intent)
        return cls(kind=FlowKind.SWITCH_SKILL, intent=dict(intent))


CONTINUE = FlowSignal()


def _validate_intent(intent: Any) -> None:
    name = intent.get("name") if isinstance(intent, Mapping) else None
    if not (name and isinstance(name, str)):
        raise InvalidArgument("Required parameter: 'name' for switch_skill() should be set and string.")


class FlowController:
    """Sets the flow signal on a conversation context."""

    def __init__(self, context) -> None:
        self._context = context

    def pause(self) -> None:
        """Stop processing remaining actions and keep the context as is."""
        self._context.flow = FlowSignal.pause()

    def exit(self) -> None:
        """Stop processing remaining actions and abandon the in-flight confirming target."""
        self._context.flow = FlowSignal.exit()

    def init(self) -> None:
        """Stop processing remaining actions and clear the context completely."""
        self._context.flow = FlowSignal.restart()

    def switch_skill(self, intent: Dict[str, Any]) -> None:
        self.exit()
        _validate_intent(intent)
        logger.debug("Switching skill to %s.", intent["name"])
        self._context.flow = FlowSignal.switch_skill(intent)

    def apply(self, signal: FlowSignal) -> None:
        if signal.kind == FlowKind.SWITCH_SKILL:
            self.switch_skill(signal.intent or {})
        else:
            self._context.flow = signal

    def reset(self) -> None:
        self._context.flow = CONTINUE
