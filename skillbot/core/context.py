from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from skillbot.core.change_log import replay
from skillbot.core.contracts.loader import validate_context_document
from skillbot.core.flow import CONTINUE, FlowKind, FlowSignal
from skillbot.core.parameters.registry import ParameterType


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _dt_to_iso(value: datetime) -> str:
    return value.isoformat()


def _dt_from_iso(value: str) -> datetime:
    return datetime.fromisoformat(value)


@dataclass
class PreviousTurns:
    """Newest-first history of processed parameters and exchanged messages."""
    confirmed: List[str] = field(default_factory=list)
    processed: List[str] = field(default_factory=list)
    message: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "confirmed": list(self.confirmed),
            "processed": list(self.processed),
            "message": copy.deepcopy(self.message),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PreviousTurns":
        return cls(
            confirmed=list(data.get("confirmed") or []),
            processed=list(data.get("processed") or []),
            message=copy.deepcopy(data.get("message") or []),
        )


@dataclass
class Context:
    """
    Conversation state for one user/session, carried across turns.

    ``flow`` is transient: it is reset at every turn boundary and never
    written to the persisted document.
    """
    skill: Any
    chat_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    launched_at: datetime = field(default_factory=_now)
    confirmed: Dict[str, Any] = field(default_factory=dict)
    to_confirm: List[str] = field(default_factory=list)
    confirming: Optional[str] = None
    previous: PreviousTurns = field(default_factory=PreviousTurns)
    param_change_history: List[dict] = field(default_factory=list)
    parent_parameter: Optional[Dict[str, str]] = None
    message_queue: List[Any] = field(default_factory=list)
    flow: FlowSignal = CONTINUE

    @classmethod
    def launch(cls, skill) -> "Context":
        # Required parameters are collected in declaration order
        return cls(skill=skill, to_confirm=list(skill.container(ParameterType.REQUIRED).keys()))

    @property
    def paused(self) -> bool:
        return self.flow.kind == FlowKind.PAUSE

    @property
    def exited(self) -> bool:
        return self.flow.kind in (FlowKind.EXIT, FlowKind.SWITCH_SKILL)

    @property
    def restarting(self) -> bool:
        return self.flow.kind == FlowKind.RESTART

    @property
    def switch_intent(self) -> Optional[Dict[str, Any]]:
        return self.flow.intent if self.flow.kind == FlowKind.SWITCH_SKILL else None

    @property
    def is_complete(self) -> bool:
        return self.confirming is None and not self.to_confirm

    def to_dict(self) -> dict:
        document = {
            "skill": {"type": self.skill.type},
            "chat_id": self.chat_id,
            "launched_at": _dt_to_iso(self.launched_at),
            "confirmed": copy.deepcopy(self.confirmed),
            "to_confirm": list(self.to_confirm),
            "confirming": self.confirming,
            "previous": self.previous.to_dict(),
            "param_change_history": copy.deepcopy(self.param_change_history),
            "parent_parameter": dict(self.parent_parameter) if self.parent_parameter else None,
        }
        validate_context_document(document)
        return document

    @classmethod
    def from_dict(cls, data: dict, skills) -> "Context":
        validate_context_document(data)
        skill = skills.create(data["skill"]["type"])
        history = copy.deepcopy(data.get("param_change_history") or [])
        replay(skill, history)
        return cls(
            skill=skill,
            chat_id=data["chat_id"],
            launched_at=_dt_from_iso(data["launched_at"]),
            confirmed=copy.deepcopy(data.get("confirmed") or {}),
            to_confirm=list(data.get("to_confirm") or []),
            confirming=data.get("confirming"),
            previous=PreviousTurns.from_dict(data.get("previous") or {}),
            param_change_history=history,
            parent_parameter=data.get("parent_parameter"),
        )
