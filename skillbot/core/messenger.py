"""Interface of the messenger collaborator the bot talks through.

Rendering and sending platform payloads is the messenger's job; the core
only hands it compiled message objects. Any method may be sync or async.
"""

from __future__ import annotations

from typing import Any, Dict, List, Protocol


class Messenger(Protocol):
    type: str

    def compile_message(self, message: Any, format: str | None = None) -> Any:
        ...

    def reply(self, event: Dict[str, Any], messages: List[Any]) -> Any:
        ...

    def reply_to_collect(self, event: Dict[str, Any], messages: List[Any]) -> Any:
        ...

    def send(self, event: Dict[str, Any], recipient_id: str, messages: List[Any]) -> Any:
        ...

    def multicast(self, event: Dict[str, Any], recipient_ids: List[str], messages: List[Any]) -> Any:
        ...


class RecordingMessenger:
    """Messenger that keeps outgoing messages in memory instead of sending them."""

    type = "recording"

    def __init__(self) -> None:
        self.sent: List[Dict[str, Any]] = []

    def compile_message(self, message: Any, format: str | None = None) -> Any:
        if isinstance(message, str):
            return {"type": "text", "text": message}
        return message

    def reply(self, event: Dict[str, Any], messages: List[Any]) -> Dict[str, Any]:
        return self._record("reply", event.get("user_id"), messages)

    def reply_to_collect(self, event: Dict[str, Any], messages: List[Any]) -> Dict[str, Any]:
        return self._record("reply_to_collect", event.get("user_id"), messages)

    def send(self, event: Dict[str, Any], recipient_id: str, messages: List[Any]) -> Dict[str, Any]:
        return self._record("send", recipient_id, messages)

    def multicast(self, event: Dict[str, Any], recipient_ids: List[str], messages: List[Any]) -> Dict[str, Any]:
        return self._record("multicast", list(recipient_ids), messages)

    def _record(self, method: str, to: Any, messages: List[Any]) -> Dict[str, Any]:
        record = {"method": method, "to": to, "messages": list(messages)}
        self.sent.append(record)
        return record
