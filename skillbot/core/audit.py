"""
Audit logging for skill lifecycle and chat traffic.
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Valid event types
EVENT_TYPES = [
    "skill_status",
    "chat",
]

# Valid skill statuses
SKILL_STATUSES = ("launched", "aborted", "completed", "abend")


class AuditLog:
    """
    Append-only JSONL audit log.

    Every event is also emitted on the ``skillbot.core.audit`` logger. When
    ``path`` is None nothing is written to disk.
    """

    def __init__(self, path: Optional[str | Path] = None, actor: str = "skillbot") -> None:
        self.path = Path(path) if path is not None else None
        self.actor = actor

    def log_event(self, event_type: str, details: Optional[Dict[str, Any]] = None, actor: Optional[str] = None) -> bool:
        """
        Log an event to the audit log.

        Args:
            event_type: Type of event
            details: Additional event details
            actor: Override default actor

        Returns:
            bool: True if successful
        """
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Invalid event type: {event_type}")

        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
            "actor": actor or self.actor,
            "details": details or {},
        }
        logger.info("%s %s", event_type, json.dumps(entry["details"], ensure_ascii=False, default=str))

        if self.path is None:
            return True

        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        with open(self.path, "a") as f:
            f.write(json.dumps(entry, default=str) + "\n")
        return True

    def read(self) -> List[Dict[str, Any]]:
        """
        Read the audit log.

        Returns:
            List: Audit log entries
        """
        if self.path is None or not os.path.exists(self.path):
            return []

        entries = []
        with open(self.path, "r") as f:
            for line in f:
                line = line.strip()
                if line:
                    try:
                        entries.append(json.loads(line))
                    except json.JSONDecodeError:
                        logger.warning("Skipping corrupt audit line in %s", self.path)
        return entries

    def skill_status(self, user_id: str, skill: str, status: str, confirming: Optional[str] = None) -> bool:
        if status not in SKILL_STATUSES:
            raise ValueError(f"Invalid skill status: {status}")

        details = {"user_id": user_id, "skill": skill, "status": status}
        # confirming only matters when the skill did not complete
        if status in ("aborted", "abend") and confirming:
            details["confirming"] = confirming
        return self.log_event("skill_status", details)

    def chat(self, user_id: str, chat_id: str, skill: str, who: str, message: Any) -> bool:
        return self.log_event("chat", {
            "user_id": user_id,
            "chat_id": chat_id,
            "skill": skill,
            "who": who,
            "message": message,
        })
