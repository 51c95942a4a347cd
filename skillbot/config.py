"""Runtime configuration loading.

Configuration is read from ``skillbot/config.yaml`` (or an explicit path)
and deep-merged with caller overrides.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from skillbot.core.audit import AuditLog
from skillbot.core.errors import ContractViolation
from skillbot.memory.memory_store import InMemoryStore

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: str | Path | None = None, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        raise ContractViolation(f"Missing configuration file: {config_path}")

    data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ContractViolation(f"Configuration must be a mapping: {config_path}")
    return _deep_merge(data, overrides or {})


def build_memory(config: Dict[str, Any]):
    memory = config.get("memory") or {}
    memory_type = memory.get("type", "memory")
    retention = memory.get("retention")

    if memory_type == "memory":
        return InMemoryStore(retention=retention)
    if memory_type == "mongodb":
        from skillbot.memory.mongodb_store import DEFAULT_COLLECTION, MongoMemoryStore

        return MongoMemoryStore.from_env(memory.get("collection") or DEFAULT_COLLECTION, retention=retention)
    raise ContractViolation(f"Unknown memory type: {memory_type}")


def build_audit(config: Dict[str, Any]) -> AuditLog:
    audit = config.get("audit") or {}
    return AuditLog(path=audit.get("path"), actor=audit.get("actor") or "skillbot")
