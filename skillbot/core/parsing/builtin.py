"""
Built-in parsers a skill can reference by name.

Every parser exposes ``parse(value, policy)``; ``policy`` always carries
``parameter_name``. Rejections raise ``ParameterRejected``.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

from skillbot.core.errors import InvalidParser, ParameterRejected, ValueNotSet

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _require_value(value: Any, policy: dict) -> None:
    if value is None or value == "":
        raise ValueNotSet(f"Value for {policy.get('parameter_name')} is not set.")


class StringParser:
    """Accepts text, optionally bounded by ``min`` / ``max`` length and a ``regex``."""

    def parse(self, value: Any, policy: dict) -> str:
        _require_value(value, policy)
        if not isinstance(value, str):
            raise ParameterRejected("should_be_string")

        value = value.strip()
        if policy.get("min") is not None and len(value) < policy["min"]:
            raise ParameterRejected("violates_min")
        if policy.get("max") is not None and len(value) > policy["max"]:
            raise ParameterRejected("violates_max")
        if policy.get("regex") and not re.search(policy["regex"], value):
            raise ParameterRejected("should_follow_regex")
        return value


class NumberParser:
    def parse(self, value: Any, policy: dict):
        _require_value(value, policy)
        if isinstance(value, bool):
            raise ParameterRejected("should_be_number")

        if isinstance(value, (int, float)):
            number = value
        else:
            text = str(value).strip()
            try:
                number = int(text)
            except ValueError:
                try:
                    number = float(text)
                except ValueError:
                    raise ParameterRejected("should_be_number")

        if policy.get("min") is not None and number < policy["min"]:
            raise ParameterRejected("violates_min")
        if policy.get("max") is not None and number > policy["max"]:
            raise ParameterRejected("violates_max")
        return number


class ListParser:
    """Accepts one of ``policy["value"]``, compared case-insensitively for text."""

    def parse(self, value: Any, policy: dict):
        _require_value(value, policy)
        allowed = policy.get("value")
        if not isinstance(allowed, (list, tuple)):
            raise InvalidParser("list parser requires policy.value to be a list.")

        for candidate in allowed:
            if candidate == value:
                return candidate
            if isinstance(candidate, str) and isinstance(value, str) and candidate.lower() == value.strip().lower():
                return candidate
        raise ParameterRejected("should_be_in_list")


class EmailParser:
    def parse(self, value: Any, policy: dict) -> str:
        _require_value(value, policy)
        if not isinstance(value, str) or not EMAIL_PATTERN.match(value.strip()):
            raise ParameterRejected("should_be_email")
        return value.strip()


class BuiltinParserRegistry:
    def __init__(self, parsers: Optional[Dict[str, Any]] = None) -> None:
        self._parsers: Dict[str, Any] = dict(parsers or {})

    def register(self, name: str, parser: Any) -> None:
        if not callable(getattr(parser, "parse", None)):
            raise InvalidParser(f"Builtin parser {name} must implement parse(value, policy).")
        self._parsers[name] = parser

    def get(self, name: str):
        parser = self._parsers.get(name)
        if parser is None:
            raise InvalidParser(f"Builtin parser not found: {name}")
        return parser

    def __contains__(self, name: str) -> bool:
        return name in self._parsers

    def __getattr__(self, name: str):
        # Lets skills call bot.builtin_parser.number.parse(value, policy)
        parsers = self.__dict__.get("_parsers", {})
        if name in parsers:
            return parsers[name]
        raise AttributeError(name)


def default_builtin_parsers() -> BuiltinParserRegistry:
    return BuiltinParserRegistry({
        "string": StringParser(),
        "number": NumberParser(),
        "list": ListParser(),
        "email": EmailParser(),
    })
