from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Union

from skillbot.core.errors import InvalidParser, InvalidParserObject, ParserNotFound, ValueNotSet
from skillbot.core.skill import invoke

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InlineParser:
    fn: Callable


@dataclass(frozen=True)
class BuiltInParser:
    name: str


@dataclass(frozen=True)
class BuiltInParserWithPolicy:
    name: str
    policy: Dict[str, Any] = field(default_factory=dict)


Parser = Union[InlineParser, BuiltInParser, BuiltInParserWithPolicy]


def to_parser(raw: Any, param_name: str) -> Parser:
    """Normalize a parser declaration (function, built-in name or {type, policy})."""
    if callable(raw):
        return InlineParser(raw)
    if isinstance(raw, str):
        return BuiltInParser(raw)
    if isinstance(raw, Mapping):
        if not raw.get("type"):
            raise InvalidParserObject('Parser object is invalid. Required property: "type" not found.')
        policy = dict(raw.get("policy") or {})
        policy["parameter_name"] = policy.get("parameter_name") or param_name
        return BuiltInParserWithPolicy(raw["type"], policy)
    raise InvalidParser(f"Parser for the parameter: {param_name} is invalid.")


class ParserDispatcher:
    """Resolves and runs the parser of a parameter."""

    def __init__(self, bot) -> None:
        self._bot = bot

    async def parse(self, name: str, value: Any, strict: bool = False) -> Any:
        logger.debug('Parsing value for parameter "%s": %r', name, value)

        bot = self._bot
        definition = bot.parameters.resolve(name)

        raw = definition.parser
        if raw is None:
            raw = getattr(bot.context.skill, f"parse_{name}", None)

        if raw is None:
            if strict:
                raise ParserNotFound("Parser not found.")
            if value is None or value == "":
                raise ValueNotSet("Value is not set.")
            logger.debug("No parser for %s, accepting the value as it is.", name)
            return value

        parser = to_parser(raw, name)
        if isinstance(parser, InlineParser):
            return await invoke(parser.fn, value, bot, bot.event, bot.context)

        builtin = bot.builtin_parser.get(parser.name)
        if isinstance(parser, BuiltInParserWithPolicy):
            policy = parser.policy
        else:
            policy = {"parameter_name": name}
        logger.debug("Using builtin parser %s for %s.", parser.name, name)
        return await invoke(builtin.parse, value, policy)
