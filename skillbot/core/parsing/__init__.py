from skillbot.core.parsing.builtin import BuiltinParserRegistry, default_builtin_parsers
from skillbot.core.parsing.dispatcher import (
    BuiltInParser,
    BuiltInParserWithPolicy,
    InlineParser,
    Parser,
    ParserDispatcher,
    to_parser,
)

__all__ = [
    "BuiltinParserRegistry",
    "default_builtin_parsers",
    "BuiltInParser",
    "BuiltInParserWithPolicy",
    "InlineParser",
    "Parser",
    "ParserDispatcher",
    "to_parser",
]
