import pytest

from skillbot.core.errors import InvalidParser, ParameterRejected, ValueNotSet
from skillbot.core.parsing.builtin import (
    BuiltinParserRegistry,
    EmailParser,
    ListParser,
    NumberParser,
    StringParser,
    default_builtin_parsers,
)


@pytest.mark.parametrize(
    "value, policy, expected",
    [
        ("  hello ", {}, "hello"),
        ("abc", {"min": 3, "max": 3}, "abc"),
        ("A-123", {"regex": r"^[A-Z]-\d+$"}, "A-123"),
    ],
)
def test_string_parser_accepts(value, policy, expected):
    assert StringParser().parse(value, {"parameter_name": "p", **policy}) == expected


@pytest.mark.parametrize(
    "value, policy, reason",
    [
        (12, {}, "should_be_string"),
        ("ab", {"min": 3}, "violates_min"),
        ("abcd", {"max": 3}, "violates_max"),
        ("x", {"regex": r"^\d+$"}, "should_follow_regex"),
    ],
)
def test_string_parser_rejects(value, policy, reason):
    with pytest.raises(ParameterRejected) as exc:
        StringParser().parse(value, {"parameter_name": "p", **policy})

    assert str(exc.value) == reason


def test_number_parser():
    parser = NumberParser()

    assert parser.parse("42", {}) == 42
    assert parser.parse(" 2.5 ", {}) == 2.5
    assert parser.parse(7, {"min": 1, "max": 10}) == 7

    for value, policy in (("abc", {}), (True, {}), ("0", {"min": 1}), ("11", {"max": 10})):
        with pytest.raises(ParameterRejected):
            parser.parse(value, policy)


def test_list_parser_matches_case_insensitively():
    policy = {"value": ["Small", "Large"]}

    assert ListParser().parse("large", policy) == "Large"
    with pytest.raises(ParameterRejected):
        ListParser().parse("medium", policy)


def test_list_parser_without_values_is_a_defect():
    with pytest.raises(InvalidParser):
        ListParser().parse("x", {"parameter_name": "size"})


def test_email_parser():
    assert EmailParser().parse(" someone@example.com ", {}) == "someone@example.com"
    with pytest.raises(ParameterRejected):
        EmailParser().parse("someone@", {})


@pytest.mark.parametrize("parser", [StringParser(), NumberParser(), EmailParser()])
def test_empty_values_are_not_set(parser):
    with pytest.raises(ValueNotSet):
        parser.parse("", {"parameter_name": "p"})


def test_registry_lookup_and_registration():
    registry = default_builtin_parsers()

    assert "email" in registry
    assert registry.number is registry.get("number")
    with pytest.raises(InvalidParser):
        registry.get("zipcode")

    class Upper:
        def parse(self, value, policy):
            return value.upper()

    registry.register("upper", Upper())
    assert registry.get("upper").parse("a", {}) == "A"

    with pytest.raises(InvalidParser):
        BuiltinParserRegistry().register("broken", object())
