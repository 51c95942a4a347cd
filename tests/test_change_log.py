import logging

import pytest

from skillbot.core.change_log import (
    HANDLER_KEY,
    REPLACE,
    SOURCE_KEY,
    ChangeLog,
    describe_callable,
    replay,
    serialize_definition,
)
from skillbot.core.errors import ContractViolation


@pytest.fixture
def skill(skills):
    return skills.create("order")


def test_registered_handler_is_stored_by_name(skill):
    assert describe_callable(skill.react_quantity, skill) == {HANDLER_KEY: "react_quantity"}


def test_skill_method_is_stored_by_name(skill):
    assert describe_callable(skill.finish, skill) == {HANDLER_KEY: "finish"}


def test_unknown_callable_falls_back_to_source(skill):
    def shout(value, bot, event, context):
        return value.upper()

    described = describe_callable(shout, skill)

    assert SOURCE_KEY in described
    assert "value.upper()" in described[SOURCE_KEY]


def test_serialize_definition_folds_legacy_message_and_sub_parameters(skill):
    serialized = serialize_definition(
        {
            "message_to_confirm": "Old?",
            "reaction": skill.react_quantity,
            "sub_parameter": {"zipcode": {"parser": skill.react_quantity}},
        },
        skill,
    )

    assert serialized == {
        "message": "Old?",
        "reaction": {HANDLER_KEY: "react_quantity"},
        "sub_parameter": {"zipcode": {"parser": {HANDLER_KEY: "react_quantity"}}},
    }


def test_record_prepends_entries(make_bot):
    bot = make_bot()
    log = ChangeLog(bot.context)

    log.record("required_parameter", "pizza", {"message": "first"})
    log.record("optional_parameter", "topping", {"message": "second"})

    assert [entry["name"] for entry in bot.context.param_change_history] == ["topping", "pizza"]


def test_record_rejects_unknown_container(make_bot):
    bot = make_bot()

    with pytest.raises(ValueError):
        ChangeLog(bot.context).record("bogus_parameter", "zipcode", {"message": "x"})

    with pytest.raises(ContractViolation):
        ChangeLog(bot.context).record("sub_parameter", "zipcode", {"message": "x"})

    with pytest.raises(ContractViolation):
        ChangeLog(bot.context).record("required_parameter", "", {"message": "x"})


def test_replay_applies_oldest_first(skill):
    history = [
        {"type": "required_parameter", "name": "pizza", "param": {"message": "newest"}},
        {"type": "required_parameter", "name": "pizza", "param": {"message": "oldest"}},
        {"type": "dynamic_parameter", "name": "note", "param": {"message": "Note?"}},
    ]

    replay(skill, history)

    assert skill.required_parameter["pizza"]["message"] == "newest"
    assert skill.required_parameter["pizza"]["parser"]["type"] == "list"
    assert skill.dynamic_parameter["note"] == {"message": "Note?"}


def test_replay_revives_handlers_and_merges_sub_parameters(skill):
    history = [
        {
            "type": "optional_parameter",
            "name": "address",
            "param": {
                "reaction": {HANDLER_KEY: "react_quantity"},
                "sub_parameter": {"zipcode": {"message": "Postal code?"}},
            },
        },
    ]

    replay(skill, history)

    address = skill.optional_parameter["address"]
    assert address["reaction"] == skill.react_quantity
    assert address["sub_parameter"]["zipcode"] == {"message": "Postal code?", "parser": "number"}


def test_replay_never_executes_source(skill, caplog):
    history = [
        {
            "type": "required_parameter",
            "name": "quantity",
            "param": {"parser": {SOURCE_KEY: "lambda value: 1 / 0"}, "message": "Count?"},
        },
    ]

    with caplog.at_level(logging.WARNING, logger="skillbot.core.change_log"):
        replay(skill, history)

    quantity = skill.required_parameter["quantity"]
    assert quantity["message"] == "Count?"
    assert callable(quantity["parser"])
    assert "source-only" in caplog.text


def test_replay_replaces_whole_definition_for_overrides(skill):
    history = [
        {"type": "required_parameter", "name": "quantity", "param": {"message": "Count?"}},
        {"type": "required_parameter", "name": "quantity", "mode": REPLACE, "param": {"message": "How many?"}},
    ]

    replay(skill, history)

    assert skill.required_parameter["quantity"] == {"message": "Count?"}


def test_change_applies_and_records_the_same_definition(make_bot, skills):
    bot = make_bot()
    log = ChangeLog(bot.context)

    log.change("optional_parameter", "address", {"sub_parameter": {"zipcode": {"message": "Postal code?"}}})

    fresh = skills.create("order")
    replay(fresh, bot.context.param_change_history)
    assert fresh.optional_parameter["address"] == bot.context.skill.optional_parameter["address"]
    assert fresh.optional_parameter["address"]["sub_parameter"]["zipcode"]["parser"] == "number"
