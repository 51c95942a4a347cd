import pytest

from skillbot.core.bot import Bot
from skillbot.core.context import Context
from skillbot.core.flow import FlowSignal
from skillbot.core.messenger import RecordingMessenger
from skillbot.core.skill import Skill, SkillRegistry


def _to_int(value, bot, event, context):
    # int("abc") raises ValueError, which counts as a rejection
    return int(value)


class OrderSkill(Skill):
    """Pizza order: two required parameters, optional list and nested parameters."""

    def __init__(self):
        super().__init__()
        self.reactions = []
        self.handlers.add("react_quantity", self.react_quantity)
        self.required_parameter = {
            "pizza": {
                "message": {"type": "text", "text": "Which pizza?"},
                "parser": {"type": "list", "policy": {"value": ["margherita", "marinara"]}},
            },
            "quantity": {
                "message": {"type": "text", "text": "How many?"},
                "parser": _to_int,
                "reaction": self.react_quantity,
            },
        }
        self.optional_parameter = {
            "topping": {"list": {"order": "new"}},
            "address": {
                "message": "Where should we deliver?",
                "sub_parameter": {
                    "zipcode": {"message": "Zip code?", "parser": "number"},
                },
            },
        }

    def react_quantity(self, error, value, bot, event, context):
        self.reactions.append((error, value))
        if error:
            bot.collect("quantity")

    def finish(self, bot, event, context):
        bot.queue({"type": "text", "text": f"{context.confirmed['quantity']} x {context.confirmed['pizza']}"})


class EchoSkill(Skill):
    """Required parameters with and without a parser."""

    def __init__(self):
        super().__init__()
        self.seen = []
        self.required_parameter = {
            "param_a": {"message": "Say something"},
            "param_b": {
                "message": "Give me a number",
                "parser": _to_int,
            },
        }

    def reaction_param_a(self, error, value, bot, event, context):
        self.seen.append(("param_a", error, value))

    def reaction_param_b(self, error, value, bot, event, context):
        self.seen.append(("param_b", error, value))


class SwitchSkill(Skill):
    """Switches to the echo skill from a reaction or from finish."""

    def __init__(self):
        super().__init__()
        self.required_parameter = {
            "answer": {"message": "Switch now?"},
        }

    def reaction_answer(self, error, value, bot, event, context):
        if value == "now":
            return FlowSignal.switch_skill({"name": "echo", "parameters": {"param_a": "carried"}})

    def finish(self, bot, event, context):
        bot.switch_skill({"name": "echo"})


class PauseSkill(Skill):
    def __init__(self):
        super().__init__()
        self.required_parameter = {
            "command": {"message": "Command?"},
            "after": {"message": "After?"},
        }

    def reaction_command(self, error, value, bot, event, context):
        if value == "pause":
            bot.pause()
        elif value == "exit":
            bot.exit()
        elif value == "restart":
            bot.init()


class LoopSkill(Skill):
    """Switches to itself forever."""

    def begin(self, bot, event, context):
        bot.switch_skill({"name": "loop"})


@pytest.fixture
def skills():
    registry = SkillRegistry()
    registry.register("order", OrderSkill)
    registry.register("echo", EchoSkill)
    registry.register("switch", SwitchSkill)
    registry.register("pause", PauseSkill)
    registry.register("loop", LoopSkill)
    return registry


@pytest.fixture
def messenger():
    return RecordingMessenger()


@pytest.fixture
def make_bot(skills, messenger):
    def factory(skill_type="order", event=None, with_messenger=True):
        context = Context.launch(skills.create(skill_type))
        return Bot(
            context,
            event=event or {"session_id": "s1", "user_id": "u1"},
            messenger=messenger if with_messenger else None,
        )

    return factory
