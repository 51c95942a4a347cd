"""
Toolkit handed to skills.

``Bot`` wires the parameter registry, parser and reaction dispatchers,
confirmation store, change log and flow controller around one conversation
context and exposes them under the names skills call.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from skillbot.core.audit import AuditLog
from skillbot.core.change_log import ChangeLog
from skillbot.core.confirmation import ConfirmationStore
from skillbot.core.context import Context
from skillbot.core.errors import ContractViolation, ParameterNotFound
from skillbot.core.flow import FlowController, FlowSignal
from skillbot.core.parameters.registry import ParameterDefinition, ParameterRegistry, ParameterType
from skillbot.core.parsing.builtin import BuiltinParserRegistry, default_builtin_parsers
from skillbot.core.parsing.dispatcher import ParserDispatcher
from skillbot.core.reaction import ReactionDispatcher
from skillbot.core.skill import invoke

logger = logging.getLogger(__name__)

PUSH_EVENT_TYPE = "skillbot:push"


class Bot:
    def __init__(
        self,
        context: Context,
        event: Optional[Dict[str, Any]] = None,
        messenger=None,
        builtin_parser: Optional[BuiltinParserRegistry] = None,
        audit: Optional[AuditLog] = None,
        language: Optional[str] = None,
    ) -> None:
        self.context = context
        self.event = event or {}
        self.messenger = messenger
        self.type = getattr(messenger, "type", None)
        self.language = language
        self.builtin_parser = builtin_parser or default_builtin_parsers()
        self.audit = audit or AuditLog()

        self.parameters = ParameterRegistry(context)
        self.change_log = ChangeLog(context)
        self.flow = FlowController(context)
        self.parsers = ParserDispatcher(self)
        self.reactions = ReactionDispatcher(self)
        self.store = ConfirmationStore(self)

    # Parameters

    def check_parameter_type(self, param_name: str) -> ParameterType:
        return self.parameters.classify(param_name)

    def get_parameter(self, param_name: str) -> ParameterDefinition:
        return self.parameters.resolve(param_name)

    async def apply_parameter(self, param_name: str, param_value: Any, parse: bool = False, react: bool = True) -> FlowSignal:
        """Apply a value to a parameter, optionally running its parser and reaction."""
        return await self.store.apply(param_name, param_value, parse=parse, react=react)

    async def parse_parameter(self, param_name: str, param_value: Any, strict: bool = False) -> Any:
        return await self.parsers.parse(param_name, param_value, strict=strict)

    def add_parameter(self, param_name: str, param_value: Any, is_change: bool = False) -> None:
        self.store.commit(param_name, param_value, is_change=is_change)

    async def react(self, error: Optional[BaseException], param_name: str, param_value: Any) -> FlowSignal:
        return await self.reactions.react(error, param_name, param_value)

    def collect(self, arg: Union[str, Mapping[str, dict]], dedup: bool = True) -> str:
        """Make the given parameter the next one to be collected."""
        return self.store.enqueue(arg, dedup=dedup)

    def dig(self, param_name: str) -> None:
        """Collect the sub-parameters of the given parameter before the parameter itself."""
        self.store.dig(param_name)

    def surface(self) -> Dict[str, Any]:
        return self.store.surface()

    def change_message(self, param_name: str, message: Any) -> None:
        """Change the message used to collect the parameter, for the rest of the conversation."""
        param_type = self.check_parameter_type(param_name)
        if param_type == ParameterType.NOT_APPLICABLE:
            raise ParameterNotFound("The parameter to change message not found.")

        if param_type == ParameterType.SUB:
            # Sub-parameters are stored inside their parent definition
            parent = self.context.parent_parameter
            self.change_log.change(parent["type"], parent["name"], {
                "sub_parameter": {param_name: {"message": message}},
            })
            return

        self.change_log.change(param_type, param_name, {"message": message})

    def change_message_to_confirm(self, param_name: str, message: Any) -> None:
        self.change_message(param_name, message)

    # Flow control

    def pause(self) -> None:
        self.flow.pause()

    def exit(self) -> None:
        self.flow.exit()

    def init(self) -> None:
        self.flow.init()

    def switch_skill(self, intent: Dict[str, Any]) -> None:
        """Switch to another skill. The rest of the current flow is skipped."""
        self.flow.switch_skill(intent)

    # Messages

    def queue(self, messages: Union[Any, List[Any]]) -> None:
        if isinstance(messages, list):
            self.context.message_queue.extend(messages)
        else:
            self.context.message_queue.append(messages)

    async def reply_to_collect(self, messages: Union[Any, List[Any], None] = None) -> Any:
        return await self.reply(messages, to_collect=True)

    async def reply(self, messages: Union[Any, List[Any], None] = None, to_collect: bool = False) -> Any:
        """Send queued messages (plus ``messages``) as the reply to the current event."""
        if messages:
            self.queue(messages)

        messenger = self._require_messenger()
        compiled = await self._compile(self.context.message_queue)

        if self.event.get("type") == PUSH_EVENT_TYPE:
            to = self.event.get("to") or {}
            recipient_id = to.get(f"{to.get('type')}Id")
            response = await invoke(messenger.send, self.event, recipient_id, compiled)
        elif to_collect:
            response = await invoke(messenger.reply_to_collect, self.event, compiled)
        else:
            response = await invoke(messenger.reply, self.event, compiled)

        self._record_outgoing(compiled)
        self.context.message_queue = []
        return response

    async def send(self, recipient_id: str, messages: Union[Any, List[Any]]) -> Any:
        messenger = self._require_messenger()
        compiled = await self._compile(messages if isinstance(messages, list) else [messages])
        response = await invoke(messenger.send, self.event, recipient_id, compiled)
        self._record_outgoing(compiled)
        return response

    async def multicast(self, recipient_ids: List[str], messages: Union[Any, List[Any]]) -> Any:
        messenger = self._require_messenger()
        compiled = await self._compile(messages if isinstance(messages, list) else [messages])
        response = await invoke(messenger.multicast, self.event, recipient_ids, compiled)
        self._record_outgoing(compiled)
        return response

    async def compile_message(self, message: Any, format: Optional[str] = None) -> Any:
        messenger = self._require_messenger()
        return await invoke(messenger.compile_message, message, format or self.type)

    def _require_messenger(self):
        if self.messenger is None:
            raise ContractViolation("No messenger configured for this bot.")
        return self.messenger

    async def _compile(self, messages: List[Any]) -> List[Any]:
        return [await self.compile_message(message) for message in messages]

    def _record_outgoing(self, compiled: List[Any]) -> None:
        skill_type = self.context.skill.type
        for message in compiled:
            self.context.previous.message.insert(0, {"from": "bot", "message": message, "skill": skill_type})
            self.audit.chat(self.event.get("user_id"), self.context.chat_id, skill_type, "bot", message)
