"""
对话服务 (Chat Service)

为单个会话组装全部组件：状态、内容、序列来源、流程引擎。
提供开始对话与提交用户回复两个入口。
"""

import logging
import os
import random
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .config import Config
from .constants import MessageType
from .content import ContentResolver, ContentStore, FileContentStore, FormatterRegistry, TextTemplater
from .exceptions import EmptySequenceError, InvalidResponseError
from .helpers import stringify
from .loader import SequenceLoader, SequenceSource
from .models import Choice, FlowResult, Message
from .state import InMemoryStateStore, StateStore
from .flow import (
    ConditionEvaluator, DataActionProcessor, FlowOrchestrator, MessageRenderer,
    MessageWalker, RouteProcessor, SequenceManager,
)

logger = logging.getLogger(__name__)

EventListener = Callable[[str, Dict[str, Any]], None]


def resolve_data_dir(data_dir: Optional[str] = None) -> Path:
    """数据目录：显式参数 > 环境变量 > 默认值"""
    return Path(data_dir or os.environ.get(Config.DATA_DIR_ENV) or Config.DATA_DIR)


class ChatService:
    """
    单会话对话服务。

    使用方式：
        service = ChatService("data")
        result = service.start("welcome_seq")
        result = service.submit_user_response(result.interaction_message_id, "Alex")

    组件可以逐个注入 (测试时常用)，未注入的部分从数据目录构建。
    """

    def __init__(self, data_dir: Optional[str] = None, *,
                 sequence_source: Optional[SequenceSource] = None,
                 content_store: Optional[ContentStore] = None,
                 state: Optional[StateStore] = None,
                 formatters: Optional[FormatterRegistry] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 rng: Optional[random.Random] = None,
                 max_cycles: int = Config.MAX_PROCESSING_CYCLES):
        root = resolve_data_dir(data_dir)

        self.state = state if state is not None else InMemoryStateStore()
        self.source = sequence_source or SequenceLoader(str(root))
        store = content_store or FileContentStore(str(root / Config.CONTENT_SUBDIR))
        self.formatters = formatters or FormatterRegistry(str(root / Config.FORMATTERS_SUBDIR))

        self.resolver = ContentResolver(store, rng)
        self.templater = TextTemplater(self.state, self.formatters)
        self.sequences = SequenceManager(self.source, on_sequence_changed=self._sequence_changed)
        self.data_actions = DataActionProcessor(self.state, clock)
        self.data_actions.set_event_callback(self._dispatch_event)
        self.router = RouteProcessor(ConditionEvaluator(self.state), self.data_actions, self.sequences)
        self.renderer = MessageRenderer(self.resolver, self.templater)
        self.orchestrator = FlowOrchestrator(
            MessageWalker(), self.router, self.sequences, self.renderer, max_cycles=max_cycles,
        )

        self.transcript: List[Message] = []
        self.last_result: Optional[FlowResult] = None
        self._listeners: List[EventListener] = []
        self._sequence_listeners: List[Callable[[str], None]] = []

    # ============= 对外入口 =============

    def start(self, sequence_id: Optional[str] = None) -> FlowResult:
        """加载序列并从第一条消息开始处理"""
        sequence_id = sequence_id or Config.DEFAULT_SEQUENCE_ID
        logger.info(f"[ChatService] starting sequence '{sequence_id}'")

        self.sequences.load(sequence_id)
        first_id = self.sequences.first_message_id()
        if first_id is None:
            raise EmptySequenceError(sequence_id)
        return self._run(first_id)

    def submit_user_response(self, message_id: int, value: Any) -> FlowResult:
        """
        提交用户对交互消息的回复。

        Args:
            message_id: choice / textInput 消息 ID
            value: 选项序号、选项文本或选项值；文本输入为用户输入的字符串

        Returns:
            从后续消息继续处理得到的 FlowResult

        Raises:
            InvalidResponseError: 不是当前等待回复的消息、消息不可交互或选项无法匹配
        """
        awaited_id = self.last_result.interaction_message_id if self.last_result else None
        if awaited_id is None or not self.last_result.awaiting_interaction:
            raise InvalidResponseError(message_id, "no message is awaiting a response")
        if message_id != awaited_id:
            raise InvalidResponseError(message_id, f"message {awaited_id} is awaiting a response")

        message = self.sequences.get_message(message_id)
        if message is None:
            raise InvalidResponseError(message_id, f"not found in '{self.sequences.current_sequence_id}'")
        if not message.is_interactive:
            raise InvalidResponseError(message_id, f"{message.type.value} messages do not accept responses")

        match message.type:
            case MessageType.CHOICE:
                choice = self._match_choice(message, value)
                self._store_response(message, choice.stored_value)
                self._record_user_text(message, choice.text)
                next_id = self._choice_continuation(message, choice)
            case _:
                self._store_response(message, value)
                self._record_user_text(message, stringify(value))
                next_id = self._message_continuation(message)

        return self._run(next_id)

    def on_event(self, listener: EventListener):
        """订阅 trigger 数据操作发出的事件"""
        self._listeners.append(listener)

    def on_sequence_changed(self, listener: Callable[[str], None]):
        self._sequence_listeners.append(listener)

    def available_sequences(self) -> List[str]:
        return self.source.available_sequences()

    def get_state_info(self) -> Dict[str, Any]:
        """会话快照 (调试 / API 使用)"""
        info = self.sequences.get_state_info()
        info.update({
            "awaitingInteraction": bool(self.last_result and self.last_result.awaiting_interaction),
            "interactionMessageId": self.last_result.interaction_message_id if self.last_result else None,
            "complete": bool(self.last_result and self.last_result.complete),
            "state": self.state.snapshot(),
        })
        return info

    # ============= 内部实现 =============

    def _run(self, start_id: int) -> FlowResult:
        result = self.orchestrator.process_from(start_id)
        self.transcript.extend(result.messages)
        self.last_result = result
        return result

    def _match_choice(self, message: Message, value: Any) -> Choice:
        choices = message.choices or []

        # 先按文本匹配 (同时接受原文与渲染后的文本)，标签为 "1"/"2" 的选项不会被当成序号
        rendered = self.renderer.render_message(message).choices or []
        wanted = stringify(value)
        for choice, shown in zip(choices, rendered):
            if wanted in (choice.text, shown.text, stringify(choice.stored_value)):
                return choice

        if isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value < len(choices):
                return choices[value]
            raise InvalidResponseError(message.id, f"choice index {value} out of range")
        raise InvalidResponseError(message.id, f"no choice matches {value!r}")

    def _store_response(self, message: Message, value: Any):
        if message.store_key:
            self.state.set(message.store_key, value)

    def _record_user_text(self, message: Message, text: str):
        self.transcript.append(Message(id=message.id, type=MessageType.TEXT, text=text,
                                       sender=Config.USER_SENDER, delay=0))

    def _choice_continuation(self, message: Message, choice: Choice) -> int:
        if choice.sequence_id is not None:
            return self._enter_sequence(choice.sequence_id)
        if choice.next_message_id is not None:
            return choice.next_message_id
        return self._message_continuation(message)

    def _message_continuation(self, message: Message) -> int:
        if message.sequence_id is not None:
            return self._enter_sequence(message.sequence_id)
        if message.next_message_id is not None:
            return message.next_message_id
        return message.id + 1

    def _enter_sequence(self, sequence_id: str) -> int:
        self.sequences.load(sequence_id)
        first_id = self.sequences.first_message_id()
        if first_id is None:
            raise EmptySequenceError(sequence_id)
        return first_id

    def _dispatch_event(self, event: str, data: Dict[str, Any]):
        logger.info(f"[ChatService] event '{event}' {data}")
        for listener in list(self._listeners):
            listener(event, data)

    def _sequence_changed(self, sequence_id: str):
        for listener in list(self._sequence_listeners):
            listener(sequence_id)
