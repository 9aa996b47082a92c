"""
消息遍历器 (Message Walker)

职责：沿着当前序列的消息图前进，直到遇到自然停止点。
纯函数：除了传入的消息查询能力之外没有任何 I/O 或状态修改。
"""

import logging
from typing import Optional, Protocol

from ..config import Config
from ..constants import WalkStopReason
from ..models import Message, WalkResult

logger = logging.getLogger(__name__)


class MessageProvider(Protocol):
    """遍历器所需的消息查询能力"""

    def has_message(self, message_id: int) -> bool: ...

    def get_message(self, message_id: int) -> Optional[Message]: ...


class MessageWalker:
    """
    消息遍历器。

    停止条件（严格有序）：
    1. 消息不存在 → END_OF_CHAIN
    2. choice / textInput → INTERACTIVE_MESSAGE (需要用户输入)
    3. autoroute → END_OF_CHAIN，并记录 stop_message_id (路由交给调用方解析)
    4. 消息带 sequenceId → SEQUENCE_BOUNDARY
    5. 超过最大深度 → MAX_DEPTH_REACHED

    dataAction 消息会被收集但不会中断遍历；autoroute 则会中断。
    这种不对称是有意保留的行为。
    """

    def __init__(self, max_depth: int = Config.MAX_WALK_DEPTH):
        self.max_depth = max_depth

    def walk_from(self, start_id: int, provider: MessageProvider) -> WalkResult:
        """
        从指定消息开始遍历。

        Args:
            start_id: 起始消息 ID
            provider: 当前序列的消息查询接口

        Returns:
            WalkResult: 收集到的原始消息与停止原因
        """
        messages = []
        current_id = start_id

        for depth in range(1, self.max_depth + 1):
            if not provider.has_message(current_id):
                logger.debug(f"[Walker] message {current_id} not found, chain ended after {depth - 1} steps")
                return WalkResult(messages, WalkStopReason.END_OF_CHAIN, walk_depth=depth)

            message = provider.get_message(current_id)
            messages.append(message)

            if message.is_interactive:
                return WalkResult(
                    messages, WalkStopReason.INTERACTIVE_MESSAGE,
                    stop_message_id=current_id, walk_depth=depth,
                )

            if message.is_autoroute:
                return WalkResult(
                    messages, WalkStopReason.END_OF_CHAIN,
                    stop_message_id=current_id, walk_depth=depth,
                )

            if message.sequence_id is not None:
                return WalkResult(
                    messages, WalkStopReason.SEQUENCE_BOUNDARY,
                    stop_message_id=current_id,
                    target_sequence_id=message.sequence_id,
                    walk_depth=depth,
                )

            current_id = self._next_id(message)

        logger.warning(f"[Walker] walk from {start_id} hit maximum depth of {self.max_depth} messages")
        return WalkResult(messages, WalkStopReason.MAX_DEPTH_REACHED, walk_depth=self.max_depth)

    @staticmethod
    def _next_id(message: Message) -> int:
        # 显式 nextMessageId 优先，否则顺延到 id + 1
        if message.next_message_id is not None:
            return message.next_message_id
        return message.id + 1
