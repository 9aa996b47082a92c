"""
流程编排器 (Flow Orchestrator)

把 Walker → RouteProcessor → SequenceManager → Renderer 串成一个顺序循环。
不使用递归：每一轮遍历结束后，根据停止原因决定下一轮的起点。
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..config import Config
from ..exceptions import EmptySequenceError, WalkDepthExceededError
from ..models import FlowResult, Message
from .renderer import MessageRenderer
from .route_processor import RouteProcessor
from .sequence_manager import SequenceManager
from .walker import MessageWalker

logger = logging.getLogger(__name__)


@dataclass
class _BatchResult:
    """一轮遍历中特殊消息的处理结果"""
    display_messages: List[Message] = field(default_factory=list)
    continue_from_id: Optional[int] = None


class FlowOrchestrator:
    """流程编排器

    每一轮 (cycle)：
    1. 从 current_id 遍历，深度超限直接抛出
    2. autoroute 交给路由处理器得到后续 ID，dataAction 执行后丢弃，其余消息累积
    3. 按停止原因分支：等待交互 / 切换序列 / 沿路由继续 / 自然结束

    所有累积的消息在返回前统一渲染一次。
    """

    def __init__(self, walker: MessageWalker, router: RouteProcessor,
                 sequences: SequenceManager, renderer: MessageRenderer,
                 max_cycles: int = Config.MAX_PROCESSING_CYCLES):
        self.walker = walker
        self.router = router
        self.sequences = sequences
        self.renderer = renderer
        self.max_cycles = max_cycles

    def process_from(self, start_id: int) -> FlowResult:
        """
        从指定消息开始处理流程。

        Args:
            start_id: 当前活动序列中的起始消息 ID

        Returns:
            FlowResult: 渲染后的消息与后续状态

        Raises:
            WalkDepthExceededError: 单次遍历超过最大深度
            SequenceLoadError: 切换序列失败
            EmptySequenceError: 切换到的序列没有消息
        """
        logger.info(f"[Orchestrator] processing from message {start_id} "
                    f"in '{self.sequences.current_sequence_id}'")

        current_id = start_id
        accumulated: List[Message] = []

        for cycle in range(1, self.max_cycles + 1):
            logger.debug(f"[Orchestrator] cycle {cycle}, starting from {current_id}")

            walk = self.walker.walk_from(current_id, self.sequences)
            if not walk.is_valid:
                raise WalkDepthExceededError(current_id, walk.walk_depth)

            batch = self._process_special_messages(walk.messages)
            accumulated.extend(batch.display_messages)

            if walk.requires_user_interaction:
                logger.info(f"[Orchestrator] awaiting interaction at message {walk.stop_message_id}")
                return FlowResult.awaiting(
                    self.renderer.render(accumulated),
                    walk.stop_message_id,
                    self.sequences.current_sequence_id,
                )

            if walk.requires_sequence_transition:
                current_id = self._enter_sequence(walk.target_sequence_id)
                continue

            if batch.continue_from_id is not None:
                current_id = batch.continue_from_id
                continue

            logger.info(f"[Orchestrator] flow completed after {cycle} cycles, "
                        f"{len(accumulated)} messages collected")
            return FlowResult.completed(
                self.renderer.render(accumulated),
                self.sequences.current_sequence_id,
            )

        logger.warning(f"[Orchestrator] reached the limit of {self.max_cycles} cycles, "
                       f"returning {len(accumulated)} messages as incomplete")
        return FlowResult.truncated(
            self.renderer.render(accumulated),
            self.sequences.current_sequence_id,
        )

    def _process_special_messages(self, messages: List[Message]) -> _BatchResult:
        result = _BatchResult()
        for message in messages:
            if message.is_autoroute:
                result.continue_from_id = self.router.process_auto_route(message)
            elif message.is_data_action:
                self.router.process_data_action(message)
            else:
                result.display_messages.append(message)
        return result

    def _enter_sequence(self, sequence_id: str) -> int:
        logger.info(f"[Orchestrator] crossing into sequence '{sequence_id}'")
        self.sequences.load(sequence_id)
        first_id = self.sequences.first_message_id()
        if first_id is None:
            raise EmptySequenceError(sequence_id)
        return first_id
