"""
路由处理器 (Route Processor)

把 autoroute / dataAction 消息解析为后续消息 ID。
"""

import logging
from typing import Optional

from ..exceptions import EmptySequenceError
from ..models import Message, RouteCondition
from .conditions import ConditionEvaluator
from .data_actions import DataActionProcessor
from .sequence_manager import SequenceManager

logger = logging.getLogger(__name__)


class RouteProcessor:
    """
    路由处理器。

    autoroute 求值顺序：
    1. 第一轮：按编写顺序求值所有非默认分支，第一个为真的分支胜出
    2. 第二轮：没有条件分支匹配时，使用第一个默认分支
    3. 都没有时，使用消息自身的 nextMessageId
    """

    def __init__(self, conditions: ConditionEvaluator,
                 data_actions: DataActionProcessor,
                 sequences: SequenceManager):
        self.conditions = conditions
        self.data_actions = data_actions
        self.sequences = sequences

    def process_auto_route(self, message: Message) -> Optional[int]:
        """
        解析 autoroute 消息。

        Args:
            message: autoroute 消息

        Returns:
            后续消息 ID；可能为 None (流程自然结束)

        Raises:
            SequenceLoadError: 分支指向的序列加载失败
        """
        routes = message.routes or []
        if not routes:
            logger.warning(f"[Router] autoroute {message.id} has no routes, using nextMessageId")
            return message.next_message_id

        for route in routes:
            if route.is_default or not route.condition:
                continue
            if self.conditions.evaluate_compound(route.condition):
                logger.debug(f"[Router] message {message.id}: route matched '{route.condition}'")
                return self._execute_route(route)

        for route in routes:
            if route.is_default:
                logger.debug(f"[Router] message {message.id}: using default route")
                return self._execute_route(route)

        logger.warning(f"[Router] message {message.id}: no route matched, using nextMessageId")
        return message.next_message_id

    def process_data_action(self, message: Message) -> Optional[int]:
        """
        执行 dataAction 消息中的全部操作。

        单个操作失败只记录日志，不影响后续操作与整体流程。

        Returns:
            消息自身的 nextMessageId
        """
        actions = message.data_actions or []
        for action in actions:
            try:
                self.data_actions.process_action(action)
            except Exception as e:
                logger.error(f"[Router] message {message.id}: data action {action.type.value} "
                             f"on '{action.key}' failed: {e}")
        return message.next_message_id

    def _execute_route(self, route: RouteCondition) -> Optional[int]:
        if route.next_message_id is not None:
            return route.next_message_id

        self.sequences.load(route.sequence_id)
        first_id = self.sequences.first_message_id()
        if first_id is None:
            raise EmptySequenceError(route.sequence_id)
        return first_id
