"""
Data Action Processor
按顺序把数据操作应用到持久化状态上
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..constants import DataActionType, TemplateFunction
from ..exceptions import DataActionError
from ..helpers import to_number
from ..models import DataAction
from ..state import StateStore
from .active_dates import ActiveDateCalculator, format_date

logger = logging.getLogger(__name__)

EventCallback = Callable[[str, Dict[str, Any]], None]

DEFAULT_STEP = 1


def _zero_like(current: Any) -> Any:
    """与当前值类型对应的零值"""
    if isinstance(current, bool):
        return False
    if isinstance(current, int):
        return 0
    if isinstance(current, float):
        return 0.0
    if isinstance(current, str):
        return ""
    if isinstance(current, list):
        return []
    if isinstance(current, dict):
        return {}
    return 0


def _apply_numeric_operation(current_value: float, op: DataActionType, step: float) -> float | None:
    """应用数值运算操作。

    Args:
        current_value: 当前值
        op: 操作类型
        step: 步长

    Returns:
        运算后的新值，若操作不匹配则返回 None
    """
    match op:
        case DataActionType.INCREMENT: return current_value + step
        case DataActionType.DECREMENT: return current_value - step
        case _: return None


class DataActionProcessor:
    """数据操作处理器"""

    def __init__(self, state: StateStore,
                 clock: Optional[Callable[[], datetime]] = None,
                 date_calculator: Optional[ActiveDateCalculator] = None):
        self.state = state
        self.dates = date_calculator or ActiveDateCalculator(state, clock)
        self._event_callback: Optional[EventCallback] = None

    def set_event_callback(self, callback: Optional[EventCallback]):
        """注册 trigger 操作的事件回调"""
        self._event_callback = callback

    def process_actions(self, actions: List[DataAction]):
        """按顺序执行全部操作，遇到失败立即抛出"""
        for action in actions:
            self.process_action(action)

    def process_action(self, action: DataAction):
        """
        执行单个操作。

        Raises:
            DataActionError: 操作无法执行
        """
        logger.debug(f"[DataAction] {action.type.value} '{action.key}' value={action.value!r}")

        match action.type:
            case DataActionType.SET:
                self.state.set(action.key, self.resolve_value(action.value))
            case DataActionType.INCREMENT | DataActionType.DECREMENT:
                self._step(action)
            case DataActionType.RESET:
                self._reset(action)
            case DataActionType.APPEND:
                self._append(action)
            case DataActionType.REMOVE:
                self._remove(action)
            case DataActionType.TRIGGER:
                self._trigger(action)
            case _:
                raise DataActionError(action, "unsupported action type")

    def resolve_value(self, value: Any) -> Any:
        """解析模板函数 (TODAY_DATE 等)，其余值原样返回"""
        if not isinstance(value, str):
            return value

        match value.strip():
            case TemplateFunction.TODAY_DATE.value:
                return format_date(self.dates.today())
            case TemplateFunction.NEXT_ACTIVE_DATE.value:
                return format_date(self.dates.next_active_date())
            case TemplateFunction.NEXT_ACTIVE_WEEKDAY.value:
                return self.dates.next_active_weekday()
            case TemplateFunction.FIRST_ACTIVE_DATE.value:
                return format_date(self.dates.first_active_date())
            case _:
                return value

    # ============= 具体操作 =============

    def _step(self, action: DataAction):
        current = to_number(self.state.get(action.key))
        if current is None:
            current = 0

        step = DEFAULT_STEP
        if action.value is not None:
            step = to_number(action.value)
            if step is None:
                raise DataActionError(action, f"step {action.value!r} is not numeric")

        self.state.set(action.key, _apply_numeric_operation(current, action.type, step))

    def _reset(self, action: DataAction):
        if action.value is not None:
            self.state.set(action.key, self.resolve_value(action.value))
            return
        self.state.set(action.key, _zero_like(self.state.get(action.key)))

    def _append(self, action: DataAction):
        items = self._current_list(action)
        items.append(self._resolve_element(action.value))
        self.state.set(action.key, items)

    def _remove(self, action: DataAction):
        target = self._resolve_element(action.value)
        items = [item for item in self._current_list(action) if item != target]
        self.state.set(action.key, items)

    def _trigger(self, action: DataAction):
        if not action.event:
            logger.debug(f"[DataAction] trigger on '{action.key}' without event ignored")
            return
        if self._event_callback is None:
            logger.debug(f"[DataAction] no event callback for '{action.event}'")
            return
        try:
            self._event_callback(action.event, dict(action.data))
        except Exception as e:
            logger.error(f"[DataAction] event callback for '{action.event}' failed: {e}")

    def _current_list(self, action: DataAction) -> List[Any]:
        current = self.state.get(action.key)
        if current is None:
            return []
        if not isinstance(current, list):
            raise DataActionError(action, f"'{action.key}' holds {type(current).__name__}, not a list")
        return current

    def _resolve_element(self, value: Any) -> Any:
        # {namespace.key} 读取状态中的原始值 (保留类型)
        if isinstance(value, str):
            text = value.strip()
            if text.startswith('{') and text.endswith('}') and '.' in text:
                return self.state.get(text[1:-1].strip())
        return self.resolve_value(value)
