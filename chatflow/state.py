"""
持久化状态 (Persisted State)
扁平的点号命名空间键值存储，例如 user.name / task.activeDays
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class StateStore(ABC):
    """状态存储接口。

    引擎只依赖 get/set 两个操作；具体持久化方式由调用方决定。
    写入 None 等价于删除该键。
    """

    @abstractmethod
    def get(self, key: str) -> Any:
        """读取键值，不存在时返回 None"""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """写入键值 (last-write-wins)"""

    @abstractmethod
    def has(self, key: str) -> bool:
        """键是否存在"""

    def delete(self, key: str) -> None:
        self.set(key, None)

    def snapshot(self) -> Dict[str, Any]:
        """导出当前全部状态 (调试用)"""
        return {}


class InMemoryStateStore(StateStore):
    """内存状态存储，每个会话/测试各持有一份"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any:
        # 返回副本，防止调用方原地修改列表
        return copy.deepcopy(self._values.get(key))

    def set(self, key: str, value: Any) -> None:
        if value is None:
            logger.debug(f"[State] remove '{key}'")
            self._values.pop(key, None)
            return
        logger.debug(f"[State] set '{key}' = {value!r}")
        self._values[key] = copy.deepcopy(value)

    def has(self, key: str) -> bool:
        return key in self._values

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._values)

    def clear(self) -> None:
        self._values.clear()
