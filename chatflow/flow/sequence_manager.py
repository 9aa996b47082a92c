"""
序列管理器 (Sequence Store)

职责：持有当前唯一的活动序列，提供按 ID 查询消息。
加载是原子的：要么新序列完整替换旧序列，要么抛出异常且旧序列保持可用。
"""

import logging
from typing import Any, Callable, Dict, Optional

from ..exceptions import SequenceLoadError
from ..loader import SequenceSource
from ..models import Message, Sequence

logger = logging.getLogger(__name__)


class SequenceManager:
    """活动序列持有者，同时实现 MessageProvider 接口供遍历器使用"""

    def __init__(self, source: SequenceSource,
                 on_sequence_changed: Optional[Callable[[str], None]] = None):
        self.source = source
        self._sequence: Optional[Sequence] = None
        self._on_sequence_changed = on_sequence_changed

    @property
    def current_sequence(self) -> Optional[Sequence]:
        return self._sequence

    @property
    def current_sequence_id(self) -> Optional[str]:
        return self._sequence.id if self._sequence else None

    def set_on_sequence_changed(self, callback: Optional[Callable[[str], None]]):
        self._on_sequence_changed = callback

    def load(self, sequence_id: str) -> Sequence:
        """
        加载并激活一个序列。

        Args:
            sequence_id: 目标序列 ID

        Returns:
            新的活动序列

        Raises:
            SequenceLoadError: 加载失败，此时旧序列仍然有效
        """
        logger.debug(f"[Sequence] loading '{sequence_id}'")
        try:
            sequence = self.source.load(sequence_id)
        except SequenceLoadError:
            logger.error(f"[Sequence] failed to load '{sequence_id}', keeping '{self.current_sequence_id}'")
            raise
        except Exception as e:
            logger.error(f"[Sequence] failed to load '{sequence_id}', keeping '{self.current_sequence_id}'")
            raise SequenceLoadError(sequence_id, str(e)) from e

        # 单次赋值完成替换，不会出现半切换状态
        self._sequence = sequence
        logger.info(f"[Sequence] active sequence '{sequence.id}' ({len(sequence.messages)} messages)")

        if self._on_sequence_changed is not None:
            try:
                self._on_sequence_changed(sequence.id)
            except Exception as e:
                logger.warning(f"[Sequence] sequence change callback failed: {e}")

        return sequence

    def has_message(self, message_id: int) -> bool:
        return self._sequence is not None and self._sequence.has_message(message_id)

    def get_message(self, message_id: int) -> Optional[Message]:
        if self._sequence is None:
            return None
        return self._sequence.get_message(message_id)

    def first_message_id(self) -> Optional[int]:
        """当前序列中第一条消息的 ID (按编写顺序)"""
        if self._sequence is None:
            return None
        return self._sequence.first_message_id

    def get_state_info(self) -> Dict[str, Any]:
        """调试信息"""
        sequence = self._sequence
        return {
            "sequenceId": sequence.id if sequence else None,
            "sequenceName": sequence.name if sequence else None,
            "messageCount": len(sequence.messages) if sequence else 0,
            "isLoaded": sequence is not None,
        }
