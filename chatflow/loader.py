"""
序列加载器 (Loader)
负责从 JSON / YAML 文件读取并解析为 Pydantic 序列模型 (Sequence)
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from .config import Config
from .exceptions import SequenceLoadError
from .models import Sequence

logger = logging.getLogger(__name__)


class SequenceSource(ABC):
    """序列资源来源接口：load(sequence_id) -> Sequence，失败抛出 SequenceLoadError"""

    @abstractmethod
    def load(self, sequence_id: str) -> Sequence:
        ...

    def available_sequences(self) -> List[str]:
        return []


class SequenceLoader(SequenceSource):
    """从数据目录加载序列文件"""

    def __init__(self, data_dir: str = Config.DATA_DIR) -> None:
        """
        初始化序列加载器

        Args:
            data_dir: 数据根目录，序列文件位于 <data_dir>/sequences/
        """
        self.data_dir: Path = Path(data_dir)
        self.sequences_dir: Path = self.data_dir / Config.SEQUENCES_SUBDIR

    def load(self, sequence_id: str) -> Sequence:
        """加载并校验一个序列。

        Args:
            sequence_id: 序列 ID (文件名去掉扩展名)

        Returns:
            解析后的 Sequence

        Raises:
            SequenceLoadError: 文件不存在、无法解析或校验失败
        """
        if not is_plain_sequence_id(sequence_id):
            raise SequenceLoadError(sequence_id, "sequence id must be a plain file name")

        file_path = self._find_file(sequence_id)
        if file_path is None:
            raise SequenceLoadError(sequence_id, f"no sequence file in {self.sequences_dir}")

        try:
            raw_data = self._read_file(file_path)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise SequenceLoadError(sequence_id, f"cannot read {file_path.name}: {e}") from e

        return parse_sequence(sequence_id, raw_data)

    def available_sequences(self) -> List[str]:
        """列出数据目录中所有序列 ID"""
        if not self.sequences_dir.is_dir():
            return []
        return sorted(
            path.stem for path in self.sequences_dir.iterdir()
            if path.suffix in Config.SEQUENCE_EXTENSIONS
        )

    def _find_file(self, sequence_id: str) -> Optional[Path]:
        root = self.sequences_dir.resolve()
        for extension in Config.SEQUENCE_EXTENSIONS:
            candidate = self.sequences_dir / f"{sequence_id}{extension}"
            # 符号链接也不能指向序列目录之外
            if candidate.is_file() and candidate.resolve().parent == root:
                return candidate
        return None

    @staticmethod
    def _read_file(file_path: Path) -> Any:
        with open(file_path, 'r', encoding='utf-8') as f:
            if file_path.suffix == ".json":
                return json.load(f)
            return yaml.safe_load(f)


class InMemorySequenceSource(SequenceSource):
    """内存中的序列来源 (测试与嵌入式使用)"""

    def __init__(self, sequences: Optional[Dict[str, Any]] = None) -> None:
        self._sequences: Dict[str, Any] = {}
        for sequence_id, sequence in (sequences or {}).items():
            self.add(sequence_id, sequence)

    def add(self, sequence_id: str, sequence: Any) -> None:
        """注册序列，可以是 Sequence 实例或原始字典"""
        self._sequences[sequence_id] = sequence

    def load(self, sequence_id: str) -> Sequence:
        if sequence_id not in self._sequences:
            raise SequenceLoadError(sequence_id, "unknown sequence")
        raw = self._sequences[sequence_id]
        if isinstance(raw, Sequence):
            return raw
        return parse_sequence(sequence_id, raw)

    def available_sequences(self) -> List[str]:
        return sorted(self._sequences)


def is_plain_sequence_id(sequence_id: Any) -> bool:
    """序列 ID 只能是单个文件名：不含路径分隔符，不是 . / .."""
    if not isinstance(sequence_id, str) or not sequence_id.strip():
        return False
    if sequence_id in (".", "..") or "/" in sequence_id or "\\" in sequence_id:
        return False
    return Path(sequence_id).name == sequence_id


def parse_sequence(sequence_id: str, raw_data: Any) -> Sequence:
    """把原始数据校验为 Sequence，缺少 sequenceId 时使用文件名"""
    if not isinstance(raw_data, dict):
        raise SequenceLoadError(sequence_id, "sequence document must be a mapping")

    if "sequenceId" not in raw_data and "id" not in raw_data:
        raw_data = {**raw_data, "sequenceId": sequence_id}

    try:
        sequence = Sequence.model_validate(raw_data)
    except ValidationError as e:
        raise SequenceLoadError(sequence_id, str(e)) from e

    logger.debug(f"[Loader] parsed sequence '{sequence.id}' with {len(sequence.messages)} messages")
    return sequence
