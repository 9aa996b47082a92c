"""
值格式化器 (Formatter)

模板 {key:formatter|default} 中的 formatter 部分：
- 基础名对应 <data_dir>/formatters/<name>.json 查表 (值 -> 展示文本)
- 标志 join：列表逐项查表后拼接为 "A, B and C"
- 大小写标志：upper / lower / proper / sentence
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..helpers import parse_int_list, stringify

logger = logging.getLogger(__name__)

CASE_FLAGS = ("upper", "lower", "proper", "sentence")
JOIN_FLAG = "join"


def apply_case(text: str, flag: str) -> str:
    """应用大小写标志，未知标志原样返回"""
    match flag:
        case "upper": return text.upper()
        case "lower": return text.lower()
        case "proper": return " ".join(word[:1].upper() + word[1:].lower() for word in text.split(" "))
        case "sentence": return text[:1].upper() + text[1:].lower()
        case _: return text


def join_with_grammar(items: List[str]) -> str:
    """[] -> "", [A] -> "A", [A, B] -> "A and B", [A, B, C] -> "A, B and C" """
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    return f"{', '.join(items[:-1])} and {items[-1]}"


class FormatterRegistry:
    """格式化查表注册中心 (懒加载并缓存)"""

    def __init__(self, formatters_dir: Optional[str] = None, tables: Optional[Dict[str, Dict[str, Any]]] = None):
        self.formatters_dir = Path(formatters_dir) if formatters_dir else None
        self._tables: Dict[str, Dict[str, str]] = {}
        for name, table in (tables or {}).items():
            self.register(name, table)

    def register(self, name: str, table: Dict[str, Any]):
        self._tables[name] = {str(k): str(v) for k, v in table.items()}

    def get_table(self, name: str) -> Optional[Dict[str, str]]:
        if name in self._tables:
            return self._tables[name]
        if self.formatters_dir is None:
            return None

        path = self.formatters_dir / f"{name}.json"
        if not path.is_file():
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"[Formatter] cannot load {path}: {e}")
            return None
        if not isinstance(data, dict):
            return None

        self.register(name, data)
        return self._tables[name]

    def format(self, spec: str, value: Any) -> Optional[str]:
        """
        按格式说明格式化值。

        Args:
            spec: 例如 "activeDays:join" 或 "upper"
            value: 状态中的原始值

        Returns:
            格式化后的文本；查表失败返回 None
        """
        name, flags = parse_spec(spec)
        case_flags = [flag for flag in flags if flag in CASE_FLAGS]

        if name is None:
            text = stringify(value)
        elif JOIN_FLAG in flags:
            text = self._format_joined(name, value)
        else:
            table = self.get_table(name)
            text = table.get(stringify(value)) if table else None

        if text is None:
            return None
        for flag in case_flags:
            text = apply_case(text, flag)
        return text

    def format_fallback(self, spec: str, fallback: str) -> str:
        """默认值只应用大小写标志"""
        _, flags = parse_spec(spec)
        for flag in flags:
            if flag in CASE_FLAGS:
                fallback = apply_case(fallback, flag)
        return fallback

    def _format_joined(self, name: str, value: Any) -> Optional[str]:
        table = self.get_table(name)
        if table is None:
            return None

        # 整体映射优先，例如 "1,2,3,4,5" -> "weekdays"
        direct = table.get(stringify(value).replace(" ", ""))
        if direct is not None:
            return direct

        items = _as_list(value)
        if items is None:
            return None
        formatted = [table[stringify(item)] for item in items if stringify(item) in table]
        return join_with_grammar(formatted)

    def clear(self):
        self._tables.clear()


def parse_spec(spec: str) -> tuple[Optional[str], List[str]]:
    """拆分格式说明为 (基础表名, 标志列表)，基础名本身是大小写标志时表名为 None"""
    parts = [part.strip() for part in spec.split(':') if part.strip()]
    if not parts:
        return None, []
    if parts[0] in CASE_FLAGS:
        return None, parts
    return parts[0], parts[1:]


def _as_list(value: Any) -> Optional[List[Any]]:
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        parsed = parse_int_list(value)
        if parsed is not None:
            return parsed
        if ',' in value:
            return [item.strip() for item in value.split(',')]
    return None
