"""
Helper functions shared by the condition evaluator, templating and data actions.
"""

import json
from typing import Any, List, Optional


def to_number(value: Any) -> Optional[float | int]:
    """尝试把值转换成数字。

    布尔值不视为数字 (True 不等于 1)。

    Args:
        value: 任意值

    Returns:
        int/float，无法转换时返回 None
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            return None
    return None


def stringify(value: Any) -> str:
    """把状态值转换成展示/比较用的字符串。

    与 JSON 保持一致：布尔值输出 true/false，None 输出 null，列表逐项拼接。
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ", ".join(stringify(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def is_truthy(value: Any) -> bool:
    """null、false、0、空字符串、空集合为假，其余为真"""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) > 0
    return True


def parse_int_list(raw: Any) -> Optional[List[int]]:
    """解析 [1, 3, 5] 或 "[1,3,5]" 形式的整数列表，无法解析返回 None"""
    if raw is None:
        return None

    if isinstance(raw, str):
        text = raw.strip()
        if not (text.startswith('[') and text.endswith(']')):
            return None
        try:
            raw = json.loads(text)
        except json.JSONDecodeError:
            return None

    if not isinstance(raw, (list, tuple)):
        return None

    result = []
    for item in raw:
        number = to_number(item)
        if number is not None and float(number).is_integer():
            result.append(int(number))
    return result


def find_outside_quotes(text: str, token: str) -> int:
    """查找引号之外第一次出现 token 的位置，找不到返回 -1"""
    in_single = False
    in_double = False
    for i in range(len(text) - len(token) + 1):
        char = text[i]
        if char == "'" and not in_double:
            in_single = not in_single
        elif char == '"' and not in_single:
            in_double = not in_double

        if not in_single and not in_double and text.startswith(token, i):
            return i
    return -1


def split_outside_quotes(text: str, token: str) -> List[str]:
    """按引号之外的 token 切分字符串"""
    parts = []
    remaining = text
    while True:
        index = find_outside_quotes(remaining, token)
        if index == -1:
            parts.append(remaining)
            return parts
        parts.append(remaining[:index])
        remaining = remaining[index + len(token):]
