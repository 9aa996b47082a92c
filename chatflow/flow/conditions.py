"""
Condition Evaluator
对持久化状态求值路由条件表达式

支持：
- 单一比较: user.name == 'Alice' / user.streak >= 3 / user.hasTask != null
- 裸键真值判断: user.isOnboarded
- 复合条件: a && b / a || b (|| 优先级更低)

求值失败、未知键一律视为 False，从不抛出异常。
"""

import logging
from typing import Any, Optional

from ..helpers import to_number, stringify, is_truthy, find_outside_quotes, split_outside_quotes
from ..state import StateStore

logger = logging.getLogger(__name__)

# 长运算符必须排在前面，避免 >= 被识别为 >
_OPERATORS = (">=", "<=", "!=", "==", ">", "<")

_MISSING = object()


def _compare(left: Any, right: Any, op: str) -> bool:
    """通用比较逻辑。

    Args:
        left: 状态中的值
        right: 表达式中的字面量
        op: 比较运算符

    Returns:
        比较结果，类型不匹配时返回 False
    """
    match op:
        case "==": return _equals(left, right)
        case "!=": return not _equals(left, right)
        case ">" | "<" | ">=" | "<=": return _compare_numbers(left, right, op)
        case _: return False


def _equals(left: Any, right: Any) -> bool:
    """相等判断：先直接比较，再数值比较，最后字符串比较"""
    if left is None or right is None:
        return left is None and right is None
    if type(left) is type(right) and left == right:
        return True

    left_num, right_num = to_number(left), to_number(right)
    if left_num is not None and right_num is not None:
        return left_num == right_num

    return stringify(left) == stringify(right)


def _compare_numbers(left: Any, right: Any, op: str) -> bool:
    left_num, right_num = to_number(left), to_number(right)
    if left_num is None or right_num is None:
        return False
    match op:
        case ">": return left_num > right_num
        case "<": return left_num < right_num
        case ">=": return left_num >= right_num
        case "<=": return left_num <= right_num
        case _: return False


def parse_literal(raw: str) -> Any:
    """把表达式右侧解析为 Python 值：null / true / false / 引号字符串 / 数字 / 裸字符串"""
    text = raw.strip()
    if text == "null":
        return None
    if text == "true":
        return True
    if text == "false":
        return False
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        return text[1:-1]

    number = to_number(text)
    if number is not None:
        return number
    return text


def parse_comparison(expression: str) -> Optional[tuple[str, str, str]]:
    """拆分为 (键, 运算符, 右侧原文)，没有运算符时返回 None"""
    for op in _OPERATORS:
        index = find_outside_quotes(expression, op)
        if index != -1:
            left = expression[:index].strip()
            right = expression[index + len(op):].strip()
            return left, op, right
    return None


class ConditionEvaluator:
    """条件求值器"""

    def __init__(self, state: StateStore):
        self.state = state

    def evaluate(self, expression: str, state: Optional[StateStore] = None) -> bool:
        """
        求值单一比较表达式。

        Args:
            expression: 条件表达式，例如 "user.hasTask == true"
            state: 可选的状态存储，缺省使用构造时注入的实例

        Returns:
            求值结果；解析失败或键不存在时为 False
        """
        store = state or self.state
        try:
            return self._evaluate_single(expression, store)
        except Exception as e:
            logger.warning(f"[Condition] failed to evaluate '{expression}': {e}")
            return False

    def evaluate_compound(self, expression: str, state: Optional[StateStore] = None) -> bool:
        """求值包含 && / || 的复合条件"""
        store = state or self.state
        try:
            return self._evaluate_compound(expression, store)
        except Exception as e:
            logger.warning(f"[Condition] failed to evaluate '{expression}': {e}")
            return False

    def _evaluate_compound(self, expression: str, store: StateStore) -> bool:
        or_parts = split_outside_quotes(expression, "||")
        if len(or_parts) > 1:
            return any(self._evaluate_compound(part, store) for part in or_parts)

        and_parts = split_outside_quotes(expression, "&&")
        if len(and_parts) > 1:
            return all(self._evaluate_single(part, store) for part in and_parts)

        return self._evaluate_single(expression, store)

    def _evaluate_single(self, expression: str, store: StateStore) -> bool:
        expression = (expression or "").strip()
        if not expression:
            logger.warning("[Condition] empty condition treated as false")
            return False

        parsed = parse_comparison(expression)
        if parsed is None:
            # 没有运算符：裸键真值判断
            value = self._lookup(expression, store)
            result = value is not _MISSING and is_truthy(value)
            logger.debug(f"[Condition] '{expression}' truthiness -> {result}")
            return result

        key, op, raw_right = parsed
        if not key or not raw_right:
            logger.warning(f"[Condition] malformed condition '{expression}'")
            return False

        expected = parse_literal(raw_right)
        value = self._lookup(key, store)

        if value is _MISSING:
            # 未知键：只有显式的 null 判断成立
            result = expected is None and op == "=="
            logger.debug(f"[Condition] '{expression}': key '{key}' missing -> {result}")
            return result

        result = _compare(value, expected, op)
        logger.debug(f"[Condition] '{expression}': {value!r} {op} {expected!r} -> {result}")
        return result

    @staticmethod
    def _lookup(key: str, store: StateStore) -> Any:
        # 只接受 namespace.key 形式
        if '.' not in key or key.startswith('.') or key.endswith('.'):
            raise ValueError(f"key '{key}' is not namespaced")
        if not store.has(key):
            return _MISSING
        return store.get(key)
