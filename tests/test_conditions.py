"""
单元测试: 条件求值器 (ConditionEvaluator)
测试比较运算、未知键、复合条件和容错行为
"""

import pytest

from chatflow.flow import ConditionEvaluator
from chatflow.flow.conditions import parse_comparison, parse_literal
from chatflow.state import InMemoryStateStore


@pytest.fixture
def evaluator(state):
    state.set("user.hasTask", True)
    state.set("user.name", "Alice")
    state.set("user.streak", 3)
    state.set("user.score", 2.5)
    state.set("user.mood", "maybe")
    state.set("user.tags", ["a"])
    return ConditionEvaluator(state)


# ============================================================================
# 单一比较
# ============================================================================

class TestSingleComparison:

    @pytest.mark.parametrize("expression,expected", [
        ("user.hasTask == true", True),
        ("user.hasTask==true", True),
        ("user.hasTask == false", False),
        ("user.hasTask != false", True),
        ("user.name == 'Alice'", True),
        ('user.name == "Alice"', True),
        ("user.name == Alice", True),
        ("user.name != 'Bob'", True),
        ("user.streak == 3", True),
        ("user.streak == '3'", True),
        ("user.streak >= 3", True),
        ("user.streak > 3", False),
        ("user.streak < 10", True),
        ("user.score <= 2.5", True),
        ("user.mood == true", False),
        ("user.mood == false", False),
        ("user.name > 2", False),
    ])
    def test_comparisons(self, evaluator, expression, expected):
        assert evaluator.evaluate(expression) is expected

    def test_bool_is_not_number(self, evaluator):
        assert evaluator.evaluate("user.hasTask == 1") is False

    @pytest.mark.parametrize("expression,expected", [
        ("user.hasTask", True),
        ("user.tags", True),
        ("user.unknown", False),
    ])
    def test_bare_key_truthiness(self, evaluator, expression, expected):
        assert evaluator.evaluate(expression) is expected

    def test_quoted_operator_is_literal(self, state):
        state.set("user.note", "a==b")
        assert ConditionEvaluator(state).evaluate("user.note == 'a==b'") is True


class TestUnknownKeys:
    """未知键：只有 == null 成立"""

    @pytest.mark.parametrize("expression,expected", [
        ("user.missing == null", True),
        ("user.missing != null", False),
        ("user.missing == false", False),
        ("user.missing != 'x'", False),
        ("user.missing > 0", False),
    ])
    def test_missing_key(self, evaluator, expression, expected):
        assert evaluator.evaluate(expression) is expected

    def test_present_key_null_checks(self, evaluator):
        assert evaluator.evaluate("user.name != null") is True
        assert evaluator.evaluate("user.name == null") is False


class TestResilience:
    """解析失败一律为 False"""

    @pytest.mark.parametrize("expression", [
        "",
        "   ",
        "== true",
        "user.name ==",
        "nonamespace == 1",
    ])
    def test_malformed_is_false(self, evaluator, expression):
        assert evaluator.evaluate(expression) is False
        assert evaluator.evaluate_compound(expression) is False

    def test_explicit_state_overrides_injected(self, evaluator):
        other = InMemoryStateStore({"user.hasTask": False})
        assert evaluator.evaluate("user.hasTask == false", other) is True


class TestCompound:

    @pytest.mark.parametrize("expression,expected", [
        ("user.hasTask == true && user.streak > 2", True),
        ("user.hasTask == true && user.streak > 5", False),
        ("user.hasTask == false || user.streak > 2", True),
        ("user.hasTask == false || user.streak > 5", False),
        # && 优先级高于 ||
        ("user.hasTask == false && user.streak > 2 || user.name == 'Alice'", True),
        ("user.name == 'A||B' || user.streak == 3", True),
    ])
    def test_compound(self, evaluator, expression, expected):
        assert evaluator.evaluate_compound(expression) is expected


class TestParsing:

    @pytest.mark.parametrize("raw,expected", [
        ("null", None),
        ("true", True),
        ("false", False),
        ("'quoted'", "quoted"),
        ("42", 42),
        ("1.5", 1.5),
        ("bare", "bare"),
    ])
    def test_parse_literal(self, raw, expected):
        assert parse_literal(raw) == expected

    def test_longest_operator_first(self):
        assert parse_comparison("a.b >= 3") == ("a.b", ">=", "3")
        assert parse_comparison("a.b <= 3") == ("a.b", "<=", "3")
        assert parse_comparison("a.b") is None
