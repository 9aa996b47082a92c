"""
pytest 共享配置和 Fixtures
这个文件会被 pytest 自动加载，所有测试都可以使用这里定义的 fixtures
"""

import sys
import random
from datetime import datetime
from pathlib import Path
import pytest  # pytest fixture 装饰器需要

# 确保 chatflow 模块能被导入
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# ============================================================================
# 导入项目模块
# ============================================================================
from chatflow.models import Sequence
from chatflow.state import InMemoryStateStore
from chatflow.loader import InMemorySequenceSource
from chatflow.content import ContentResolver, DictContentStore, FormatterRegistry, TextTemplater
from chatflow.flow import (
    ConditionEvaluator, DataActionProcessor, FlowOrchestrator, MessageRenderer,
    MessageWalker, RouteProcessor, SequenceManager,
)
from chatflow.service import ChatService

# 2024-01-15 是星期一
FIXED_NOW = datetime(2024, 1, 15, 9, 30)

DATA_DIR = project_root / "data"

# ============================================================================
# 测试辅助函数
# ============================================================================

def make_sequence(sequence_id: str, messages: list, **kwargs) -> Sequence:
    """
    用原始字典快速构造序列

    示例:
        seq = make_sequence("s", [{"id": 1, "text": "hi"}])
    """
    return Sequence.model_validate({"sequenceId": sequence_id, "messages": messages, **kwargs})


def texts(result) -> list:
    """FlowResult / 消息列表 -> 文本列表"""
    messages = result.messages if hasattr(result, "messages") else result
    return [message.text for message in messages]

# ============================================================================
# 基础 Fixtures
# ============================================================================

@pytest.fixture
def fixed_clock():
    """固定时钟 (星期一 2024-01-15)"""
    return lambda: FIXED_NOW


@pytest.fixture
def state():
    """每个测试独立的内存状态"""
    return InMemoryStateStore()


@pytest.fixture
def content_store():
    return DictContentStore()


@pytest.fixture
def formatters():
    return FormatterRegistry(tables={
        "activeDays": {
            "1": "Monday", "2": "Tuesday", "3": "Wednesday", "4": "Thursday",
            "5": "Friday", "6": "Saturday", "7": "Sunday",
            "1,2,3,4,5": "weekdays",
        },
    })


@pytest.fixture
def resolver(content_store):
    return ContentResolver(content_store, rng=random.Random(7))


@pytest.fixture
def templater(state, formatters):
    return TextTemplater(state, formatters)


@pytest.fixture
def renderer(resolver, templater):
    return MessageRenderer(resolver, templater)


@pytest.fixture
def source():
    """空的内存序列来源，测试中用 source.add() 注册序列"""
    return InMemorySequenceSource()


@pytest.fixture
def sequences(source):
    return SequenceManager(source)


@pytest.fixture
def data_actions(state, fixed_clock):
    return DataActionProcessor(state, clock=fixed_clock)


@pytest.fixture
def router(state, data_actions, sequences):
    return RouteProcessor(ConditionEvaluator(state), data_actions, sequences)


@pytest.fixture
def orchestrator(router, sequences, renderer):
    return FlowOrchestrator(MessageWalker(), router, sequences, renderer)


@pytest.fixture
def make_service(source, content_store, state, formatters, fixed_clock):
    """构造注入了内存组件的 ChatService"""
    def _make(**overrides):
        kwargs = dict(
            sequence_source=source,
            content_store=content_store,
            state=state,
            formatters=formatters,
            clock=fixed_clock,
            rng=random.Random(7),
        )
        kwargs.update(overrides)
        return ChatService(**kwargs)
    return _make
