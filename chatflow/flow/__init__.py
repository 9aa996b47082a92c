"""
对话流程引擎

- walker: 纯遍历
- conditions / data_actions / active_dates: 条件求值与状态修改
- route_processor: autoroute / dataAction 解析
- sequence_manager: 活动序列 (原子切换)
- renderer: 展示前的文本处理
- orchestrator: 顺序编排循环
"""

from .walker import MessageWalker, MessageProvider
from .conditions import ConditionEvaluator
from .active_dates import ActiveDateCalculator
from .data_actions import DataActionProcessor
from .sequence_manager import SequenceManager
from .route_processor import RouteProcessor
from .renderer import MessageRenderer
from .orchestrator import FlowOrchestrator
