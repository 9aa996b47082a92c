"""
chatflow 包初始化文件
"""

from .config import Config
from .constants import MessageType, DataActionType, WalkStopReason
from .models import Message, Choice, RouteCondition, DataAction, Sequence, WalkResult, FlowResult
from .state import StateStore, InMemoryStateStore
from .loader import SequenceLoader, InMemorySequenceSource
from .service import ChatService

__all__ = [
    'Config',
    'MessageType',
    'DataActionType',
    'WalkStopReason',
    'Message',
    'Choice',
    'RouteCondition',
    'DataAction',
    'Sequence',
    'WalkResult',
    'FlowResult',
    'StateStore',
    'InMemoryStateStore',
    'SequenceLoader',
    'InMemorySequenceSource',
    'ChatService',
]
