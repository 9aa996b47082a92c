"""
对话流异常定义
"""


class ChatFlowError(Exception):
    """对话流基础异常"""


class SequenceLoadError(ChatFlowError):
    """序列加载失败 (文件缺失、无法解析或校验失败)"""

    def __init__(self, sequence_id: str, reason: str):
        self.sequence_id = sequence_id
        self.reason = reason
        super().__init__(f"Failed to load sequence '{sequence_id}': {reason}")


class EmptySequenceError(ChatFlowError):
    """进入了一个没有任何消息的序列"""

    def __init__(self, sequence_id: str | None):
        self.sequence_id = sequence_id
        super().__init__(f"Sequence '{sequence_id}' has no messages")


class WalkDepthExceededError(ChatFlowError):
    """遍历超过最大深度，通常意味着脚本里有死循环"""

    def __init__(self, start_id: int, depth: int):
        self.start_id = start_id
        self.depth = depth
        super().__init__(f"Walk from message {start_id} hit maximum depth ({depth})")


class DataActionError(ChatFlowError):
    """单个数据操作执行失败"""

    def __init__(self, action, reason: str):
        self.action = action
        self.reason = reason
        super().__init__(f"Data action {action.type.value} on '{action.key}' failed: {reason}")


class InvalidResponseError(ChatFlowError):
    """用户回复指向了不存在或不可交互的消息"""

    def __init__(self, message_id: int, reason: str):
        self.message_id = message_id
        self.reason = reason
        super().__init__(f"Invalid response for message {message_id}: {reason}")
