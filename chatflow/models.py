"""
数据模型定义
包含脚本配置模型 (Pydantic) 和引擎内部的结果模型 (dataclass)
"""

from typing import List, Dict, Optional, Any
from dataclasses import dataclass, field
from pydantic import (
    AliasChoices, BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator
)

from .config import Config
from .constants import (
    MessageType, DataActionType, WalkStopReason,
    HIDDEN_MESSAGE_TYPES, INTERACTIVE_MESSAGE_TYPES,
)

# ============================================================================
# 脚本数据模型 (Authored Script Definitions) - Pydantic
# ============================================================================


class Choice(BaseModel):
    """选项按钮"""
    text: str
    content_key: Optional[str] = Field(default=None, alias="contentKey")
    value: Any = None                       # 自定义存储值，缺省时存储 text
    next_message_id: Optional[int] = Field(default=None, alias="nextMessageId")
    sequence_id: Optional[str] = Field(default=None, alias="sequenceId")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def stored_value(self) -> Any:
        """用户选择该选项后写入 storeKey 的值"""
        return self.value if self.value is not None else self.text


class RouteCondition(BaseModel):
    """自动路由的一条分支"""
    condition: Optional[str] = None
    is_default: bool = Field(default=False, alias="default")
    next_message_id: Optional[int] = Field(default=None, alias="nextMessageId")
    sequence_id: Optional[str] = Field(default=None, alias="sequenceId")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode='after')
    def check_continuation(self) -> 'RouteCondition':
        """分支必须且只能指定一个去向：消息 ID 或序列 ID"""
        has_message = self.next_message_id is not None
        has_sequence = self.sequence_id is not None
        if has_message == has_sequence:
            raise ValueError("route must specify exactly one of nextMessageId or sequenceId")
        return self


class DataAction(BaseModel):
    """单个数据操作"""
    type: DataActionType = DataActionType.SET
    key: str
    value: Any = None
    event: Optional[str] = None                 # 仅 trigger 使用
    data: Dict[str, Any] = {}                   # 仅 trigger 使用

    @field_validator('key')
    @classmethod
    def check_key(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("data action key must not be empty")
        return value.strip()


class Message(BaseModel):
    """单条脚本消息"""
    id: int
    type: MessageType = MessageType.TEXT
    text: str = ""
    delay: int = Config.DEFAULT_MESSAGE_DELAY
    sender: str = Config.DEFAULT_SENDER

    next_message_id: Optional[int] = Field(default=None, alias="nextMessageId")
    sequence_id: Optional[str] = Field(default=None, alias="sequenceId")
    store_key: Optional[str] = Field(default=None, alias="storeKey")
    content_key: Optional[str] = Field(default=None, alias="contentKey")
    placeholder_text: str = Field(default=Config.DEFAULT_PLACEHOLDER_TEXT, alias="placeholderText")

    # 类型专属字段
    choices: Optional[List[Choice]] = None
    routes: Optional[List[RouteCondition]] = None
    data_actions: Optional[List[DataAction]] = Field(default=None, alias="dataActions")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode='after')
    def check_type_fields(self) -> 'Message':
        """choices / routes / dataActions 只允许出现在对应类型上"""
        owned = (
            ("choices", MessageType.CHOICE),
            ("routes", MessageType.AUTOROUTE),
            ("data_actions", MessageType.DATA_ACTION),
        )
        for attr, owner_type in owned:
            items = getattr(self, attr)
            if self.type == owner_type:
                if items is None:
                    setattr(self, attr, [])
            elif items:
                raise ValueError(f"message {self.id}: '{attr}' is only allowed on {owner_type.value} messages")
        return self

    # ============= 类型判断 =============

    @property
    def is_interactive(self) -> bool:
        return self.type in INTERACTIVE_MESSAGE_TYPES

    @property
    def is_autoroute(self) -> bool:
        return self.type == MessageType.AUTOROUTE

    @property
    def is_data_action(self) -> bool:
        return self.type == MessageType.DATA_ACTION

    @property
    def is_displayable(self) -> bool:
        return self.type not in HIDDEN_MESSAGE_TYPES

    @property
    def has_multiple_parts(self) -> bool:
        return Config.MULTI_TEXT_SEPARATOR in self.text

    def split_parts(self) -> List[str]:
        """按多段分隔符拆分文本，去掉空白段"""
        parts = [part.strip() for part in self.text.split(Config.MULTI_TEXT_SEPARATOR)]
        return [part for part in parts if part]


class Sequence(BaseModel):
    """一段完整的对话序列"""
    id: str = Field(validation_alias=AliasChoices("sequenceId", "id"))
    name: str = ""
    description: str = ""
    messages: List[Message] = []

    _index: Dict[int, Message] = PrivateAttr(default_factory=dict)

    @model_validator(mode='after')
    def check_unique_ids(self) -> 'Sequence':
        seen = set()
        for message in self.messages:
            if message.id in seen:
                raise ValueError(f"duplicate message id {message.id} in sequence '{self.id}'")
            seen.add(message.id)
        return self

    def model_post_init(self, __context: Any) -> None:
        # 遍历依赖 ID 查找，不依赖数组顺序
        self._index = {message.id: message for message in self.messages}

    def get_message(self, message_id: int) -> Optional[Message]:
        return self._index.get(message_id)

    def has_message(self, message_id: int) -> bool:
        return message_id in self._index

    @property
    def message_ids(self) -> List[int]:
        return [message.id for message in self.messages]

    @property
    def first_message_id(self) -> Optional[int]:
        return self.messages[0].id if self.messages else None


# ============================================================================
# 引擎结果模型 (Runtime Results)
# ============================================================================

@dataclass
class WalkResult:
    """一次遍历的结果 - 纯导航，不含任何副作用"""
    messages: List[Message] = field(default_factory=list)
    stop_reason: WalkStopReason = WalkStopReason.END_OF_CHAIN
    stop_message_id: Optional[int] = None
    target_sequence_id: Optional[str] = None
    walk_depth: int = 0

    @property
    def is_valid(self) -> bool:
        return self.stop_reason != WalkStopReason.MAX_DEPTH_REACHED

    @property
    def requires_user_interaction(self) -> bool:
        return self.stop_reason == WalkStopReason.INTERACTIVE_MESSAGE

    @property
    def requires_sequence_transition(self) -> bool:
        return self.stop_reason == WalkStopReason.SEQUENCE_BOUNDARY


class FlowResult(BaseModel):
    """编排器交还给调用方的结果"""
    messages: List[Message] = []
    awaiting_interaction: bool = Field(default=False, alias="awaitingInteraction")
    interaction_message_id: Optional[int] = Field(default=None, alias="interactionMessageId")
    complete: bool = False
    sequence_id: Optional[str] = Field(default=None, alias="sequenceId")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def awaiting(cls, messages: List[Message], message_id: int, sequence_id: Optional[str] = None) -> 'FlowResult':
        return cls(
            messages=messages,
            awaiting_interaction=True,
            interaction_message_id=message_id,
            sequence_id=sequence_id,
        )

    @classmethod
    def completed(cls, messages: List[Message], sequence_id: Optional[str] = None) -> 'FlowResult':
        return cls(messages=messages, complete=True, sequence_id=sequence_id)

    @classmethod
    def truncated(cls, messages: List[Message], sequence_id: Optional[str] = None) -> 'FlowResult':
        return cls(messages=messages, complete=False, sequence_id=sequence_id)
