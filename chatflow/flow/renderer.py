"""
渲染器 - 把原始消息批次转换为可展示消息
纯变换：不做任何流程决策，不修改状态
"""

import logging
from typing import List, Optional

from ..content.resolver import ContentResolver
from ..content.templating import TextTemplater
from ..models import Choice, Message

logger = logging.getLogger(__name__)


class MessageRenderer:
    """消息渲染器

    职责：
    1. 过滤残留的 autoroute / dataAction 消息
    2. 有 contentKey 时用语义内容替换原文，然后填充 {key|default} 占位符
    3. 对每个选项做同样的处理
    4. 把带多段分隔符的消息展开为多条消息 (保持原顺序)

    使用方式：
        renderer = MessageRenderer(resolver, templater)
        display_messages = renderer.render(raw_messages)
    """

    def __init__(self, resolver: ContentResolver, templater: TextTemplater):
        self.resolver = resolver
        self.templater = templater

    def render(self, messages: List[Message]) -> List[Message]:
        """渲染一批原始消息

        Args:
            messages: 遍历收集到的原始消息

        Returns:
            展示用消息列表
        """
        displayable = [message for message in messages if message.is_displayable]
        if len(displayable) != len(messages):
            logger.debug(f"[Renderer] filtered {len(messages) - len(displayable)} hidden messages")

        rendered = []
        for message in displayable:
            rendered.extend(self._expand(self.render_message(message)))

        logger.debug(f"[Renderer] {len(messages)} raw -> {len(rendered)} display messages")
        return rendered

    def render_message(self, message: Message) -> Message:
        """渲染单条消息 (不展开多段)"""
        text = self._resolve_text(message.text, message.content_key)

        choices: Optional[List[Choice]] = message.choices
        if message.choices is not None:
            choices = [
                choice.model_copy(update={"text": self._resolve_text(choice.text, choice.content_key)})
                for choice in message.choices
            ]

        return message.model_copy(update={"text": text, "choices": choices})

    def _resolve_text(self, text: str, content_key: Optional[str]) -> str:
        if content_key:
            text = self.resolver.resolve(content_key, text)
        return self.templater.process(text)

    @staticmethod
    def _expand(message: Message) -> List[Message]:
        if not message.has_multiple_parts:
            return [message]
        parts = message.split_parts()
        if not parts:
            return [message.model_copy(update={"text": ""})]
        return [message.model_copy(update={"text": part}) for part in parts]
