"""
语义内容键 (Semantic Content Key)

格式: actor.action.subject.modifier*
例如: bot.acknowledge.task_completion.positive.first_time
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..config import Config


@dataclass(frozen=True)
class SemanticKey:
    """解析后的语义键"""
    actor: str
    action: str
    subject: str
    modifiers: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def parse(cls, raw: str) -> Optional['SemanticKey']:
        """解析语义键，格式错误 (少于三段或存在空段) 时返回 None"""
        if not raw:
            return None
        parts = raw.strip().split('.')
        if len(parts) < 3 or any(not part for part in parts):
            return None
        return cls(actor=parts[0], action=parts[1], subject=parts[2], modifiers=tuple(parts[3:]))

    @property
    def base(self) -> str:
        return f"{self.actor}.{self.action}.{self.subject}"

    @property
    def generic_subject(self) -> Optional[str]:
        """通用主题别名，例如 task_completion -> completion；无别名返回 None"""
        return extract_generic_subject(self.subject)

    def with_subject(self, subject: str) -> 'SemanticKey':
        return SemanticKey(self.actor, self.action, subject, self.modifiers)

    def reductions(self) -> List[str]:
        """依次去掉末尾修饰词得到的键，最具体的在前"""
        keys = []
        for count in range(len(self.modifiers), -1, -1):
            keys.append(".".join((self.base,) + self.modifiers[:count]))
        return keys

    def __str__(self) -> str:
        return ".".join((self.base,) + self.modifiers)


def extract_generic_subject(subject: str) -> Optional[str]:
    """从具体主题中提取通用主题。

    Args:
        subject: 主题，例如 "task_completion"

    Returns:
        通用主题 ("completion")；主题本身已是通用主题或无匹配时返回 None
    """
    for generic in Config.GENERIC_SUBJECTS:
        if subject != generic and subject.endswith(generic):
            return generic
    return None


def build_fallback_chain(key: SemanticKey) -> List[str]:
    """构建精确键 + 通用主题两级回退链 (不含兄弟内容与 default)"""
    chain = key.reductions()
    generic = key.generic_subject
    if generic:
        chain.extend(key.with_subject(generic).reductions())
    return chain
