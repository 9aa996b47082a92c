"""
语义内容解析器 (Semantic Content Resolver)

解析顺序：
1. 精确键，然后逐个去掉末尾修饰词
2. 通用主题别名 (task_completion -> completion)，同样逐级去修饰词
3. 同主题的其它修饰词组合 (兄弟内容)
4. actor.action.default
5. 全部失败则返回原文
"""

import logging
import random
from typing import Dict, List, Optional

from ..config import Config
from .keys import SemanticKey, build_fallback_chain
from .store import ContentStore

logger = logging.getLogger(__name__)


class ContentCache:
    """按原始语义键缓存解析结果，只有显式 clear() 才会失效"""

    def __init__(self):
        self._entries: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._entries.get(key)

    def put(self, key: str, text: str):
        self._entries[key] = text

    def clear(self):
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class ContentResolver:
    """
    把语义键解析为作者撰写的文本变体。

    同一个键在缓存生命周期内总是返回同一行；失败不缓存，
    这样后来补充的内容文件仍能被解析到。
    """

    def __init__(self, store: ContentStore, rng: Optional[random.Random] = None):
        self.store = store
        self.cache = ContentCache()
        self._rng = rng or random.Random()

    def resolve(self, semantic_key: str, fallback_text: str) -> str:
        """
        解析语义键。

        Args:
            semantic_key: 语义键 actor.action.subject.modifier*
            fallback_text: 无法解析时返回的原文

        Returns:
            选中的变体文本，或原文
        """
        cached = self.cache.get(semantic_key)
        if cached is not None:
            logger.debug(f"[Content] cache hit '{semantic_key}'")
            return cached

        key = SemanticKey.parse(semantic_key)
        if key is None:
            logger.debug(f"[Content] malformed key '{semantic_key}', using original text")
            return fallback_text

        for candidate in self.fallback_chain(key):
            variants = self._load(candidate)
            if variants:
                text = self._rng.choice(variants)
                logger.debug(f"[Content] '{semantic_key}' resolved via '{candidate}'")
                self.cache.put(semantic_key, text)
                return text

        logger.debug(f"[Content] nothing authored for '{semantic_key}', using original text")
        return fallback_text

    def fallback_chain(self, key: SemanticKey) -> List[str]:
        """完整的候选键列表，按优先级排列，不含重复项"""
        chain = build_fallback_chain(key)

        bases = [key.base]
        if key.generic_subject:
            bases.append(key.with_subject(key.generic_subject).base)
        for base in bases:
            chain.extend(self._safe_siblings(base))

        chain.append(f"{key.actor}.{key.action}.{Config.CONTENT_DEFAULT_SUBJECT}")
        return list(dict.fromkeys(chain))

    def clear(self):
        self.cache.clear()

    def _load(self, key: str) -> Optional[List[str]]:
        # 内容读取失败从不致命
        try:
            return self.store.load_variants(key)
        except Exception as e:
            logger.warning(f"[Content] failed to load '{key}': {e}")
            return None

    def _safe_siblings(self, base_key: str) -> List[str]:
        try:
            return self.store.sibling_keys(base_key)
        except Exception as e:
            logger.warning(f"[Content] failed to list siblings of '{base_key}': {e}")
            return []
