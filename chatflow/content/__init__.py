"""
语义内容系统

- keys: 语义键解析与回退链
- store: 内容来源 (文件 / 内存)
- resolver: 带缓存的多级回退解析
- templating / formatter: 占位符替换与值格式化
"""

from .keys import SemanticKey, build_fallback_chain, extract_generic_subject
from .store import ContentStore, DictContentStore, FileContentStore
from .resolver import ContentCache, ContentResolver
from .formatter import FormatterRegistry
from .templating import TextTemplater
