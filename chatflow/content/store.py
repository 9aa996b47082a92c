"""
Content stores - read-only sources of authored text variants.

A store is keyed by the reduced semantic key (e.g. "bot.acknowledge.completion.positive").
Each key maps to a list of variant lines.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..config import Config
from .keys import extract_generic_subject

logger = logging.getLogger(__name__)


class ContentStore(ABC):
    """Read-only content source."""

    @abstractmethod
    def load_variants(self, key: str) -> Optional[List[str]]:
        """Return the variant lines for an exact reduced key, or None if not authored."""

    @abstractmethod
    def sibling_keys(self, base_key: str) -> List[str]:
        """Return authored keys that extend `base_key` (actor.action.subject) with modifiers."""


class DictContentStore(ContentStore):
    """In-memory store, mostly for tests and embedded scripts."""

    def __init__(self, content: Optional[Dict[str, Iterable[str]]] = None):
        self._content: Dict[str, List[str]] = {}
        for key, lines in (content or {}).items():
            self.add(key, lines)

    def add(self, key: str, lines: Iterable[str]):
        self._content[key] = _clean_lines(lines)

    def load_variants(self, key: str) -> Optional[List[str]]:
        lines = self._content.get(key)
        return list(lines) if lines else None

    def sibling_keys(self, base_key: str) -> List[str]:
        prefix = base_key + "."
        return sorted(key for key in self._content if key.startswith(prefix))


class FileContentStore(ContentStore):
    """
    Loads variants from text files laid out as
    <content_dir>/<actor>/<action>/<subject>[_<modifier>...].txt
    with one variant per non-empty line.
    """

    def __init__(self, content_dir: str):
        self.content_dir = Path(content_dir)

    def load_variants(self, key: str) -> Optional[List[str]]:
        path = self._path_for(key)
        if path is None or not path.is_file():
            return None
        try:
            lines = _clean_lines(path.read_text(encoding='utf-8').splitlines())
        except OSError as e:
            logger.warning(f"[Content] cannot read {path}: {e}")
            return None
        return lines or None

    def sibling_keys(self, base_key: str) -> List[str]:
        parts = base_key.split('.')
        if len(parts) != 3:
            return []
        actor, action, subject = parts
        action_dir = self.content_dir / actor / action
        if not action_dir.is_dir():
            return []

        prefix = subject + "_"
        keys = []
        for path in sorted(action_dir.glob(f"*{Config.CONTENT_EXTENSION}")):
            if not path.stem.startswith(prefix) or len(path.stem) == len(prefix):
                continue
            modifiers = path.stem[len(prefix):].split('_')
            if _belongs_to_longer_subject(subject, modifiers):
                continue
            keys.append(f"{base_key}.{path.stem[len(prefix):]}")
        return keys

    def _path_for(self, key: str) -> Optional[Path]:
        parts = key.split('.')
        if len(parts) < 3:
            return None
        actor, action, subject = parts[:3]
        file_stem = "_".join([subject] + parts[3:])
        return self.content_dir / actor / action / f"{file_stem}{Config.CONTENT_EXTENSION}"


def _belongs_to_longer_subject(subject: str, modifiers: List[str]) -> bool:
    """True when the stem spells a longer subject, e.g. task_completion_positive under task."""
    for count in range(1, len(modifiers) + 1):
        if extract_generic_subject("_".join([subject] + modifiers[:count])):
            return True
    return False


def _clean_lines(lines: Iterable[str]) -> List[str]:
    return [line.strip() for line in lines if line.strip()]
