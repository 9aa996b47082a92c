"""
活跃日计算 (Active Date Calculator)
根据用户配置的 task.activeDays (ISO 星期 1-7) 计算下一个活跃日期
"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional

from ..config import Config
from ..helpers import parse_int_list
from ..state import StateStore

logger = logging.getLogger(__name__)


def format_date(value: date) -> str:
    """格式化为 YYYY-MM-DD"""
    return value.strftime(Config.DATE_FORMAT)


class ActiveDateCalculator:
    """活跃日计算器，时钟可注入以便测试"""

    def __init__(self, state: StateStore, clock: Optional[Callable[[], datetime]] = None):
        self.state = state
        self.clock = clock or datetime.now

    def today(self) -> date:
        return self.clock().date()

    def active_days(self) -> Optional[List[int]]:
        """读取活跃日配置，只保留 1-7 的合法值；未配置或为空返回 None"""
        days = parse_int_list(self.state.get(Config.ACTIVE_DAYS_KEY))
        if not days:
            return None
        valid = [day for day in days if 1 <= day <= 7]
        return valid or None

    def next_active_date(self) -> date:
        """今天之后 (不含今天) 的第一个活跃日；未配置时为明天"""
        return self._search(start_offset=1, default_offset=1)

    def first_active_date(self) -> date:
        """从今天开始 (含今天) 的第一个活跃日；未配置时为今天"""
        return self._search(start_offset=0, default_offset=0)

    def next_active_weekday(self) -> int:
        """下一个活跃日的 ISO 星期数 (1-7)"""
        return self.next_active_date().isoweekday()

    def _search(self, start_offset: int, default_offset: int) -> date:
        today = self.today()
        days = self.active_days()
        if days is None:
            return today + timedelta(days=default_offset)

        for offset in range(start_offset, Config.ACTIVE_DATE_LOOKAHEAD_DAYS + 1):
            candidate = today + timedelta(days=offset)
            if candidate.isoweekday() in days:
                return candidate

        # 合法配置下不会走到这里
        logger.warning(f"[ActiveDates] no active date found for days={days}, using fallback")
        return today + timedelta(days=default_offset)
