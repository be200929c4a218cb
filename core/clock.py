"""
時鐘抽象

所有「現在時間」都從這裡取得，每個操作只讀一次，
測試可以注入手動推進的時鐘
"""
from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """回傳帶 UTC 時區的目前時間"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
