"""
Elapsed 計算服務

純計算邏輯，不讀時鐘也不碰資料庫：呼叫者傳入同一個 now
"""
import math
from datetime import datetime, timezone
from typing import Optional


def as_utc(value: datetime) -> datetime:
    """
    補上時區資訊

    SQLite 不保存時區，讀回來的是 naive datetime，一律視為 UTC
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def seconds_between(start: datetime, end: datetime) -> int:
    """
    計算兩個時間點之間的整秒數（無條件捨去）

    負值（時鐘偏移、start 在未來）一律視為 0
    """
    delta = (as_utc(end) - as_utc(start)).total_seconds()
    if delta <= 0:
        return 0
    return math.floor(delta)


def calculate_elapsed(
    elapsed: int,
    is_running: bool,
    start_time: Optional[datetime],
    now: datetime
) -> int:
    """
    計算有效 elapsed

    規則：
    - 停止中：直接回傳儲存的 elapsed
    - 執行中：elapsed + floor(now - start_time)

    範例：
        calculate_elapsed(10, False, None, now) -> 10
        calculate_elapsed(10, True, now - 5.7s, now) -> 15
        calculate_elapsed(10, True, now + 30s, now) -> 10

    參數：
        elapsed: 儲存的累積秒數
        is_running: 是否執行中
        start_time: 本次 run 開始時間（停止中為 None）
        now: 本次操作的目前時間

    返回：
        有效 elapsed（秒，非負整數）
    """
    if not is_running or start_time is None:
        return elapsed
    return elapsed + seconds_between(start_time, now)
