"""
自定義異常類別

集中管理所有 Stopwatch 業務邏輯異常，方便 API 層統一處理：
- StopwatchNotFound -> 404
- InvalidStopwatchState / StopwatchValidationError -> 400
"""


class StopwatchException(Exception):
    """所有 Stopwatch 異常的基類"""
    pass


class StopwatchNotFound(StopwatchException):
    """Stopwatch 不存在（或已被 soft delete）"""
    def __init__(self, stopwatch_id):
        self.stopwatch_id = stopwatch_id
        super().__init__(f"Stopwatch #{stopwatch_id} not found")


class InvalidStopwatchState(StopwatchException):
    """目前的 running 狀態不允許此操作（重複 start / stop、running 時改 elapsed 或刪除）"""
    pass


class StopwatchValidationError(StopwatchException):
    """輸入格式錯誤（空名稱、負的 elapsed、非數字 id）"""
    pass
