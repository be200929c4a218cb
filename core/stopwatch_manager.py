"""
Stopwatch Manager：管理 Stopwatch 的完整生命週期

職責：
1. 建立 / 列出 Stopwatch
2. 狀態轉換：start（stopped -> running）、stop（running -> stopped）
3. update / delete（不轉換狀態，但受 running 狀態限制）

原則：
- 每個 mutation 都是 lock -> transaction -> 讀取 -> 驗證 -> 寫入
- 每個操作只讀一次時鐘，驗證和寫入用同一個 now
- elapsed 只有 stop 會因為時間流逝而增加
"""
from contextlib import contextmanager
from typing import List, Optional
import logging

from models import MAX_INTEGER, Stopwatch
from schemas import StopwatchResponse
from core.clock import Clock, SystemClock
from core.locks import KeyedLock, stopwatch_locks
from core.repository import StopwatchRepository
from core.exceptions import (
    StopwatchNotFound,
    InvalidStopwatchState,
    StopwatchValidationError
)
from services.elapsed_service import calculate_elapsed

logger = logging.getLogger(__name__)


def to_response(stopwatch: Stopwatch, now) -> StopwatchResponse:
    """轉成對外 view，elapsed 以 now 即時計算"""
    return StopwatchResponse(
        id=stopwatch.id,
        name=stopwatch.name,
        is_running=stopwatch.is_running,
        elapsed=calculate_elapsed(
            stopwatch.elapsed,
            stopwatch.is_running,
            stopwatch.start_time,
            now
        )
    )


class StopwatchManager:
    """Stopwatch 生命週期管理器"""

    def __init__(
        self,
        repository: StopwatchRepository,
        clock: Optional[Clock] = None,
        locks: Optional[KeyedLock] = None
    ):
        self.repository = repository
        self.clock = clock or SystemClock()
        self.locks = locks if locks is not None else stopwatch_locks

    @contextmanager
    def _mutation(self, stopwatch_id: int, operation: str):
        """
        取得 id 鎖並開啟 transaction，產出已鎖定的 Stopwatch

        異常：
            StopwatchNotFound: Stopwatch 不存在或已刪除
        """
        with self.locks.hold(stopwatch_id):
            with self.repository.transaction(f"{operation} #{stopwatch_id}"):
                stopwatch = self.repository.find_by_id(stopwatch_id, for_update=True)
                if not stopwatch:
                    raise StopwatchNotFound(stopwatch_id)
                yield stopwatch

    def list_stopwatches(self) -> List[StopwatchResponse]:
        """
        列出所有未刪除的 Stopwatch（依 id 遞增）

        返回：
            StopwatchResponse 列表，running 的 elapsed 即時計算
        """
        now = self.clock.now()
        stopwatches = self.repository.find_all_ordered()
        logger.debug(f"Found {len(stopwatches)} stopwatches")
        return [to_response(stopwatch, now) for stopwatch in stopwatches]

    def create(self, name: str) -> StopwatchResponse:
        """
        建立新的 Stopwatch（stopped, elapsed=0）

        異常：
            StopwatchValidationError: 名稱為空
        """
        if not name:
            raise StopwatchValidationError("Stopwatch name must not be empty")

        now = self.clock.now()
        with self.repository.transaction("create"):
            stopwatch = self.repository.save(Stopwatch(
                name=name,
                is_running=False,
                elapsed=0,
                start_time=None
            ))

        logger.info(f"Created stopwatch #{stopwatch.id} ({name})")
        return to_response(stopwatch, now)

    def start(self, stopwatch_id: int) -> StopwatchResponse:
        """
        開始計時（stopped -> running）

        前置條件：
        1. Stopwatch 必須存在
        2. Stopwatch 不能正在執行（重複 start 直接拒絕，不是 no-op）

        異常：
            StopwatchNotFound: Stopwatch 不存在
            InvalidStopwatchState: 已經在執行
        """
        now = self.clock.now()
        with self._mutation(stopwatch_id, "start") as stopwatch:
            if stopwatch.is_running:
                raise InvalidStopwatchState(f"Stopwatch #{stopwatch_id} is already running")

            logger.debug(f"Starting stopwatch #{stopwatch_id}")
            stopwatch.is_running = True
            stopwatch.start_time = now
            stopwatch = self.repository.save(stopwatch)

        return to_response(stopwatch, now)

    def stop(self, stopwatch_id: int) -> StopwatchResponse:
        """
        停止計時（running -> stopped）

        唯一會把經過時間寫回 elapsed 的地方：
            elapsed = elapsed + floor(now - start_time)

        異常：
            StopwatchNotFound: Stopwatch 不存在
            InvalidStopwatchState: 沒有在執行
        """
        now = self.clock.now()
        with self._mutation(stopwatch_id, "stop") as stopwatch:
            if not stopwatch.is_running:
                raise InvalidStopwatchState(f"Stopwatch #{stopwatch_id} is not running")

            stopwatch.elapsed = calculate_elapsed(
                stopwatch.elapsed,
                stopwatch.is_running,
                stopwatch.start_time,
                now
            )
            stopwatch.is_running = False
            stopwatch.start_time = None
            stopwatch = self.repository.save(stopwatch)

        logger.debug(f"Stopped stopwatch #{stopwatch_id} at {stopwatch.elapsed}s")
        return to_response(stopwatch, now)

    def update(
        self,
        stopwatch_id: int,
        name: Optional[str] = None,
        elapsed: Optional[int] = None
    ) -> StopwatchResponse:
        """
        部分更新 Stopwatch（None 代表不修改）

        running 時可以改名稱，但不能覆寫 elapsed：
        伺服器正在累積時間，任意覆寫會立刻和計算值不一致

        異常：
            StopwatchNotFound: Stopwatch 不存在
            InvalidStopwatchState: running 時提供 elapsed
            StopwatchValidationError: 名稱為空或 elapsed 超出範圍
        """
        if name is not None and not name:
            raise StopwatchValidationError("Stopwatch name must not be empty")
        if elapsed is not None and elapsed < 0:
            raise StopwatchValidationError("Elapsed time must not be negative")
        if elapsed is not None and elapsed > MAX_INTEGER:
            raise StopwatchValidationError(f"Elapsed time must not exceed {MAX_INTEGER} seconds")

        now = self.clock.now()
        with self._mutation(stopwatch_id, "update") as stopwatch:
            if elapsed is not None and stopwatch.is_running:
                raise InvalidStopwatchState("Cannot update elapsed time while stopwatch is running")

            logger.debug(f"Updating stopwatch #{stopwatch_id}")
            if name is not None:
                stopwatch.name = name
            if elapsed is not None:
                stopwatch.elapsed = elapsed
            stopwatch = self.repository.save(stopwatch)

        return to_response(stopwatch, now)

    def delete(self, stopwatch_id: int) -> str:
        """
        Soft delete 一個已停止的 Stopwatch

        running 時刪除會丟掉尚未結算的時間，所以必須先 stop

        返回：
            "ok"

        異常：
            StopwatchNotFound: Stopwatch 不存在
            InvalidStopwatchState: 正在執行
        """
        now = self.clock.now()
        with self._mutation(stopwatch_id, "delete") as stopwatch:
            if stopwatch.is_running:
                raise InvalidStopwatchState(
                    f"Cannot delete stopwatch #{stopwatch_id} while it is running"
                )
            self.repository.soft_delete(stopwatch_id, now)

        logger.info(f"Deleted stopwatch #{stopwatch_id}")
        return "ok"
