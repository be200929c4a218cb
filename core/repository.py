"""
Stopwatch Repository：Record Store 抽象

StopwatchManager 只依賴這個介面，不直接碰 Session：
- SqlStopwatchRepository：SQLAlchemy 實作（正式環境）
- InMemoryStopwatchRepository：dict 實作（單元測試、開發用）

所有讀取都排除已 soft delete 的紀錄
"""
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional
import threading

from sqlalchemy.orm import Session

from database import transaction
from models import MAX_INTEGER, Stopwatch
from core.locks import with_stopwatch_lock


class StopwatchRepository(ABC):

    @abstractmethod
    def find_by_id(self, stopwatch_id: int, for_update: bool = False) -> Optional[Stopwatch]:
        """取得未刪除的 Stopwatch；for_update=True 時同時鎖定該筆"""

    @abstractmethod
    def find_all_ordered(self) -> List[Stopwatch]:
        """取得所有未刪除的 Stopwatch，依 id 遞增排序"""

    @abstractmethod
    def save(self, stopwatch: Stopwatch) -> Stopwatch:
        """新增或更新，回傳已分配 id 的紀錄"""

    @abstractmethod
    def soft_delete(self, stopwatch_id: int, now: datetime) -> None:
        """標記 deleted_at，紀錄本身保留"""

    @abstractmethod
    def transaction(self, name: str = "transaction"):
        """成功時 commit，異常時 rollback 並重新拋出"""


class SqlStopwatchRepository(StopwatchRepository):

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, stopwatch_id, for_update=False):
        if not 0 < stopwatch_id <= MAX_INTEGER:
            # 超出 INTEGER 欄位範圍的 id 不可能存在
            return None
        if for_update:
            return with_stopwatch_lock(stopwatch_id, self.db).first()
        return self.db.query(Stopwatch).filter(
            Stopwatch.id == stopwatch_id,
            Stopwatch.deleted_at.is_(None)
        ).first()

    def find_all_ordered(self):
        return self.db.query(Stopwatch).filter(
            Stopwatch.deleted_at.is_(None)
        ).order_by(Stopwatch.id).all()

    def save(self, stopwatch):
        self.db.add(stopwatch)
        self.db.flush()  # 取得 stopwatch.id
        return stopwatch

    def soft_delete(self, stopwatch_id, now):
        self.db.query(Stopwatch).filter(
            Stopwatch.id == stopwatch_id,
            Stopwatch.deleted_at.is_(None)
        ).update(
            {Stopwatch.deleted_at: now},
            synchronize_session=False
        )

    def transaction(self, name="transaction"):
        return transaction(self.db, name)


class InMemoryStopwatchRepository(StopwatchRepository):
    """
    以 dict 保存的 Repository

    find_* 回傳的是副本，呼叫者修改後必須 save 才會生效，
    行為和 Session 的 commit 一致：transaction 失敗時不會留下半套修改
    """

    def __init__(self):
        self._rows: Dict[int, Stopwatch] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def find_by_id(self, stopwatch_id, for_update=False):
        with self._lock:
            row = self._rows.get(stopwatch_id)
            if row is None or row.deleted_at is not None:
                return None
            return self._copy(row)

    def find_all_ordered(self):
        with self._lock:
            return [
                self._copy(row)
                for _, row in sorted(self._rows.items())
                if row.deleted_at is None
            ]

    def save(self, stopwatch):
        with self._lock:
            if stopwatch.id is None:
                stopwatch.id = self._next_id
                self._next_id += 1
                stopwatch.created_at = datetime.now(timezone.utc)
            stopwatch.updated_at = datetime.now(timezone.utc)
            self._rows[stopwatch.id] = self._copy(stopwatch)
            return stopwatch

    def soft_delete(self, stopwatch_id, now):
        with self._lock:
            row = self._rows.get(stopwatch_id)
            if row is not None and row.deleted_at is None:
                row.deleted_at = now

    def all_rows(self) -> List[Stopwatch]:
        """包含已刪除的紀錄（測試 soft delete 用）"""
        with self._lock:
            return [self._copy(row) for _, row in sorted(self._rows.items())]

    @contextmanager
    def transaction(self, name="transaction"):
        yield self

    @staticmethod
    def _copy(row: Stopwatch) -> Stopwatch:
        return Stopwatch(
            id=row.id,
            name=row.name,
            is_running=row.is_running,
            elapsed=row.elapsed,
            start_time=row.start_time,
            created_at=row.created_at,
            updated_at=row.updated_at,
            deleted_at=row.deleted_at,
        )
