"""
並發控制工具

同一個 stopwatch 的 read-modify-write 必須序列化，否則兩個同時的 start
都會看到 is_running=False。提供兩層鎖：

1. with_stopwatch_lock：PostgreSQL 的 SELECT ... FOR UPDATE（行級悲觀鎖）
2. KeyedLock：process 內以 id 為 key 的 threading.Lock
   （SQLite 不支援 FOR UPDATE，單一 process 部署靠這層）

不同 id 之間互不阻塞
"""
from contextlib import contextmanager
from typing import Dict, Hashable
import threading

from sqlalchemy.orm import Session, Query

from models import Stopwatch


def with_stopwatch_lock(stopwatch_id: int, db: Session) -> Query:
    """
    鎖定一個未刪除的 Stopwatch（行級鎖）

    範例：
        stopwatch = with_stopwatch_lock(stopwatch_id, db).first()
        if not stopwatch:
            raise StopwatchNotFound(stopwatch_id)
        stopwatch.is_running = True
        db.commit()

    注意：
        - nowait=False 表示如果鎖被佔用，會等待
        - 必須在 transaction 內使用（確保有 commit 或 rollback）
    """
    return db.query(Stopwatch).filter(
        Stopwatch.id == stopwatch_id,
        Stopwatch.deleted_at.is_(None)
    ).with_for_update(nowait=False)


class KeyedLock:
    """
    以 key 區分的互斥鎖

    使用方式：
        locks = KeyedLock()
        with locks.hold(stopwatch_id):
            ...  # 同一個 id 同時只有一個執行緒在這裡

    沒有人持有或等待的 key 會被移除，字典不會無限成長
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._waiters: Dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable):
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._waiters[key] = self._waiters.get(key, 0) + 1

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]

    def __len__(self):
        with self._guard:
            return len(self._locks)


# 全域共用：所有 request 的 StopwatchManager 都用同一組鎖
stopwatch_locks = KeyedLock()
