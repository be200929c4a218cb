"""
ORM Models

Stopwatch 是唯一的 entity：
- elapsed 只儲存「停止時」累積的秒數
- running 時的有效 elapsed 由 start_time 即時計算，不寫回資料庫
- deleted_at 不為 NULL 代表已 soft delete，所有查詢都要排除
"""
from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from database import Base

# INTEGER 欄位上限（PostgreSQL 32-bit）
MAX_INTEGER = 2 ** 31 - 1


class Stopwatch(Base):
    __tablename__ = "stopwatch"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)

    is_running = Column(Boolean, nullable=False, default=False)

    # 累積秒數（不含目前這次 run）
    elapsed = Column(Integer, nullable=False, default=0)

    # 只有 running 時才有值
    start_time = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    def __repr__(self):
        return (
            f"<Stopwatch #{self.id} {self.name!r} running={self.is_running} "
            f"elapsed={self.elapsed}>"
        )
