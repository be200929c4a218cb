from contextlib import contextmanager
from functools import lru_cache
from typing import List
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from pydantic_settings import BaseSettings

from core.exceptions import StopwatchException

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    database_url: str = "sqlite:///./stopwatch.db"
    expose_docs: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings():
    return Settings()


settings = get_settings()


def build_engine(database_url: str, **kwargs):
    """
    建立 SQLAlchemy engine

    SQLite 需要 connect_args={"check_same_thread": False}，
    FastAPI 會在 threadpool 中執行同步 endpoint
    """
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(
        database_url,
        connect_args=connect_args,
        pool_pre_ping=True,
        **kwargs
    )


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """
    FastAPI dependency：提供 Database Session

    使用 yield 確保 session 在請求結束後會被關閉
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session, name: str = "transaction"):
    """
    Transaction context：確保資料庫操作的原子性

    使用方式：
        with transaction(db, "stop"):
            stopwatch = with_stopwatch_lock(stopwatch_id, db).first()
            stopwatch.is_running = False
            # 不需要手動 commit

    如果區塊內發生異常：
        - 自動 rollback
        - 異常會被重新拋出（讓上層處理）

    注意：
        - 區塊內不要手動 commit
        - 取得的 row lock 會在 commit / rollback 時釋放
    """
    try:
        yield db
        db.commit()
    except StopwatchException as e:
        logger.debug(f"Rolling back {name}: {e}")
        db.rollback()
        raise
    except Exception as e:
        logger.error(f"Transaction failed in {name}: {e}", exc_info=True)
        db.rollback()
        raise
