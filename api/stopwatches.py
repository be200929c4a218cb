"""
Stopwatch API Endpoints

職責：
1. 解析路徑中的 id（必須是正整數）
2. 呼叫 StopwatchManager
3. 把業務異常轉成 HTTP status：NotFound -> 404，其他業務錯誤 -> 400
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from models import MAX_INTEGER
from schemas import StopwatchCreate, StopwatchUpdate, StopwatchResponse
from core.clock import Clock, SystemClock
from core.repository import SqlStopwatchRepository
from core.stopwatch_manager import StopwatchManager
from core.exceptions import (
    StopwatchNotFound,
    InvalidStopwatchState,
    StopwatchValidationError
)

router = APIRouter(prefix="/stopwatch", tags=["stopwatch"])
logger = logging.getLogger(__name__)


def get_clock() -> Clock:
    """FastAPI dependency：測試可以用 dependency_overrides 換掉"""
    return SystemClock()


def get_stopwatch_manager(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
) -> StopwatchManager:
    return StopwatchManager(SqlStopwatchRepository(db), clock)


def parse_stopwatch_id(raw_id: str) -> int:
    """
    解析路徑 id

    只接受 ASCII 數字：int() 會接受 "1_0"、前後空白與全形數字

    異常：
        StopwatchValidationError: 不是正整數
        StopwatchNotFound: 超出 INTEGER 欄位範圍，不可能存在
    """
    if not (raw_id.isascii() and raw_id.isdigit()):
        raise StopwatchValidationError(f"Stopwatch #{raw_id} is not a number")
    stopwatch_id = int(raw_id)
    if stopwatch_id <= 0:
        raise StopwatchValidationError(f"Stopwatch #{raw_id} is not a number")
    if stopwatch_id > MAX_INTEGER:
        raise StopwatchNotFound(raw_id)
    return stopwatch_id


@router.get("", response_model=List[StopwatchResponse])
def list_stopwatches(manager: StopwatchManager = Depends(get_stopwatch_manager)):
    """取得所有 Stopwatch（依 id 遞增）"""
    try:
        return manager.list_stopwatches()
    except Exception as e:
        logger.error(f"Failed to list stopwatches: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("", response_model=StopwatchResponse)
def create_stopwatch(
    stopwatch_data: StopwatchCreate,
    manager: StopwatchManager = Depends(get_stopwatch_manager)
):
    """建立新的 Stopwatch（stopped, elapsed=0）"""
    try:
        return manager.create(stopwatch_data.name)

    except StopwatchValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create stopwatch: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/start/{stopwatch_id}", response_model=StopwatchResponse)
def start_stopwatch(
    stopwatch_id: str,
    manager: StopwatchManager = Depends(get_stopwatch_manager)
):
    """
    開始計時

    前置條件：
    - Stopwatch 必須存在
    - Stopwatch 不能已經在執行
    """
    try:
        return manager.start(parse_stopwatch_id(stopwatch_id))

    except StopwatchNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InvalidStopwatchState, StopwatchValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to start stopwatch {stopwatch_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/stop/{stopwatch_id}", response_model=StopwatchResponse)
def stop_stopwatch(
    stopwatch_id: str,
    manager: StopwatchManager = Depends(get_stopwatch_manager)
):
    """
    停止計時，把這次 run 的秒數累加到 elapsed

    前置條件：
    - Stopwatch 必須存在
    - Stopwatch 必須正在執行
    """
    try:
        return manager.stop(parse_stopwatch_id(stopwatch_id))

    except StopwatchNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InvalidStopwatchState, StopwatchValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to stop stopwatch {stopwatch_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.patch("/{stopwatch_id}", response_model=StopwatchResponse)
def update_stopwatch(
    stopwatch_id: str,
    update_data: StopwatchUpdate,
    manager: StopwatchManager = Depends(get_stopwatch_manager)
):
    """
    部分更新 Stopwatch（name 和 / 或 elapsed）

    注意：
    - running 時不能覆寫 elapsed（400）
    - 沒有提供或為 null 的欄位不會被修改
    """
    try:
        return manager.update(
            parse_stopwatch_id(stopwatch_id),
            name=update_data.name,
            elapsed=update_data.elapsed
        )

    except StopwatchNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InvalidStopwatchState, StopwatchValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update stopwatch {stopwatch_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/{stopwatch_id}", response_model=str)
def delete_stopwatch(
    stopwatch_id: str,
    manager: StopwatchManager = Depends(get_stopwatch_manager)
):
    """Soft delete 一個已停止的 Stopwatch，回傳 "ok" """
    try:
        return manager.delete(parse_stopwatch_id(stopwatch_id))

    except StopwatchNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InvalidStopwatchState, StopwatchValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to delete stopwatch {stopwatch_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
