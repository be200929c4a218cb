"""
Request / Response Schemas

邊界驗證在這裡完成（空名稱、elapsed 範圍與型別），未知欄位直接忽略
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from models import MAX_INTEGER


class StopwatchCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, description="Name of the stopwatch", examples=["My stopwatch"])


class StopwatchUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(None, min_length=1, description="Name of the stopwatch")
    elapsed: Optional[int] = Field(
        None,
        ge=0,
        le=MAX_INTEGER,
        strict=True,
        description="Elapsed time in seconds (overrides server stored value)",
        examples=[1000]
    )


class StopwatchResponse(BaseModel):
    """
    對外的 Stopwatch view

    elapsed 是有效 elapsed：running 時包含目前這次 run 的秒數
    """
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., examples=[1])
    name: str = Field(..., examples=["My stopwatch"])
    is_running: bool = Field(..., alias="isRunning")
    elapsed: int = Field(..., description="Elapsed time in seconds", examples=[1000])
