from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WeekResultBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    week: str = Field(min_length=1)
    score: float = Field(default=0, ge=0)


class WeekResultCreate(WeekResultBase):
    pass


class WeekResult(WeekResultBase):
    submitted_at: Optional[datetime] = None
