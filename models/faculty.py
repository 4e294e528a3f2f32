from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FacultyCourse(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    course_id: Optional[str] = None
    course_name: Optional[str] = None
    branch: Optional[str] = None


class FacultyBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    phone_number: str = 'Not Provided'
    courses: List[FacultyCourse] = []


class FacultyCreate(FacultyBase):
    pass


class Faculty(FacultyBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
