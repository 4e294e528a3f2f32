from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.result import WeekResult, WeekResultCreate


CourseStatus = Literal['active', 'completed', 'dropped']


def _unique_course_ids(courses):
    seen = set()
    for course in courses:
        key = course.course_id.lower()
        if key in seen:
            raise ValueError(f"duplicate course '{course.course_id}'")
        seen.add(key)
    return courses


class CourseEnrollmentBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    course_id: str
    course_name: Optional[str] = None
    subject_mentor: Optional[str] = None
    status: CourseStatus = 'active'

    @field_validator('course_id')
    @classmethod
    def lower_course_id(cls, value: str) -> str:
        if not value:
            raise ValueError('course_id is required')
        return value.lower()


class CourseEnrollmentCreate(CourseEnrollmentBase):
    # enrollments created through the API must name the course
    course_name: str = Field(min_length=1)
    results: List[WeekResultCreate] = []


class CourseEnrollment(CourseEnrollmentBase):
    id: Optional[int] = None
    registered_on: Optional[datetime] = None
    results: List[WeekResult] = []


class StudentBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = None
    roll_number: str
    branch: Optional[str] = None
    year: Optional[str] = None
    email: Optional[str] = None


class StudentCreate(StudentBase):
    courses: List[CourseEnrollmentCreate] = []

    @field_validator('courses')
    @classmethod
    def check_courses(cls, value):
        return _unique_course_ids(value)


class StudentUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = None
    roll_number: Optional[str] = None
    branch: Optional[str] = None
    year: Optional[str] = None
    email: Optional[str] = None
    courses: Optional[List[CourseEnrollmentCreate]] = None

    @field_validator('courses')
    @classmethod
    def check_courses(cls, value):
        if value is None:
            return value
        return _unique_course_ids(value)


class Student(StudentBase):
    id: int
    courses: List[CourseEnrollment] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def find_course(self, course_id: str) -> Optional[CourseEnrollment]:
        wanted = course_id.lower()
        for course in self.courses:
            if course.course_id.lower() == wanted:
                return course
        return None
