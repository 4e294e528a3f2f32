import sqlite3
from typing import List, Sequence

import database
from errors import PersistenceFailure
from ingestion.headers import WeekColumn
from ingestion.rows import parse_score
from models.result import WeekResult
from models.student import CourseEnrollment, Student


def build_results(row: Sequence[str], week_columns: Sequence[WeekColumn]) -> List[WeekResult]:
    return [
        WeekResult(week=column.label, score=parse_score(row[column.index] if column.index < len(row) else None))
        for column in week_columns
    ]


def apply_course_results(student: Student, course_id: str, results: Sequence[WeekResult]) -> CourseEnrollment:
    """The enrollment as it should look after the merge.

    An existing enrollment keeps its metadata and gets its results replaced
    wholesale; otherwise a bare enrollment (no course name or mentor) is made.
    """
    existing = student.find_course(course_id)
    if existing is None:
        return CourseEnrollment(course_id=course_id, results=list(results))
    return existing.model_copy(update={'results': list(results)})


def merge_course_results(student: Student, course_id: str, results: Sequence[WeekResult],
                         store=database) -> CourseEnrollment:
    enrollment = apply_course_results(student, course_id, results)
    try:
        return store.save_enrollment_results(student.id, enrollment)
    except sqlite3.Error as e:
        raise PersistenceFailure(f'Could not save {course_id} results for {student.roll_number}: {e}') from e
