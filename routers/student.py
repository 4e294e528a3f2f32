import logging
import sqlite3
from typing import List, Optional

from fastapi import APIRouter, File, HTTPException, Query, UploadFile, status

import database
import reports
from errors import BatchError
from ingestion.headers import canonical_week_label
from ingestion.reconciler import ingest_week_scores
from ingestion.roster import import_roster
from logging_setup import BULK_LOGGER
from models.student import Student, StudentCreate, StudentUpdate

router = APIRouter()

logger = logging.getLogger(__name__)
bulk_logger = logging.getLogger(f'{BULK_LOGGER}.routes')


def _read_upload(file: Optional[UploadFile], what: str) -> bytes:
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail={'error': f'Please upload {what}'})
    return file.file.read()


# ---------------------------------------------------------
# CREATE STUDENT
# ---------------------------------------------------------
@router.post("/", response_model=Student, status_code=status.HTTP_201_CREATED)
def create_student(student: StudentCreate):
    try:
        return database.insert_student(student)
    except sqlite3.IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"The student '{student.roll_number}' already exists."
        )


# ---------------------------------------------------------
# BULK CREATE STUDENTS FROM THE ENROLLMENT SHEET
# ---------------------------------------------------------
@router.post("/bulk")
def bulk_create_students(file: Optional[UploadFile] = File(None)):
    data = _read_upload(file, 'an Excel file')
    bulk_logger.info('Starting bulk upload process...')
    try:
        return import_roster(file.filename, data, log=bulk_logger)
    except BatchError as e:
        raise HTTPException(status_code=400, detail=e.details())


# ---------------------------------------------------------
# DELETE ALL STUDENTS
# ---------------------------------------------------------
@router.delete("/bulk")
def delete_all_students():
    bulk_logger.info('Starting bulk delete process...')
    deleted = database.delete_all_students()
    bulk_logger.info('Bulk delete completed. Deleted %d students', deleted)
    return {"message": "Bulk delete successful", "deletedCount": deleted}


# ---------------------------------------------------------
# WEEKLY SCORE IMPORT
# ---------------------------------------------------------
@router.post("/updateweekscore")
def update_week_scores(file: Optional[UploadFile] = File(None)):
    data = _read_upload(file, 'a CSV file')
    try:
        outcome = ingest_week_scores(file.filename, data, log=bulk_logger)
    except BatchError as e:
        bulk_logger.error('Rejected %s: %s', file.filename, e)
        raise HTTPException(status_code=400, detail=e.details())

    if outcome.failures:
        bulk_logger.error('Failed entries: %s', [f.model_dump(mode='json') for f in outcome.failures])
    return outcome.to_report()


# ---------------------------------------------------------
# RESET RESULTS
# ---------------------------------------------------------
@router.post("/reset-results")
@router.post("/reset-all-scores")
def reset_results():
    bulk_logger.info('Starting course results reset process...')
    modified = database.reset_all_course_results()
    bulk_logger.info('Reset completed. Modified %d students', modified)
    return {"message": "Course results reset successful", "modifiedCount": modified}


# ---------------------------------------------------------
# REPORTS
# ---------------------------------------------------------
@router.get("/unsubmitted")
def get_unsubmitted(
        week: Optional[str] = None,
        course_id: Optional[str] = Query(None, alias="courseId"),
        year: Optional[str] = None,
        branch: Optional[str] = None,
        faculty_name: Optional[str] = Query(None, alias="facultyName"),
):
    if not course_id or not week:
        raise HTTPException(status_code=400, detail={
            'error': 'courseId and week are required parameters',
            'receivedParams': {'courseId': course_id, 'week': week, 'year': year,
                               'branch': branch, 'facultyName': faculty_name},
        })

    logger.info('Fetching unsubmitted students - courseId: %s, week: %s, year: %s, branch: %s, faculty: %s',
                course_id, week, year, branch, faculty_name)
    students = reports.unsubmitted_students(course_id, week, year, branch, faculty_name)
    logger.info('Found %d unsubmitted students', len(students))
    return {"count": len(students), "week": canonical_week_label(week), "students": students}


@router.get("/upload-statistics")
def get_upload_statistics():
    return reports.upload_statistics(database.list_students())


@router.get("/courses/stats")
def get_course_statistics():
    logger.info('Fetching course statistics...')
    return reports.course_statistics(database.list_students())


@router.get("/courses/{course_id}/unsubmitted")
def get_course_unsubmitted(course_id: str, week: Optional[str] = None):
    if not week:
        raise HTTPException(status_code=400, detail={'error': 'Week parameter is required'})
    logger.info('Fetching unsubmitted students for course %s, week %s', course_id, week)
    return reports.course_unsubmitted_summary(course_id, week)


# ---------------------------------------------------------
# READ / UPDATE / DELETE SINGLE STUDENTS
# ---------------------------------------------------------
@router.get("/", response_model=List[Student])
def get_students():
    return database.list_students()


@router.get("/{student_id}", response_model=Student)
def get_student(student_id: int):
    student = database.get_student(student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


@router.put("/{student_id}", response_model=Student)
def update_student(student_id: int, changes: StudentUpdate):
    try:
        student = database.update_student(student_id, changes)
    except sqlite3.IntegrityError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if student is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


@router.delete("/{student_id}", response_model=dict)
def delete_student(student_id: int):
    if not database.delete_student(student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    return {"message": "Student deleted successfully"}
