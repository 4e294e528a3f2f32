import logging
import sqlite3
from typing import Dict, Optional, Sequence

from pydantic import ValidationError

import config
import database
from errors import MissingIdentity, RowError
from ingestion.matcher import clean_identity
from ingestion.reconciler import fan_out, group_key
from ingestion.rows import read_upload_rows
from logging_setup import BULK_LOGGER
from models.report import RowOutcome, RowStage
from models.student import CourseEnrollmentCreate, StudentCreate


logger = logging.getLogger(f'{BULK_LOGGER}.roster')

# header aliases as they appear in the enrollment sheet
ROSTER_COLUMNS = {
    'roll_number': ('id', 'roll number', 'roll no', 'roll'),
    'name': ('name', 'student name'),
    'branch': ('branch',),
    'year': ('year',),
    'email': ('email id', 'email', 'e-mail'),
    'course_id': ('course id',),
    'course_name': ('course name',),
    'subject_mentor': ('nptel subject mentor', 'subject mentor', 'mentor'),
}


def map_roster_columns(headers: Sequence[str]) -> Dict[str, Optional[int]]:
    normalized = [' '.join((h or '').lower().split()) for h in headers]
    columns = {}
    for field, aliases in ROSTER_COLUMNS.items():
        columns[field] = next((normalized.index(a) for a in aliases if a in normalized), None)
    return columns


def _cell(row: Sequence[str], index: Optional[int]) -> Optional[str]:
    if index is None or index >= len(row):
        return None
    return row[index] or None


def roster_student(row: Sequence[str], columns: Dict[str, Optional[int]]) -> StudentCreate:
    def cell(field):
        return _cell(row, columns.get(field))

    identity = clean_identity(cell('email'), cell('roll_number'))
    if not identity.roll_number:
        raise MissingIdentity()

    courses = []
    if cell('course_id'):
        courses.append(CourseEnrollmentCreate(
            course_id=cell('course_id'),
            course_name=cell('course_name'),
            subject_mentor=cell('subject_mentor'),
        ))

    return StudentCreate(
        roll_number=identity.roll_number,
        name=cell('name'),
        branch=cell('branch'),
        year=cell('year'),
        email=identity.email or f'{identity.roll_number.lower()}@{config.STUDENT_EMAIL_DOMAIN}',
        courses=courses,
    )


def process_roster_row(row_number: int, row: Sequence[str], columns: Dict[str, Optional[int]],
                       store=database, log: Optional[logging.Logger] = None) -> RowOutcome:
    log = log or logger
    identity = clean_identity(_cell(row, columns['email']), _cell(row, columns['roll_number']))
    stage = RowStage.IDENTIFIED
    try:
        student = roster_student(row, columns)
        stage = RowStage.MERGED
        log.info('Processing student: %s', student.roll_number)
        stored, created = store.upsert_roster_student(student)
    except ValidationError as e:
        reason = '; '.join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        log.error('Row %d rejected: %s', row_number, reason)
        return RowOutcome(row_number=row_number, identity=identity, success=False, stage=stage, reason=reason)
    except (RowError, sqlite3.Error) as e:
        log.error('Error processing row %d for student %s: %s', row_number, identity.roll_number, e)
        return RowOutcome(row_number=row_number, identity=identity, success=False, stage=stage, reason=str(e))

    log.info('%s student: %s', 'Created' if created else 'Updated', stored.roll_number)
    return RowOutcome(row_number=row_number, identity=identity, success=True, stage=stage,
                      student_id=stored.id, created=created)


def import_roster(filename: str, data: bytes, store=database, log: Optional[logging.Logger] = None,
                  max_workers: Optional[int] = None) -> dict:
    """Create or update students (and their enrollments) from an enrollment sheet."""
    log = log or logger
    log.info('File received: %s, size: %d bytes', filename, len(data or b''))

    rows = read_upload_rows(filename, data)
    columns = map_roster_columns(rows[0])
    log.info('Total rows in sheet: %d', len(rows) - 1)

    groups = {}
    for row_number, row in enumerate(rows[1:], start=1):
        key = group_key(clean_identity(None, _cell(row, columns['roll_number'])), row_number)
        groups.setdefault(key, []).append((row_number, row))

    outcomes = fan_out(
        list(groups.values()),
        lambda row_number, row: process_roster_row(row_number, row, columns, store, log),
        max_workers,
    )

    failed = [o for o in outcomes if not o.success]
    created = sum(1 for o in outcomes if o.success and o.created)
    log.info('Bulk upload completed. Successful: %d, Failed: %d', len(outcomes) - len(failed), len(failed))

    return {
        'message': f'Processed {len(outcomes)} students',
        'successful': len(outcomes) - len(failed),
        'failed': len(failed),
        'created': created,
        'updated': len(outcomes) - len(failed) - created,
        'errors': [
            {'row': o.row_number, 'identity': o.identity.model_dump(), 'stage': o.stage.value, 'reason': o.reason}
            for o in failed
        ],
    }
