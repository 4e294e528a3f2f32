"""Run the score import over every row of an upload.

Rows are independent: each one is identified, matched to a student and
merged on its own, and its failure is recorded against the row instead of
stopping the batch. Rows naming the same student are kept together and run
in file order so the last of them decides the stored scores.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import config
import database
from errors import MissingIdentity, NoScoreColumnsFound, RowError
from ingestion.course_resolver import resolve_course
from ingestion.headers import IdentityColumns, WeekColumn, find_week_columns, locate_identity_columns
from ingestion.matcher import clean_identity, match_student
from ingestion.merger import build_results, merge_course_results
from ingestion.rows import read_upload_rows
from logging_setup import BULK_LOGGER
from models.report import BatchOutcome, RowFailure, RowIdentity, RowOutcome, RowStage


logger = logging.getLogger(f'{BULK_LOGGER}.reconciler')

RowTask = Tuple[int, Sequence[str]]


def _cell(row: Sequence[str], index: Optional[int]) -> str:
    if index is None or index >= len(row):
        return ''
    return row[index]


def row_identity(row: Sequence[str], columns: IdentityColumns) -> RowIdentity:
    return clean_identity(_cell(row, columns.email), _cell(row, columns.roll_number))


def group_key(identity: RowIdentity, row_number: int) -> str:
    if identity.roll_number:
        return f'roll:{identity.roll_number}'
    if identity.email:
        return f'email:{identity.email}'
    return f'row:{row_number}'


def fan_out(groups: Sequence[List[RowTask]], handle: Callable[[int, Sequence[str]], RowOutcome],
            max_workers: Optional[int] = None) -> List[RowOutcome]:
    """Run ``handle`` over every row with bounded parallelism.

    Rows inside one group run sequentially, in order. Returns every outcome
    sorted by row number once all rows are done.
    """
    def run_group(group):
        return [handle(row_number, row) for row_number, row in group]

    outcomes = []
    if not groups:
        return outcomes
    workers = min(max_workers or config.INGEST_MAX_WORKERS, len(groups))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(run_group, group) for group in groups]
        for future in as_completed(futures):
            outcomes.extend(future.result())

    outcomes.sort(key=lambda outcome: outcome.row_number)
    return outcomes


def process_row(row_number: int, row: Sequence[str], course_id: str, week_columns: Sequence[WeekColumn],
                identity_columns: IdentityColumns, store=database,
                log: Optional[logging.Logger] = None) -> RowOutcome:
    log = log or logger
    identity = row_identity(row, identity_columns)
    stage = RowStage.IDENTIFIED
    try:
        if not identity.email and not identity.roll_number:
            raise MissingIdentity()
        results = build_results(row, week_columns)
        stage = RowStage.MATCHED
        student = match_student(identity, store, log)
        log.info('Found student: %s (%s)', student.roll_number, student.email)
        stage = RowStage.MERGED
        merge_course_results(student, course_id, results, store)
    except RowError as e:
        log.error('Row %d failed at %s: %s', row_number, stage.value, e)
        return RowOutcome(row_number=row_number, identity=identity, success=False, stage=stage, reason=str(e))
    except Exception as e:
        log.exception('Row %d failed unexpectedly at %s', row_number, stage.value)
        return RowOutcome(row_number=row_number, identity=identity, success=False, stage=stage,
                          reason=f'Unexpected error: {e}')

    log.info('Updated course %s for student %s', course_id, student.roll_number)
    return RowOutcome(row_number=row_number, identity=identity, success=True, stage=stage, student_id=student.id)


def reconcile(rows: Sequence[Sequence[str]], course_id: str, week_columns: Sequence[WeekColumn],
              identity_columns: IdentityColumns, store=database, log: Optional[logging.Logger] = None,
              max_workers: Optional[int] = None) -> BatchOutcome:
    """Merge every data row (header excluded) into ``course_id``.

    Row numbers in the outcome count data rows from 1.
    """
    log = log or logger

    groups: Dict[str, List[RowTask]] = {}
    for row_number, row in enumerate(rows, start=1):
        key = group_key(row_identity(row, identity_columns), row_number)
        groups.setdefault(key, []).append((row_number, row))

    outcomes = fan_out(
        list(groups.values()),
        lambda row_number, row: process_row(row_number, row, course_id, week_columns,
                                            identity_columns, store, log),
        max_workers,
    )

    failures = [
        RowFailure(row_number=o.row_number, identity=o.identity, stage=o.stage, reason=o.reason)
        for o in outcomes if not o.success
    ]
    outcome = BatchOutcome(
        course_id=course_id,
        total=len(outcomes),
        success_count=sum(1 for o in outcomes if o.success),
        failures=failures,
    )
    log.info('Processing completed for %s. Success: %d, Failed: %d',
             course_id, outcome.success_count, outcome.failure_count)
    return outcome


def ingest_week_scores(filename: str, data: bytes, store=database, log: Optional[logging.Logger] = None,
                       max_workers: Optional[int] = None, delimiter: str = ',') -> BatchOutcome:
    """Resolve, parse and merge one weekly-score export.

    Filename, empty-file and missing-column problems raise before any student
    is looked up.
    """
    log = log or logger
    log.info('Processing file: %s (%d bytes)', filename, len(data or b''))

    course = resolve_course(filename)
    log.info('Processing for course: %s', course.course_id)

    rows = read_upload_rows(filename, data, delimiter)
    headers = rows[0]
    week_columns = find_week_columns(headers)
    if not week_columns:
        raise NoScoreColumnsFound(headers)
    log.info('Found %d week columns in %s', len(week_columns), headers)

    identity_columns = locate_identity_columns(headers)
    return reconcile(rows[1:], course.course_id, week_columns, identity_columns, store, log, max_workers)
