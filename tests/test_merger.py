import sqlite3

import pytest

from errors import PersistenceFailure
from ingestion.headers import WeekColumn
from ingestion.merger import apply_course_results, build_results, merge_course_results
from models.result import WeekResult
from models.student import Student


def _weeks(student, course_id):
    return [(r.week, r.score) for r in student.find_course(course_id).results]


def test_build_results_reads_each_week_column():
    columns = [WeekColumn('Week 1 Assignment', 1), WeekColumn('Week 2 Assignment', 2), WeekColumn('Week 3 Assignment', 5)]
    results = build_results(['x', '10', 'n/a'], columns)
    assert [(r.week, r.score) for r in results] == [
        ('Week 1 Assignment', 10.0),
        ('Week 2 Assignment', 0.0),
        ('Week 3 Assignment', 0.0),
    ]


def test_apply_replaces_results_and_keeps_metadata():
    student = Student(id=1, roll_number='21CS001', courses=[{
        'id': 3, 'course_id': 'noc25-cs52', 'course_name': 'DSA', 'subject_mentor': 'Dr. Rao',
        'results': [{'week': 'Week 1 Assignment', 'score': 4}, {'week': 'Week 2 Assignment', 'score': 6}],
    }])
    enrollment = apply_course_results(student, 'NOC25-CS52', [WeekResult(week='Week 3 Assignment', score=9)])
    assert enrollment.id == 3
    assert enrollment.course_name == 'DSA'
    assert [(r.week, r.score) for r in enrollment.results] == [('Week 3 Assignment', 9.0)]


def test_apply_creates_a_bare_enrollment():
    enrollment = apply_course_results(Student(id=1, roll_number='X'), 'noc25-me67', [])
    assert enrollment.id is None
    assert enrollment.course_id == 'noc25-me67'
    assert enrollment.course_name is None
    assert enrollment.subject_mentor is None


def test_merge_into_existing_enrollment(db, make_student):
    student = make_student('21CS001', courses=[
        {'course_id': 'noc25-cs52', 'course_name': 'DSA', 'subject_mentor': 'Dr. Rao',
         'results': [{'week': 'Week 1 Assignment', 'score': 1}]},
        {'course_id': 'noc25-me67', 'course_name': 'Fluids',
         'results': [{'week': 'Week 1 Assignment', 'score': 8}]},
    ])

    merge_course_results(student, 'noc25-cs52', [WeekResult(week='Week 2 Assignment', score=7)])

    stored = db.get_student(student.id)
    assert [c.course_id for c in stored.courses] == ['noc25-cs52', 'noc25-me67']
    assert stored.find_course('noc25-cs52').course_name == 'DSA'
    assert stored.find_course('noc25-cs52').subject_mentor == 'Dr. Rao'
    assert _weeks(stored, 'noc25-cs52') == [('Week 2 Assignment', 7.0)]
    assert _weeks(stored, 'noc25-me67') == [('Week 1 Assignment', 8.0)]


def test_merge_appends_missing_enrollment(db, make_student):
    student = make_student('21CS001')
    merge_course_results(student, 'noc25-ce38', [WeekResult(week='Week 1 Assignment', score=5)])

    stored = db.get_student(student.id)
    assert len(stored.courses) == 1
    assert stored.courses[0].course_id == 'noc25-ce38'
    assert stored.courses[0].course_name is None
    assert stored.courses[0].status == 'active'


def test_merge_is_idempotent(db, make_student):
    student = make_student('21CS001')
    results = [WeekResult(week='Week 1 Assignment', score=5), WeekResult(week='Week 2 Assignment', score=0)]

    merge_course_results(student, 'noc25-cs52', results)
    once = db.get_student(student.id)
    merge_course_results(db.get_student(student.id), 'noc25-cs52', results)
    merge_course_results(student, 'noc25-cs52', results)
    twice = db.get_student(student.id)

    assert len(twice.courses) == 1
    assert _weeks(twice, 'noc25-cs52') == _weeks(once, 'noc25-cs52')


def test_storage_error_becomes_persistence_failure():
    class BrokenStore:
        def save_enrollment_results(self, student_id, enrollment):
            raise sqlite3.OperationalError('database is locked')

    with pytest.raises(PersistenceFailure, match='database is locked'):
        merge_course_results(Student(id=1, roll_number='X'), 'noc25-cs52', [], BrokenStore())
