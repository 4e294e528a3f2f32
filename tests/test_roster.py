import io

import pandas as pd
import pytest

from errors import EmptyOrMalformedInput
from ingestion.roster import import_roster, map_roster_columns

SHEET = 'ID,Name,Branch,Year,Email Id,Course Id,Course Name,NPTEL SUBJECT MENTOR\n'


def test_roster_headers():
    columns = map_roster_columns(['ID', 'Name', 'Email  Id', 'Course Id', 'NPTEL SUBJECT MENTOR'])
    assert columns['roll_number'] == 0
    assert columns['email'] == 2
    assert columns['course_id'] == 3
    assert columns['subject_mentor'] == 4
    assert columns['branch'] is None


def test_import_creates_students_with_enrollments(db):
    data = (
        SHEET
        + '21cs001,Asha,CSE,III,Asha@college.ac.in,NOC25-CS52,DSA,Dr. Rao\n'
        + '21ME002,Ravi,ME,II,,noc25-me67,Fluids,\n'
    ).encode()

    report = import_roster('enrollments.csv', data)

    assert report['successful'] == 2
    assert report['created'] == 2
    assert report['failed'] == 0

    asha, ravi = db.list_students()
    assert asha.roll_number == '21CS001'
    assert asha.email == 'asha@college.ac.in'
    assert asha.courses[0].course_id == 'noc25-cs52'
    assert asha.courses[0].subject_mentor == 'Dr. Rao'
    assert ravi.email == '21me002@college.ac.in'
    assert ravi.courses[0].subject_mentor is None


def test_import_adds_courses_to_existing_students(db, make_student):
    make_student('21CS001', 'asha@college.ac.in', courses=[
        {'course_id': 'noc25-cs52', 'course_name': 'DSA', 'results': [{'week': 'Week 1 Assignment', 'score': 7}]},
    ])
    data = (
        SHEET
        + '21CS001,Asha,CSE,III,asha@college.ac.in,noc25-cs52,DSA again,\n'
        + '21CS001,Asha,CSE,III,asha@college.ac.in,noc25-ee11,Circuits,\n'
    ).encode()

    report = import_roster('enrollments.csv', data)

    assert report['successful'] == 2
    assert report['created'] == 0
    assert report['updated'] == 2
    student = db.list_students()[0]
    assert [c.course_id for c in student.courses] == ['noc25-cs52', 'noc25-ee11']
    assert student.find_course('noc25-cs52').course_name == 'DSA'
    assert student.find_course('noc25-cs52').results[0].score == 7


def test_bad_rows_are_reported_per_row(db):
    data = (
        SHEET
        + ',Nobody,CSE,III,x@college.ac.in,noc25-cs52,DSA,\n'
        + '21CS009,Kiran,CSE,III,,noc25-cs52,,\n'
        + '21CS010,Meera,CSE,III,,,,\n'
    ).encode()

    report = import_roster('enrollments.csv', data)

    assert report['successful'] == 1
    assert report['failed'] == 2
    errors = {e['row']: e for e in report['errors']}
    assert errors[1]['stage'] == 'identified'
    assert errors[1]['reason'] == 'Both email and roll number are missing'
    assert 'course_name' in errors[2]['reason']
    assert db.list_students()[0].roll_number == '21CS010'


def test_excel_sheet(db):
    frame = pd.DataFrame({
        'ID': ['21CE001'],
        'Name': ['Asha'],
        'Email Id': ['asha@college.ac.in'],
        'Course Id': ['noc25-ce38'],
        'Course Name': ['Surveying'],
    })
    buf = io.BytesIO()
    frame.to_excel(buf, index=False)

    report = import_roster('enrollments.xlsx', buf.getvalue())

    assert report['successful'] == 1
    assert db.list_students()[0].courses[0].course_name == 'Surveying'


def test_empty_sheet():
    with pytest.raises(EmptyOrMalformedInput):
        import_roster('enrollments.csv', SHEET.encode())
