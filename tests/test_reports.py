import reports


def _course(course_id, mentor=None, **scores):
    return {
        'course_id': course_id,
        'course_name': course_id.upper(),
        'subject_mentor': mentor,
        'results': [{'week': f'Week {w[1:]} Assignment', 'score': s} for w, s in scores.items()],
    }


def test_branch_and_term_of_course_id():
    assert reports.branch_of('noc25-cs52') == 'CS'
    assert reports.branch_of('noc25-ece101') == 'ECE'
    assert reports.term_of('noc25-cs52') == 'NOC25'


def test_unsubmitted_counts_missing_and_zero(db, make_student):
    make_student('21CS001', name='Asha', branch='CSE', year='III', courses=[_course('noc25-cs52', w1=8)])
    make_student('21CS002', name='Ravi', branch='CSE', year='II', courses=[_course('noc25-cs52', w1=0)])
    make_student('21CS003', name='Kiran', branch='ECE', year='III', courses=[_course('noc25-cs52', w2=5)])
    make_student('21CS004', courses=[_course('noc25-me67')])

    missing = reports.unsubmitted_students('noc25-cs52', 'week 01')
    assert [s.roll_number for s in missing] == ['21CS002', '21CS003']
    assert all(len(s.courses) == 1 for s in missing)

    assert [s.roll_number for s in reports.unsubmitted_students('noc25-cs52', 1, year='III')] == ['21CS003']
    assert [s.roll_number for s in reports.unsubmitted_students('NOC25-CS52', 'Week 1', branch='CSE')] == ['21CS002']


def test_unsubmitted_filters_by_mentor(db, make_student):
    make_student('21CS001', courses=[_course('noc25-cs52', mentor='Dr. Rao')])
    make_student('21CS002', courses=[_course('noc25-cs52', mentor='Dr. Iyer')])

    missing = reports.unsubmitted_students('noc25-cs52', 'Week 1', faculty_name='Dr. Rao')
    assert [s.roll_number for s in missing] == ['21CS001']


def test_course_summary(db, make_student):
    make_student('21CS001', name='Asha', branch='CSE', courses=[_course('noc25-cs52', w1=8)])
    make_student('21CS002', name='Ravi', branch='CSE', courses=[_course('noc25-cs52')])
    make_student('21EC003', name='Kiran', branch='ECE', courses=[_course('noc25-cs52', w1=0)])
    make_student('21EC004', name='Meera', branch='ECE', courses=[_course('noc25-cs52', w1=3)])

    summary = reports.course_unsubmitted_summary('NOC25-CS52', 'Week 01')

    assert summary['courseId'] == 'noc25-cs52'
    assert summary['week'] == 'Week 1 Assignment'
    stats = summary['stats']
    assert stats['totalEnrolled'] == 4
    assert stats['totalUnsubmitted'] == 2
    assert stats['submissionRate'] == '50.00'
    assert [(b['branch'], b['count']) for b in stats['byBranch']] == [('CSE', 1), ('ECE', 1)]
    assert stats['byBranch'][0]['students'][0]['rollNumber'] == '21CS002'


def test_course_summary_for_empty_course(db):
    stats = reports.course_unsubmitted_summary('noc25-zz1', 'Week 1')['stats']
    assert stats['totalEnrolled'] == 0
    assert stats['submissionRate'] == '0.00'
    assert stats['byBranch'] == []


def test_upload_statistics(db, make_student):
    make_student('21CS001', courses=[_course('noc25-cs52', w1=8, w2=0), _course('noc25-me67')])
    make_student('21CS002', courses=[_course('noc25-cs52', w1=5)])

    stats = reports.upload_statistics(db.list_students())

    assert stats['totalStudents'] == 2
    assert stats['totalSubmissions'] == 3
    assert stats['courseStats']['noc25-cs52'] == {
        'totalStudents': 2, 'studentsWithScores': 2, 'totalSubmissions': 3, 'branch': 'CS',
    }
    assert stats['courseStats']['noc25-me67']['studentsWithScores'] == 0
    assert stats['weekStats']['Week 1 Assignment']['totalStudents'] == 2
    assert stats['branchStats']['ME']['totalStudents'] == 1


def test_course_statistics(db, make_student):
    make_student('21CS001', courses=[_course('noc25-cs52', w1=8), _course('noc25-me67', w1=0)])
    make_student('21CS002', courses=[_course('noc25-cs52')])

    stats = reports.course_statistics(db.list_students())

    assert stats['totalCourses'] == 2
    assert [c['courseId'] for c in stats['courses']] == ['noc25-cs52', 'noc25-me67']
    cs = stats['courses'][0]
    assert cs['submissionStats'] == {'totalStudents': 2, 'submittedCount': 1, 'unsubmittedCount': 1}
    assert stats['coursesByType']['NOC25']['totalEnrollments'] == 3
    assert stats['submissionSummary'] == {'totalStudents': 3, 'submitted': 1, 'unsubmitted': 2}


def test_branch_enrollments_and_weekly_stats(db, make_student):
    make_student('21CS001', courses=[_course('noc25-cs52', 'Dr. Rao', w2=4, w1=8), _course('noc25-cs60')])
    make_student('21CS002', courses=[_course('noc25-cs52', 'Dr. Iyer', w1=0)])

    students = db.list_students()
    assert reports.branch_enrollments(students) == {'CS': {'totalStudents': 3, 'uniqueStudents': 2}}

    weeks = reports.weekly_stats(students, course_id='noc25-cs52')
    assert weeks == [
        {'week': 'Week 1 Assignment', 'submitted': 1, 'unsubmitted': 1},
        {'week': 'Week 2 Assignment', 'submitted': 1, 'unsubmitted': 0},
    ]
    assert reports.weekly_stats(students, faculty_name='Dr. Iyer') == [
        {'week': 'Week 1 Assignment', 'submitted': 0, 'unsubmitted': 1},
    ]
