"""Submission completeness reports over stored enrollments."""
import re
from typing import Dict, List, Optional

import database
from ingestion.headers import canonical_week_label
from models.student import CourseEnrollment, Student


def branch_of(course_id: str) -> str:
    """'noc25-cs52' -> 'CS'"""
    _, _, code = (course_id or '').partition('-')
    return re.sub(r'\d+', '', code).upper()


def term_of(course_id: str) -> str:
    return (course_id or '').partition('-')[0].upper()


def week_score(course: CourseEnrollment, week_label: str) -> Optional[float]:
    for result in course.results:
        if result.week == week_label:
            return result.score
    return None


def is_unsubmitted(course: CourseEnrollment, week_label: str) -> bool:
    score = week_score(course, week_label)
    return score is None or score == 0


def unsubmitted_students(course_id: str, week, year: Optional[str] = None, branch: Optional[str] = None,
                         faculty_name: Optional[str] = None, store=database) -> List[Student]:
    """Students enrolled in the course with no score, or a zero score, for the week."""
    label = canonical_week_label(week)
    students = store.find_students_by_course(course_id, year=year, branch=branch, faculty_name=faculty_name)
    return [s for s in students if s.courses and is_unsubmitted(s.courses[0], label)]


def course_unsubmitted_summary(course_id: str, week, store=database) -> dict:
    label = canonical_week_label(week)
    enrolled = store.find_students_by_course(course_id)
    missing = [s for s in enrolled if s.courses and is_unsubmitted(s.courses[0], label)]

    by_branch: Dict[str, List[dict]] = {}
    for student in missing:
        by_branch.setdefault(student.branch or '', []).append({
            'name': student.name,
            'rollNumber': student.roll_number,
            'email': student.email,
            'year': student.year,
        })

    rate = (len(enrolled) - len(missing)) / len(enrolled) * 100 if enrolled else 0.0
    return {
        'courseId': course_id.lower(),
        'week': label,
        'stats': {
            'totalEnrolled': len(enrolled),
            'totalUnsubmitted': len(missing),
            'submissionRate': f'{rate:.2f}',
            'byBranch': [
                {'branch': branch, 'count': len(rows), 'students': rows}
                for branch, rows in by_branch.items()
            ],
        },
    }


def upload_statistics(students: List[Student]) -> dict:
    statistics = {
        'totalStudents': len(students),
        'totalSubmissions': 0,
        'courseStats': {},
        'branchStats': {},
        'weekStats': {},
    }

    for student in students:
        for course in student.courses:
            branch = branch_of(course.course_id)
            course_stats = statistics['courseStats'].setdefault(course.course_id, {
                'totalStudents': 0, 'studentsWithScores': 0, 'totalSubmissions': 0, 'branch': branch,
            })
            branch_stats = statistics['branchStats'].setdefault(branch, {
                'totalStudents': 0, 'studentsWithScores': 0, 'totalSubmissions': 0,
            })
            course_stats['totalStudents'] += 1
            branch_stats['totalStudents'] += 1

            if not course.results:
                continue
            course_stats['studentsWithScores'] += 1
            branch_stats['studentsWithScores'] += 1

            for result in course.results:
                week_stats = statistics['weekStats'].setdefault(result.week, {'totalStudents': 0, 'byBranch': {}})
                week_stats['totalStudents'] += 1
                week_stats['byBranch'].setdefault(branch, {'students': 0})['students'] += 1
                statistics['totalSubmissions'] += 1
                course_stats['totalSubmissions'] += 1
                branch_stats['totalSubmissions'] += 1

    return statistics


def course_statistics(students: List[Student]) -> dict:
    per_course: Dict[str, dict] = {}
    for student in students:
        for course in student.courses:
            stats = per_course.setdefault(course.course_id, {
                'courseId': course.course_id,
                'branch': branch_of(course.course_id),
                'type': term_of(course.course_id),
                'totalEnrollments': 0,
                'submissionStats': {'totalStudents': 0, 'submittedCount': 0, 'unsubmittedCount': 0},
            })
            stats['totalEnrollments'] += 1
            stats['submissionStats']['totalStudents'] += 1
            if any(r.score > 0 for r in course.results):
                stats['submissionStats']['submittedCount'] += 1
            else:
                stats['submissionStats']['unsubmittedCount'] += 1

    courses = [per_course[key] for key in sorted(per_course)]

    by_type: Dict[str, dict] = {}
    for course in courses:
        group = by_type.setdefault(course['type'], {'totalCourses': 0, 'totalEnrollments': 0, 'coursesByBranch': {}})
        group['coursesByBranch'].setdefault(course['branch'], []).append(course)
        group['totalCourses'] += 1
        group['totalEnrollments'] += course['totalEnrollments']

    return {
        'totalCourses': len(courses),
        'courses': courses,
        'coursesByType': by_type,
        'submissionSummary': {
            'totalStudents': sum(c['submissionStats']['totalStudents'] for c in courses),
            'submitted': sum(c['submissionStats']['submittedCount'] for c in courses),
            'unsubmitted': sum(c['submissionStats']['unsubmittedCount'] for c in courses),
        },
    }


def branch_enrollments(students: List[Student]) -> Dict[str, dict]:
    """Course enrollments and unique students per branch code of the course id."""
    stats: Dict[str, dict] = {}
    for student in students:
        for course in student.courses:
            branch = stats.setdefault(branch_of(course.course_id), {'enrollments': 0, 'students': set()})
            branch['enrollments'] += 1
            branch['students'].add(student.id)
    return {
        code: {'totalStudents': data['enrollments'], 'uniqueStudents': len(data['students'])}
        for code, data in sorted(stats.items())
    }


def weekly_stats(students: List[Student], course_id: Optional[str] = None,
                 faculty_name: Optional[str] = None) -> List[dict]:
    weeks: Dict[str, dict] = {}
    for student in students:
        for course in student.courses:
            if course_id and course.course_id != course_id.lower():
                continue
            if faculty_name and course.subject_mentor != faculty_name:
                continue
            for result in course.results:
                week = weeks.setdefault(result.week, {'week': result.week, 'submitted': 0, 'unsubmitted': 0})
                week['submitted' if result.score > 0 else 'unsubmitted'] += 1

    def week_number(label):
        match = re.search(r'\d+', label)
        return int(match.group()) if match else 0

    return [weeks[label] for label in sorted(weeks, key=week_number)]
