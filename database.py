import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

import config
from models.faculty import Faculty, FacultyCreate
from models.student import CourseEnrollment, Student, StudentCreate, StudentUpdate


logger = logging.getLogger(__name__)

DB_PATH = config.DB_PATH


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# Database Connection

def get_db_connection():
    conn = sqlite3.connect(DB_PATH, timeout=config.SQLITE_TIMEOUT)
    conn.row_factory = sqlite3.Row
    conn.execute('PRAGMA foreign_keys = ON')
    return conn


@contextmanager
def connect():
    conn = get_db_connection()
    try:
        yield conn
    finally:
        conn.close()


def create_database():
    with connect() as conn:
        cursor = conn.cursor()
        cursor.execute('PRAGMA journal_mode = WAL')

        cursor.executescript('''
            CREATE TABLE IF NOT EXISTS students (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT,
                roll_number TEXT NOT NULL UNIQUE,
                branch TEXT,
                year TEXT,
                email TEXT,
                created_at TEXT,
                updated_at TEXT
            );

            -- course_id is stored lower case; NOCASE keeps the per-student
            -- uniqueness case-insensitive for rows written elsewhere
            CREATE TABLE IF NOT EXISTS enrollments (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                student_id INTEGER NOT NULL REFERENCES students(id) ON DELETE CASCADE,
                course_id TEXT NOT NULL COLLATE NOCASE,
                course_name TEXT,
                subject_mentor TEXT,
                registered_on TEXT,
                status TEXT NOT NULL DEFAULT 'active',
                UNIQUE (student_id, course_id)
            );

            CREATE TABLE IF NOT EXISTS week_results (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                enrollment_id INTEGER NOT NULL REFERENCES enrollments(id) ON DELETE CASCADE,
                week TEXT NOT NULL,
                score REAL NOT NULL DEFAULT 0,
                submitted_at TEXT
            );

            CREATE TABLE IF NOT EXISTS faculty (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                phone_number TEXT NOT NULL DEFAULT 'Not Provided',
                created_at TEXT,
                updated_at TEXT
            );

            CREATE TABLE IF NOT EXISTS faculty_courses (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                faculty_id INTEGER NOT NULL REFERENCES faculty(id) ON DELETE CASCADE,
                course_id TEXT,
                course_name TEXT,
                branch TEXT
            );

            CREATE INDEX IF NOT EXISTS idx_students_email ON students (email);
            CREATE INDEX IF NOT EXISTS idx_enrollments_course ON enrollments (course_id);
            CREATE INDEX IF NOT EXISTS idx_results_enrollment ON week_results (enrollment_id);
        ''')

        conn.commit()
    logger.info('Database ready at %s', DB_PATH)


# ---------------------------------------------------------
# STUDENT READS
# ---------------------------------------------------------

def _fetch_students(conn, where: str = '1 = 1', params: Iterable = (), course_id: Optional[str] = None) -> List[Student]:
    """Load students matching ``where`` with their enrollments and results.

    ``where`` is always built inside this module; values go through ``params``.
    When ``course_id`` is given only that enrollment is attached to each student.
    """
    params = list(params)
    cursor = conn.cursor()

    cursor.execute(f'SELECT * FROM students WHERE {where} ORDER BY id', params)
    student_rows = cursor.fetchall()
    if not student_rows:
        return []

    course_sql = ''
    course_params = []
    if course_id:
        course_sql = ' AND e.course_id = ?'
        course_params = [course_id.lower()]

    cursor.execute(
        f'SELECT e.* FROM enrollments e '
        f'WHERE e.student_id IN (SELECT id FROM students WHERE {where}){course_sql} '
        f'ORDER BY e.id',
        params + course_params,
    )
    enrollment_rows = cursor.fetchall()

    cursor.execute(
        f'SELECT r.* FROM week_results r JOIN enrollments e ON e.id = r.enrollment_id '
        f'WHERE e.student_id IN (SELECT id FROM students WHERE {where}){course_sql} '
        f'ORDER BY r.id',
        params + course_params,
    )
    results_by_enrollment = {}
    for row in cursor.fetchall():
        results_by_enrollment.setdefault(row['enrollment_id'], []).append({
            'week': row['week'],
            'score': row['score'],
            'submitted_at': row['submitted_at'],
        })

    courses_by_student = {}
    for row in enrollment_rows:
        courses_by_student.setdefault(row['student_id'], []).append(CourseEnrollment(
            id=row['id'],
            course_id=row['course_id'],
            course_name=row['course_name'],
            subject_mentor=row['subject_mentor'],
            registered_on=row['registered_on'],
            status=row['status'],
            results=results_by_enrollment.get(row['id'], []),
        ))

    return [
        Student(
            id=row['id'],
            name=row['name'],
            roll_number=row['roll_number'],
            branch=row['branch'],
            year=row['year'],
            email=row['email'],
            created_at=row['created_at'],
            updated_at=row['updated_at'],
            courses=courses_by_student.get(row['id'], []),
        )
        for row in student_rows
    ]


def list_students() -> List[Student]:
    with connect() as conn:
        return _fetch_students(conn)


def get_student(student_id: int) -> Optional[Student]:
    with connect() as conn:
        found = _fetch_students(conn, 'id = ?', [student_id])
    return found[0] if found else None


def find_students_by_identity(email: Optional[str], roll_number: Optional[str],
                              case_insensitive: bool = False) -> List[Student]:
    """Students whose email OR roll number equals the given value.

    Empty values never take part in the lookup.
    """
    clauses = []
    params = []
    if email:
        clauses.append('lower(email) = lower(?)' if case_insensitive else 'email = ?')
        params.append(email)
    if roll_number:
        clauses.append('lower(roll_number) = lower(?)' if case_insensitive else 'roll_number = ?')
        params.append(roll_number)
    if not clauses:
        return []

    with connect() as conn:
        return _fetch_students(conn, ' OR '.join(clauses), params)


def _escape_like(value: str) -> str:
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def find_students_by_email_prefix(prefix: str) -> List[Student]:
    if not prefix:
        return []
    with connect() as conn:
        return _fetch_students(
            conn,
            "lower(email) LIKE ? ESCAPE '\\'",
            [_escape_like(prefix.lower()) + '%'],
        )


def find_students_by_course(course_id: str, year: Optional[str] = None, branch: Optional[str] = None,
                            faculty_name: Optional[str] = None) -> List[Student]:
    """Students enrolled in ``course_id``, each carrying only that enrollment."""
    enrolled = 'SELECT student_id FROM enrollments WHERE course_id = ?'
    params = [course_id.lower()]
    if faculty_name:
        enrolled += ' AND subject_mentor = ?'
        params.append(faculty_name)

    where = f'id IN ({enrolled})'
    if year:
        where += ' AND year = ?'
        params.append(year)
    if branch:
        where += ' AND branch = ?'
        params.append(branch)

    with connect() as conn:
        return _fetch_students(conn, where, params, course_id=course_id)


def list_course_ids() -> List[str]:
    with connect() as conn:
        cursor = conn.cursor()
        cursor.execute('SELECT DISTINCT lower(course_id) AS course_id FROM enrollments ORDER BY 1')
        return [row['course_id'] for row in cursor.fetchall()]


# ---------------------------------------------------------
# STUDENT WRITES
# ---------------------------------------------------------

def _insert_enrollment(cursor, student_id: int, course, now: str) -> int:
    cursor.execute('''
        INSERT INTO enrollments (student_id, course_id, course_name, subject_mentor, registered_on, status)
        VALUES (?, ?, ?, ?, ?, ?)
    ''', (student_id, course.course_id.lower(), course.course_name, course.subject_mentor, now, course.status))
    return cursor.lastrowid


def _insert_results(cursor, enrollment_id: int, results, now: str):
    cursor.executemany('''
        INSERT INTO week_results (enrollment_id, week, score, submitted_at)
        VALUES (?, ?, ?, ?)
    ''', [
        (enrollment_id, result.week, result.score, getattr(result, 'submitted_at', None) or now)
        for result in results
    ])


def insert_student(student: StudentCreate) -> Student:
    now = _now()
    with connect() as conn:
        with conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO students (name, roll_number, branch, year, email, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            ''', (student.name, student.roll_number, student.branch, student.year, student.email, now, now))
            student_id = cursor.lastrowid

            for course in student.courses:
                enrollment_id = _insert_enrollment(cursor, student_id, course, now)
                _insert_results(cursor, enrollment_id, course.results, now)

        return _fetch_students(conn, 'id = ?', [student_id])[0]


def update_student(student_id: int, changes: StudentUpdate) -> Optional[Student]:
    fields = changes.model_dump(exclude_unset=True, exclude={'courses'})
    now = _now()
    with connect() as conn:
        with conn:
            cursor = conn.cursor()
            assignments = ', '.join(f'{name} = ?' for name in fields)
            sql = 'UPDATE students SET ' + (assignments + ', ' if assignments else '') + 'updated_at = ? WHERE id = ?'
            cursor.execute(sql, list(fields.values()) + [now, student_id])

            if cursor.rowcount == 0:
                return None

            if changes.courses is not None:
                cursor.execute('DELETE FROM enrollments WHERE student_id = ?', (student_id,))
                for course in changes.courses:
                    enrollment_id = _insert_enrollment(cursor, student_id, course, now)
                    _insert_results(cursor, enrollment_id, course.results, now)

        return _fetch_students(conn, 'id = ?', [student_id])[0]


def delete_student(student_id: int) -> bool:
    with connect() as conn:
        with conn:
            cursor = conn.cursor()
            cursor.execute('DELETE FROM students WHERE id = ?', (student_id,))
            return cursor.rowcount > 0


def delete_all_students() -> int:
    with connect() as conn:
        with conn:
            cursor = conn.cursor()
            cursor.execute('DELETE FROM students')
            return cursor.rowcount


def reset_all_course_results() -> int:
    """Empty every enrollment's result list; returns how many students changed."""
    with connect() as conn:
        with conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT COUNT(DISTINCT e.student_id)
                FROM week_results r JOIN enrollments e ON e.id = r.enrollment_id
            ''')
            modified = cursor.fetchone()[0]
            cursor.execute('DELETE FROM week_results')
            cursor.execute('UPDATE students SET updated_at = ? WHERE id IN (SELECT student_id FROM enrollments)', (_now(),))
            return modified


def save_enrollment_results(student_id: int, enrollment: CourseEnrollment) -> CourseEnrollment:
    """Upsert one enrollment and replace its results in a single transaction."""
    now = _now()
    with connect() as conn:
        with conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO enrollments (student_id, course_id, course_name, subject_mentor, registered_on, status)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (student_id, course_id) DO NOTHING
            ''', (student_id, enrollment.course_id.lower(), enrollment.course_name,
                  enrollment.subject_mentor, now, enrollment.status))

            cursor.execute(
                'SELECT id, registered_on FROM enrollments WHERE student_id = ? AND course_id = ?',
                (student_id, enrollment.course_id.lower()),
            )
            row = cursor.fetchone()
            enrollment_id = row['id']

            cursor.execute('DELETE FROM week_results WHERE enrollment_id = ?', (enrollment_id,))
            _insert_results(cursor, enrollment_id, enrollment.results, now)
            cursor.execute('UPDATE students SET updated_at = ? WHERE id = ?', (now, student_id))

    return enrollment.model_copy(update={'id': enrollment_id, 'registered_on': row['registered_on']})


def upsert_roster_student(student: StudentCreate) -> Tuple[Student, bool]:
    """Find a student by roll number or email, creating it when absent, and
    add the given courses it is not already enrolled in.

    Returns the stored student and whether it was newly created.
    """
    now = _now()
    with connect() as conn:
        with conn:
            cursor = conn.cursor()
            clauses = ['roll_number = ?']
            params = [student.roll_number]
            if student.email:
                clauses.append('email = ?')
                params.append(student.email)
            cursor.execute(f"SELECT id FROM students WHERE {' OR '.join(clauses)} ORDER BY id LIMIT 1", params)
            row = cursor.fetchone()

            created = row is None
            if created:
                cursor.execute('''
                    INSERT INTO students (name, roll_number, branch, year, email, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                ''', (student.name, student.roll_number, student.branch, student.year, student.email, now, now))
                student_id = cursor.lastrowid
            else:
                student_id = row['id']

            for course in student.courses:
                cursor.execute('''
                    INSERT INTO enrollments (student_id, course_id, course_name, subject_mentor, registered_on, status)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT (student_id, course_id) DO NOTHING
                ''', (student_id, course.course_id, course.course_name, course.subject_mentor, now, course.status))

            cursor.execute('UPDATE students SET updated_at = ? WHERE id = ?', (now, student_id))

        return _fetch_students(conn, 'id = ?', [student_id])[0], created


# ---------------------------------------------------------
# FACULTY
# ---------------------------------------------------------

def _fetch_faculty(conn, where: str = '1 = 1', params: Iterable = ()) -> List[Faculty]:
    params = list(params)
    cursor = conn.cursor()
    cursor.execute(f'SELECT * FROM faculty WHERE {where} ORDER BY id', params)
    rows = cursor.fetchall()

    cursor.execute(
        f'SELECT * FROM faculty_courses WHERE faculty_id IN (SELECT id FROM faculty WHERE {where}) ORDER BY id',
        params,
    )
    courses = {}
    for course in cursor.fetchall():
        courses.setdefault(course['faculty_id'], []).append({
            'course_id': course['course_id'],
            'course_name': course['course_name'],
            'branch': course['branch'],
        })

    return [
        Faculty(
            id=row['id'],
            name=row['name'],
            phone_number=row['phone_number'],
            created_at=row['created_at'],
            updated_at=row['updated_at'],
            courses=courses.get(row['id'], []),
        )
        for row in rows
    ]


def _insert_faculty_courses(cursor, faculty_id: int, faculty: FacultyCreate):
    cursor.executemany(
        'INSERT INTO faculty_courses (faculty_id, course_id, course_name, branch) VALUES (?, ?, ?, ?)',
        [(faculty_id, c.course_id, c.course_name, c.branch) for c in faculty.courses],
    )


def list_faculty() -> List[Faculty]:
    with connect() as conn:
        return _fetch_faculty(conn)


def get_faculty(faculty_id: int) -> Optional[Faculty]:
    with connect() as conn:
        found = _fetch_faculty(conn, 'id = ?', [faculty_id])
    return found[0] if found else None


def insert_faculty(faculty: FacultyCreate) -> Faculty:
    now = _now()
    with connect() as conn:
        with conn:
            cursor = conn.cursor()
            cursor.execute(
                'INSERT INTO faculty (name, phone_number, created_at, updated_at) VALUES (?, ?, ?, ?)',
                (faculty.name, faculty.phone_number, now, now),
            )
            faculty_id = cursor.lastrowid
            _insert_faculty_courses(cursor, faculty_id, faculty)

        return _fetch_faculty(conn, 'id = ?', [faculty_id])[0]


def update_faculty(faculty_id: int, faculty: FacultyCreate) -> Optional[Faculty]:
    with connect() as conn:
        with conn:
            cursor = conn.cursor()
            cursor.execute(
                'UPDATE faculty SET name = ?, phone_number = ?, updated_at = ? WHERE id = ?',
                (faculty.name, faculty.phone_number, _now(), faculty_id),
            )
            if cursor.rowcount == 0:
                return None

            # simplest method = clear + reinsert
            cursor.execute('DELETE FROM faculty_courses WHERE faculty_id = ?', (faculty_id,))
            _insert_faculty_courses(cursor, faculty_id, faculty)

        return _fetch_faculty(conn, 'id = ?', [faculty_id])[0]


def delete_faculty(faculty_id: int) -> bool:
    with connect() as conn:
        with conn:
            cursor = conn.cursor()
            cursor.execute('DELETE FROM faculty WHERE id = ?', (faculty_id,))
            return cursor.rowcount > 0


if __name__ == "__main__":
    create_database()
