from faker import Faker
import pandas as pd

import config

fake = Faker()

COURSES = [
    ('cs52', 'Data Structures and Algorithms'),
    ('me67', 'Fluid Mechanics'),
    ('ce38', 'Surveying'),
]
WEEKS = 8


def make_students(count: int = 50):
    students = []
    for _ in range(count):
        branch = fake.random_element(['CSE', 'MECH', 'CIVIL', 'EEE'])
        roll = f"{fake.random_int(min=21, max=24)}{branch[:2]}{fake.unique.random_number(digits=4, fix_len=True)}"
        students.append({
            'ID': roll,
            'Name': fake.name(),
            'Branch': branch,
            'Year': fake.random_element(['II', 'III', 'IV']),
            'Email Id': f"{roll.lower()}@{config.STUDENT_EMAIL_DOMAIN}",
        })
    return students


def roster_frame(students, mentors):
    rows = []
    for s in students:
        code, name = fake.random_element(COURSES)
        rows.append({
            **s,
            'Course Id': f'{config.COURSE_TERM}-{code}',
            'Course Name': name,
            'NPTEL SUBJECT MENTOR': mentors[code],
        })
    return pd.DataFrame(rows)


def scores_frame(roster: pd.DataFrame, code: str):
    enrolled = roster[roster['Course Id'] == f'{config.COURSE_TERM}-{code}']
    rows = []
    for i, s in enumerate(enrolled.to_dict('records'), start=1):
        row = {'ID': i, 'Name': s['Name'], 'Email': s['Email Id'].upper(), 'Roll': s['ID'].lower()}
        for week in range(1, WEEKS + 1):
            # exports zero-pad some weeks and not others
            header = f'Week {week:02d} Assignment' if week % 2 else f'Week {week}'
            row[header] = fake.random_element([0, fake.random_int(min=10, max=100)])
        rows.append(row)
    return pd.DataFrame(rows)


if __name__ == '__main__':
    mentors = {code: fake.name() for code, _ in COURSES}
    roster = roster_frame(make_students(), mentors)
    roster.to_excel('dummy_enrollments.xlsx', index=False)
    for code, _ in COURSES:
        scores_frame(roster, code).to_csv(f'ns_{config.COURSE_TERM}_{code}_week.csv', index=False)
