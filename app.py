
from typing import List, Optional
import streamlit as st
import pandas as pd

import database
import reports
from errors import BatchError
from ingestion.headers import canonical_week_label
from ingestion.reconciler import ingest_week_scores
from ingestion.roster import import_roster
from logging_setup import setup_logging
from models.student import Student


def filter_students(students: List[Student], branch: Optional[str], year: Optional[str]) -> List[Student]:
	return [
		s for s in students
		if (not branch or s.branch == branch) and (not year or s.year == year)
	]


def options(values) -> List[str]:
	return [''] + sorted({v for v in values if v})


def show_report(report: dict):
	col1, col2 = st.columns(2)
	col1.metric('Successful', report['successful'])
	col2.metric('Failed', report['failed'])
	if report['errors']:
		df_errors = pd.DataFrame([
			[e['row'], e['identity'].get('email'), e['identity'].get('roll_number'), e['stage'], e['reason']]
			for e in report['errors']
		], columns=['row', 'email', 'roll_number', 'stage', 'reason'])
		st.dataframe(df_errors, use_container_width=True)


def overview(students: List[Student], course_id: str, week: str, faculty_name: str):
	st.header('Overview')

	branch_stats = reports.branch_enrollments(students)
	unique = {s.id for s in students if s.courses}
	st.metric('Students with enrollments', len(unique))

	if branch_stats:
		df_branches = pd.DataFrame(
			[[code, data['totalStudents'], data['uniqueStudents']] for code, data in branch_stats.items()],
			columns=['branch', 'course enrollments', 'unique students'],
		)
		st.dataframe(df_branches, use_container_width=True)
	else:
		st.info('No enrollments found')

	st.subheader('Weekly submissions')
	weekly = reports.weekly_stats(students, course_id or None, faculty_name or None)
	if week:
		label = canonical_week_label(week)
		weekly = [w for w in weekly if w['week'] == label]
	if weekly:
		df_weeks = pd.DataFrame(weekly).set_index('week')
		st.bar_chart(df_weeks)
		st.dataframe(df_weeks, use_container_width=True)
	else:
		st.info('No weekly results for these filters')


def unsubmitted(course_ids: List[str], year: str, branch: str, faculty_name: str):
	st.header('Unsubmitted assignments')
	if not course_ids:
		st.info('No courses found, import an enrollment sheet first')
		return

	course_id = st.selectbox('Course', course_ids)
	week = st.number_input('Week', min_value=1, max_value=20, step=1, value=1)
	students = reports.unsubmitted_students(course_id, int(week), year or None, branch or None, faculty_name or None)

	st.write(f'{len(students)} students have not submitted {canonical_week_label(int(week))}')
	if students:
		df_students = pd.DataFrame(
			[[s.roll_number, s.name, s.email, s.branch, s.year] for s in students],
			columns=['roll number', 'name', 'email', 'branch', 'year'],
		)
		st.dataframe(df_students, use_container_width=True)


def uploads():
	st.header('Imports')

	st.subheader('Weekly assignment scores')
	score_file = st.file_uploader('Score export (CSV or Excel)', type=['csv', 'xlsx'], key='scores')
	if score_file is not None and st.button('Import scores'):
		try:
			outcome = ingest_week_scores(score_file.name, score_file.getvalue())
			st.success(f'Course {outcome.course_id}')
			show_report(outcome.to_report())
		except BatchError as e:
			st.error(str(e))

	st.subheader('Enrollment sheet')
	roster_file = st.file_uploader('Enrollment workbook', type=['xlsx', 'csv'], key='roster')
	if roster_file is not None and st.button('Import students'):
		try:
			show_report(import_roster(roster_file.name, roster_file.getvalue()))
		except BatchError as e:
			st.error(str(e))

	st.subheader('Maintenance')
	# Reset flow: require an explicit confirm click (uses session_state)
	if st.button('Reset all course results'):
		st.session_state['confirm_reset'] = True

	if st.session_state.get('confirm_reset'):
		st.warning('This will clear every weekly score for every student.')
		if st.button('Confirm reset'):
			modified = database.reset_all_course_results()
			st.session_state.pop('confirm_reset', None)
			st.success(f'Reset results for {modified} students')
		if st.button('Cancel', key='cancel_reset'):
			st.session_state.pop('confirm_reset', None)
			st.info('Reset canceled')


def main():
	st.set_page_config(page_title='NPTEL Tracker', layout='wide')
	setup_logging()
	database.create_database()

	st.title('NPTEL Tracker - Enrollments & Weekly Assignments')

	menu = st.sidebar.selectbox('Choose view', ['Overview', 'Unsubmitted', 'Imports'])

	students = database.list_students()
	course_ids = database.list_course_ids()

	branch = st.sidebar.selectbox('Branch', options(s.branch for s in students))
	year = st.sidebar.selectbox('Year', options(s.year for s in students))
	faculty_name = st.sidebar.selectbox(
		'Faculty', options(c.subject_mentor for s in students for c in s.courses)
	)

	if menu == 'Overview':
		course_id = st.sidebar.selectbox('Course', [''] + course_ids)
		week = st.sidebar.text_input('Week')
		overview(filter_students(students, branch, year), course_id, week, faculty_name)
	elif menu == 'Unsubmitted':
		unsubmitted(course_ids, year, branch, faculty_name)
	else:
		uploads()


if __name__ == '__main__':
	main()
