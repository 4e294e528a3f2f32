import pytest

from ingestion.headers import (
    IdentityColumns,
    WeekColumn,
    canonical_week_label,
    find_week_columns,
    locate_identity_columns,
)


@pytest.mark.parametrize('value', ['Week 01', 'week1', 'Week 1 Assignment', 'WEEK 001 assignment', 'week 1', 1, '1'])
def test_week_variants_share_one_label(value):
    assert canonical_week_label(value) == 'Week 1 Assignment'


def test_label_keeps_multi_digit_weeks():
    assert canonical_week_label('Week 010') == 'Week 10 Assignment'


def test_label_passes_through_non_week_text():
    assert canonical_week_label('Total') == 'Total'
    assert canonical_week_label(None) is None


def test_export_header_row():
    headers = ['ID', 'Name', 'Email', 'Roll', 'Week 01 Assignment', 'Week 2']
    assert find_week_columns(headers) == [
        WeekColumn('Week 1 Assignment', 4),
        WeekColumn('Week 2 Assignment', 5),
    ]


def test_columns_follow_header_order_not_week_order():
    columns = find_week_columns(['Week 3', 'Name', 'Week 1'])
    assert [c.label for c in columns] == ['Week 3 Assignment', 'Week 1 Assignment']
    assert [c.index for c in columns] == [0, 2]


def test_duplicate_weeks_keep_their_own_index():
    columns = find_week_columns(['Week 1', 'week 01 assignment'])
    assert columns == [WeekColumn('Week 1 Assignment', 0), WeekColumn('Week 1 Assignment', 1)]


def test_no_score_columns():
    assert find_week_columns(['ID', 'Name', 'Weekly total', 'Email']) == []


def test_identity_columns_by_name():
    assert locate_identity_columns(['Roll No', 'E-mail', 'Week 1']) == IdentityColumns(email=1, roll_number=0)
    assert locate_identity_columns(['ID', 'Name', 'Email', 'Roll', 'Week 1']) == IdentityColumns(2, 3)


def test_identity_headers_match_whole_words():
    headers = ['ID', 'Name', 'Enrollment Date', 'Email', 'Roll No', 'Week 1']
    assert locate_identity_columns(headers) == IdentityColumns(email=3, roll_number=4)
    assert locate_identity_columns(['Enrolled On', 'email_id', 'Roll_No']) == IdentityColumns(1, 2)
    assert locate_identity_columns(['Mailing list', 'Payroll', 'x', 'y']) == IdentityColumns(2, 3)


def test_identity_columns_fall_back_to_export_positions():
    assert locate_identity_columns(['a', 'b', 'c', 'd', 'Week 1']) == IdentityColumns(2, 3)


def test_fallback_never_lands_on_a_week_column():
    assert locate_identity_columns(['Name', 'Week 1', 'Week 2', 'Week 3']) == IdentityColumns(None, None)
