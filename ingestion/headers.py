import re
from typing import List, NamedTuple, Optional, Sequence, Union


WEEK_RE = re.compile(r'week\s*0*(\d+)(?:\s*assignment)?', re.IGNORECASE)

# whole words only, so "Enrollment Date" is not a roll column
EMAIL_HEADER_RE = re.compile(r'\b(?:e-?mail|mail[\s_]*id)(?:[\s_]*(?:id|address))?\b', re.IGNORECASE)
ROLL_HEADER_RE = re.compile(r'\broll(?:[\s_.]*(?:no|num|number))?\b', re.IGNORECASE)

# column positions used by the platform export when headers are unhelpful
DEFAULT_EMAIL_INDEX = 2
DEFAULT_ROLL_INDEX = 3


class WeekColumn(NamedTuple):
    label: str
    index: int


class IdentityColumns(NamedTuple):
    email: Optional[int]
    roll_number: Optional[int]


def week_label(number: int) -> str:
    return f'Week {number} Assignment'


def canonical_week_label(value: Union[str, int, None]) -> Optional[str]:
    """Normalize "Week 01", "week1", "1" or 1 to "Week 1 Assignment".

    Values that name no week number are returned unchanged.
    """
    if value is None:
        return None
    text = str(value).strip()
    if text.isdigit():
        return week_label(int(text))
    match = WEEK_RE.search(text)
    if match:
        return week_label(int(match.group(1)))
    return text


def find_week_columns(headers: Sequence[str]) -> List[WeekColumn]:
    """Every header that names a week-assignment score, in header order.

    Two headers for the same week both come back with their own index.
    """
    columns = []
    for index, header in enumerate(headers):
        match = WEEK_RE.search(header or '')
        if match:
            columns.append(WeekColumn(week_label(int(match.group(1))), index))
    return columns


def _first_header(headers: Sequence[str], pattern: re.Pattern) -> Optional[int]:
    for index, header in enumerate(headers):
        if pattern.search(header or ''):
            return index
    return None


def _fallback(headers: Sequence[str], index: int, taken: Optional[int]) -> Optional[int]:
    if index >= len(headers) or index == taken:
        return None
    if WEEK_RE.search(headers[index] or ''):
        return None
    return index


def locate_identity_columns(headers: Sequence[str]) -> IdentityColumns:
    """Find the email and roll number columns by header name, falling back
    to the export's fixed positions."""
    email = _first_header(headers, EMAIL_HEADER_RE)
    roll = _first_header(headers, ROLL_HEADER_RE)

    if email is None:
        email = _fallback(headers, DEFAULT_EMAIL_INDEX, roll)
    if roll is None:
        roll = _fallback(headers, DEFAULT_ROLL_INDEX, email)
    return IdentityColumns(email, roll)
