import csv
import io
import re
from pathlib import PurePath
from typing import List, Optional

import pandas as pd

from errors import EmptyOrMalformedInput


ENCODINGS = ('utf-8-sig', 'utf-8', 'cp1251')
SPREADSHEET_SUFFIXES = ('.xlsx', '.xlsm', '.xls')
SCORE_RE = re.compile(r'\[?\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)')

Rows = List[List[str]]


def parse_score(value: Optional[str]) -> float:
    """Best-effort numeric score; anything unreadable or negative counts as 0."""
    if value is None:
        return 0.0
    s = str(value).strip()
    if s == '':
        return 0.0
    # leading number only, optionally bracketed: "[9]", "88%", "1e2"; "abc12" is not a score
    m = SCORE_RE.match(s)
    if not m:
        return 0.0
    score = float(m.group(1))
    return score if score > 0 else 0.0


def _decode(data: bytes) -> str:
    for enc in ENCODINGS:
        try:
            return data.decode(enc)
        except UnicodeDecodeError:
            continue
    return data.decode('utf-8', errors='replace')


def retain_rows(rows: Rows) -> Rows:
    """Drop blank lines and data rows shorter than the header.

    Raises EmptyOrMalformedInput unless a header and at least one data row survive.
    """
    rows = [row for row in rows if any(cell for cell in row)]
    if not rows:
        raise EmptyOrMalformedInput()

    width = len(rows[0])
    kept = [rows[0]] + [row for row in rows[1:] if len(row) >= width]
    if len(kept) < 2:
        raise EmptyOrMalformedInput()
    return kept


def parse_rows(data: bytes, delimiter: str = ',') -> Rows:
    text = _decode(data or b'')
    try:
        reader = csv.reader(io.StringIO(text, newline=''), delimiter=delimiter)
        rows = [[cell.strip() for cell in row] for row in reader]
    except csv.Error as e:
        raise EmptyOrMalformedInput(f'CSV file is malformed: {e}') from e
    return retain_rows(rows)


def read_spreadsheet_rows(data: bytes) -> Rows:
    """First sheet of a workbook as trimmed string cells."""
    try:
        frame = pd.read_excel(io.BytesIO(data), header=None, dtype=str)
    except Exception as e:
        raise EmptyOrMalformedInput(f'Could not read spreadsheet: {e}') from e

    frame = frame.fillna('')
    rows = [[str(value).strip() for value in record] for record in frame.itertuples(index=False)]
    return retain_rows(rows)


def read_upload_rows(filename: str, data: bytes, delimiter: str = ',') -> Rows:
    suffix = PurePath(filename or '').suffix.lower()
    if suffix in SPREADSHEET_SUFFIXES:
        return read_spreadsheet_rows(data)
    if suffix == '.tsv':
        delimiter = '\t'
    return parse_rows(data, delimiter)
