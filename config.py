import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv


ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')


def _split_list(raw: str) -> List[str]:
    return [item.strip().lower() for item in raw.split(',') if item.strip()]


DB_PATH = os.getenv('DB_PATH', str(ROOT_DIR / 'nptel.db'))
SQLITE_TIMEOUT = float(os.getenv('SQLITE_TIMEOUT', '10') or '10')

PORT = int(os.getenv('PORT', '3000') or '3000')

LOG_DIR = Path(os.getenv('LOG_DIR', ROOT_DIR / 'logs'))
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

_cors_raw = os.getenv('CORS_ORIGINS', 'http://localhost:3001').strip()
CORS_ORIGINS = [o.strip() for o in _cors_raw.split(',') if o.strip()] or ['*']

# Course ids are built as "<term>-<branch><number>", e.g. noc25-cs52
COURSE_TERM = os.getenv('COURSE_TERM', 'noc25').strip().lower()
BRANCH_CODES = _split_list(os.getenv('BRANCH_CODES', 'cs,me,ce,ee,ece,ch,ge,de,mm'))

INGEST_MAX_WORKERS = max(1, int(os.getenv('INGEST_MAX_WORKERS', '8') or '8'))

STUDENT_EMAIL_DOMAIN = os.getenv('STUDENT_EMAIL_DOMAIN', 'college.ac.in').strip()
