import logging
import re
from typing import Callable, List, Optional

import database
from errors import MissingIdentity, StudentNotFound
from models.report import RowIdentity
from models.student import Student


logger = logging.getLogger(__name__)

Strategy = Callable[[RowIdentity, object], List[Student]]


def clean_identity(email: Optional[str], roll_number: Optional[str]) -> RowIdentity:
    """Exports pad identifiers with stray whitespace and mix case."""
    email = re.sub(r'\s+', '', email or '').lower()
    roll_number = re.sub(r'\s+', '', roll_number or '').upper()
    return RowIdentity(email=email or None, roll_number=roll_number or None)


def exact_identity(identity: RowIdentity, store) -> List[Student]:
    return store.find_students_by_identity(identity.email, identity.roll_number)


def case_insensitive_identity(identity: RowIdentity, store) -> List[Student]:
    return store.find_students_by_identity(identity.email, identity.roll_number, case_insensitive=True)


def email_local_prefix(identity: RowIdentity, store) -> List[Student]:
    # same mailbox under a different domain, e.g. a personal address vs the college one
    if not identity.email:
        return []
    local = identity.email.split('@', 1)[0]
    return store.find_students_by_email_prefix(local)


STRATEGIES: List[Strategy] = [
    exact_identity,
    case_insensitive_identity,
    email_local_prefix,
]


def match_student(identity: RowIdentity, store=database, log: Optional[logging.Logger] = None) -> Student:
    log = log or logger
    if not identity.email and not identity.roll_number:
        raise MissingIdentity()

    for strategy in STRATEGIES:
        found = strategy(identity, store)
        if not found:
            continue
        if len(found) > 1:
            log.warning('%s matched %d students for email=%s roll=%s; using %s',
                        strategy.__name__, len(found), identity.email, identity.roll_number,
                        found[0].roll_number)
        return found[0]

    raise StudentNotFound(identity.email, identity.roll_number)
