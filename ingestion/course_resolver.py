"""Derive the course id an upload belongs to from its file name.

Export files carry no enforced naming convention, so the name is tried
against a fixed list of layers, most specific first. The first layer that
matches wins and looser layers are never consulted after it.
"""
import re
from pathlib import PurePath
from typing import Callable, List, Optional, Sequence, Tuple

from pydantic import BaseModel

import config
from errors import UnresolvableFilename


SEP = r'[-_\s]?'

CodeMatch = Optional[Tuple[str, str]]
Layer = Callable[[str, Sequence[str]], CodeMatch]


class ResolvedCourse(BaseModel):
    branch_code: str
    number: str
    course_id: str


def _codes_alternation(codes: Sequence[str]) -> str:
    # longest first so "ece" is not read as "ce"
    ordered = sorted({c.lower() for c in codes}, key=len, reverse=True)
    return '|'.join(re.escape(c) for c in ordered)


def _search(pattern: str, stem: str) -> CodeMatch:
    match = re.search(pattern, stem, re.IGNORECASE)
    if not match:
        return None
    return match.group('branch').lower(), match.group('number')


def term_branch_number(stem: str, codes: Sequence[str]) -> CodeMatch:
    """noc25-cs52, noc25_ce38, NOC24CS5"""
    return _search(
        rf'noc\d+{SEP}(?P<branch>{_codes_alternation(codes)}){SEP}(?P<number>\d+)',
        stem,
    )


def branch_number_token(stem: str, codes: Sequence[str]) -> CodeMatch:
    """cs52, cs-52, cs_52 standing on their own between separators."""
    return _search(
        rf'(?<![a-z])(?P<branch>{_codes_alternation(codes)}){SEP}(?P<number>\d+)(?!\d)',
        stem,
    )


def branch_number_anywhere(stem: str, codes: Sequence[str]) -> CodeMatch:
    """Known code glued to other text, e.g. nptelcs52."""
    return _search(
        rf'(?P<branch>{_codes_alternation(codes)}){SEP}(?P<number>\d+)',
        stem,
    )


def generic_letters_digits(stem: str, codes: Sequence[str]) -> CodeMatch:
    """Last resort: any 2-4 letter code followed by digits."""
    return _search(
        rf'(?<![a-z])(?!noc\d)(?P<branch>[a-z]{{2,4}}){SEP}(?P<number>\d+)',
        stem,
    )


LAYERS: List[Layer] = [
    term_branch_number,
    branch_number_token,
    branch_number_anywhere,
    generic_letters_digits,
]


def resolve_course(filename: str, codes: Optional[Sequence[str]] = None,
                   term: Optional[str] = None) -> ResolvedCourse:
    codes = list(codes or config.BRANCH_CODES)
    term = (term or config.COURSE_TERM).lower()
    stem = PurePath(filename or '').stem

    for layer in LAYERS:
        found = layer(stem, codes)
        if found:
            branch, number = found
            return ResolvedCourse(branch_code=branch, number=number, course_id=f'{term}-{branch}{number}')

    raise UnresolvableFilename(filename)
