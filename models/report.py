from enum import Enum
from typing import List, Optional

from pydantic import BaseModel


class RowStage(str, Enum):
    # stage a row was trying to reach; rows the parser drops never get one
    IDENTIFIED = 'identified'
    MATCHED = 'matched'
    MERGED = 'merged'


class RowIdentity(BaseModel):
    email: Optional[str] = None
    roll_number: Optional[str] = None


class RowFailure(BaseModel):
    row_number: int
    identity: RowIdentity
    stage: RowStage
    reason: str


class RowOutcome(BaseModel):
    row_number: int
    identity: RowIdentity
    success: bool
    # on failure: the stage the row was trying to reach
    stage: RowStage
    reason: Optional[str] = None
    student_id: Optional[int] = None
    created: bool = False


class BatchOutcome(BaseModel):
    course_id: str
    total: int = 0
    success_count: int = 0
    failures: List[RowFailure] = []

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    def to_report(self, message: Optional[str] = None) -> dict:
        return {
            'message': message or f'Processed {self.total} students for course {self.course_id}',
            'courseId': self.course_id,
            'successful': self.success_count,
            'failed': self.failure_count,
            'errors': [
                {
                    'row': failure.row_number,
                    'identity': failure.identity.model_dump(),
                    'stage': failure.stage.value,
                    'reason': failure.reason,
                }
                for failure in self.failures
            ],
        }
