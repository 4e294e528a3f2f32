from typing import List, Optional


class IngestionError(Exception):
    """Base class for everything the score/roster import can raise."""


# ---------------------------------------------------------
# BATCH-FATAL: abort the upload before any row is touched
# ---------------------------------------------------------
class BatchError(IngestionError):

    def details(self) -> dict:
        return {'error': str(self)}


class UnresolvableFilename(BatchError):
    def __init__(self, filename: str):
        super().__init__(
            'Invalid filename format. Expected a course code such as cs52.csv or noc25-me67.csv'
        )
        self.filename = filename

    def details(self) -> dict:
        return {'error': str(self), 'filename': self.filename}


class EmptyOrMalformedInput(BatchError):
    def __init__(self, message: str = 'File is empty or malformed'):
        super().__init__(message)


class NoScoreColumnsFound(BatchError):
    def __init__(self, headers: List[str]):
        super().__init__('No week score columns found in file')
        self.headers = list(headers)

    def details(self) -> dict:
        return {'error': str(self), 'headers': self.headers}


# ---------------------------------------------------------
# ROW-SCOPED: recorded against the row, never past the batch
# ---------------------------------------------------------
class RowError(IngestionError):
    pass


class MissingIdentity(RowError):
    def __init__(self):
        super().__init__('Both email and roll number are missing')


class StudentNotFound(RowError):
    def __init__(self, email: Optional[str], roll_number: Optional[str]):
        super().__init__(f'Student not found with email {email or "-"} or roll number {roll_number or "-"}')
        self.email = email
        self.roll_number = roll_number


class PersistenceFailure(RowError):
    pass
