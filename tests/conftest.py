import pytest

import database
from models.student import StudentCreate


@pytest.fixture
def db(tmp_path, monkeypatch):
    monkeypatch.setattr(database, 'DB_PATH', str(tmp_path / 'test.db'))
    database.create_database()
    return database


@pytest.fixture
def make_student(db):
    def _make(roll_number, email=None, courses=None, **fields):
        return db.insert_student(StudentCreate(
            roll_number=roll_number,
            email=email,
            courses=courses or [],
            **fields,
        ))
    return _make


@pytest.fixture
def client(db):
    from fastapi.testclient import TestClient

    import main
    return TestClient(main.app)
