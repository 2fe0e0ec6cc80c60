import json

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from main import create_app

SEED_STUDENTS = [
    {"id": 7, "firstName": "Ada", "lastName": "Lovelace", "year": 3},
    {"id": "abc", "firstName": "Alan", "lastName": "Turing", "year": 2},
]


@pytest.fixture
def students_file(tmp_path):
    path = tmp_path / "students.json"
    path.write_text(json.dumps(SEED_STUDENTS, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def settings(tmp_path, students_file):
    return Settings(
        students_file=str(students_file),
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)
