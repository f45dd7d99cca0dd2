import os

# must be set before the app (and its engine) is imported
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

from academics.database import create_db_and_tables, drop_db_and_tables
from academics.main import app

PASSWORD = "Secret123"

ENTITY_PAYLOADS = {
    "/estudiantes": lambda n: {"first_name": f"Ana{n}", "last_name": f"Lopez{n}", "document_id": f"S{n:05d}", "status": "A"},
    "/docentes": lambda n: {
        "first_name": f"Luis{n}",
        "last_name": f"Perez{n}",
        "document_id": f"T{n:05d}",
        "academic_title": "MSc",
        "status": "A",
    },
    "/cursos": lambda n: {"name": f"Course {n}", "status": "A"},
    "/materias": lambda n: {"name": f"Subject {n}", "status": "A"},
}


@pytest.fixture(autouse=True)
def reset_db():
    """Ensure a fresh in-memory database for every test."""
    drop_db_and_tables()
    create_db_and_tables()
    yield


@pytest.fixture
def client():
    return TestClient(app)


def register(client, email="user@example.com", password=PASSWORD):
    r = client.post('/register', json={
        'name': 'Test User',
        'email': email,
        'password': password,
        'password_confirmation': password,
    })
    assert r.status_code == 201, r.json()
    return r.json()['data']


@pytest.fixture
def auth_headers(client):
    token = register(client)['token']
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def make_entity(client, auth_headers):
    """Create an entity through the API and return its public record."""
    counter = {"n": 0}

    def _make(path, **overrides):
        counter["n"] += 1
        payload = {**ENTITY_PAYLOADS[path](counter["n"]), **overrides}
        r = client.post(path, json=payload, headers=auth_headers)
        assert r.status_code == 201, r.json()
        listing = client.get(path, headers=auth_headers).json()['data'] or []
        unique = 'document_id' if 'document_id' in payload else 'name'
        match = next((row for row in listing if row[unique] == payload[unique]), None)
        assert match is not None
        return match

    return _make
