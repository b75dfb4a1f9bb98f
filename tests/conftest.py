"""
Shared fixtures: in-memory MongoDB, ASGI client and token helpers.
"""
from datetime import datetime, timedelta

import httpx
import pytest
from jose import jwt
from mongomock_motor import AsyncMongoMockClient

from coursehub import config
from coursehub.courses.dependencies import get_db
from coursehub.main import app

INSTRUCTOR_A = "USR_INSTRUCTOR_A"
INSTRUCTOR_B = "USR_INSTRUCTOR_B"
STUDENT_S = "USR_STUDENT_S"
STUDENT_T = "USR_STUDENT_T"


def make_token(user_id: str, role: str, expires_in: timedelta = timedelta(hours=1)) -> str:
    claims = {
        "sub": user_id,
        "role": role,
        "exp": datetime.utcnow() + expires_in
    }
    return jwt.encode(claims, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def auth(user_id: str, role: str) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


@pytest.fixture
def instructor_a():
    return auth(INSTRUCTOR_A, "instructor")


@pytest.fixture
def instructor_b():
    return auth(INSTRUCTOR_B, "instructor")


@pytest.fixture
def student_s():
    return auth(STUDENT_S, "student")


@pytest.fixture
def student_t():
    return auth(STUDENT_T, "student")


@pytest.fixture
async def db():
    database = AsyncMongoMockClient()["coursehub_test"]
    await database.users.insert_many([
        {"user_id": INSTRUCTOR_A, "name": "Ada Instructor", "email": "ada@example.edu", "role": "instructor"},
        {"user_id": INSTRUCTOR_B, "name": "Ben Instructor", "email": "ben@example.edu", "role": "instructor"},
        {"user_id": STUDENT_S, "name": "Sam Student", "email": "sam@example.edu", "role": "student"},
        {"user_id": STUDENT_T, "name": "Tia Student", "email": "tia@example.edu", "role": "student"},
    ])
    return database


@pytest.fixture
async def client(db, tmp_path, monkeypatch):
    monkeypatch.setattr(config, "UPLOAD_DIR", str(tmp_path / "uploads"))
    app.dependency_overrides[get_db] = lambda: db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def course_payload():
    return {
        "title": "Distributed Systems",
        "description": "Consensus, replication and failure",
        "category": "Computer Science"
    }


@pytest.fixture
async def course(client, instructor_a, course_payload):
    """Course owned by instructor A"""
    response = await client.post("/api/courses/", json=course_payload, headers=instructor_a)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def due_date():
    return (datetime.utcnow() + timedelta(days=7)).replace(microsecond=0).isoformat()


@pytest.fixture
async def task(client, instructor_a, course, due_date):
    """Task in instructor A's course"""
    response = await client.post(
        "/api/tasks/",
        json={
            "title": "Raft log replication",
            "description": "Explain how followers catch up",
            "dueDate": due_date,
            "courseId": course["course_id"]
        },
        headers=instructor_a
    )
    assert response.status_code == 201
    return response.json()
