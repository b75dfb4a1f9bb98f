"""
Course directory: create, read, list and partial update.
"""
import pytest
from pymongo.errors import ServerSelectionTimeoutError

from coursehub.courses import course_router
from tests.conftest import INSTRUCTOR_A, STUDENT_S


@pytest.mark.asyncio
async def test_student_cannot_create_course(client, db, student_s, course_payload):
    response = await client.post("/api/courses/", json=course_payload, headers=student_s)

    assert response.status_code == 403
    assert response.json() == {"message": "Only instructors can create courses"}
    assert await db.courses.count_documents({}) == 0


@pytest.mark.asyncio
async def test_create_course_sets_owner_and_empty_collections(client, instructor_a, course_payload):
    response = await client.post("/api/courses/", json=course_payload, headers=instructor_a)

    assert response.status_code == 201
    body = response.json()
    assert body["course_id"].startswith("CRS_")
    assert body["instructor"] == INSTRUCTOR_A
    assert body["students"] == []
    assert body["tasks"] == []
    assert "_id" not in body


@pytest.mark.asyncio
async def test_created_course_round_trips(client, course, course_payload):
    response = await client.get(f"/api/courses/{course['course_id']}")

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == course_payload["title"]
    assert body["description"] == course_payload["description"]
    assert body["category"] == course_payload["category"]
    assert body["instructor"] == {
        "user_id": INSTRUCTOR_A,
        "name": "Ada Instructor",
        "email": "ada@example.edu"
    }
    assert body["students"] == []
    assert body["tasks"] == []


@pytest.mark.asyncio
async def test_get_unknown_course(client):
    response = await client.get("/api/courses/CRS_MISSING")

    assert response.status_code == 404
    assert response.json() == {"message": "Course not found"}


@pytest.mark.asyncio
async def test_list_courses_expands_people_and_tasks(client, course, task, student_s, instructor_b, course_payload):
    await client.post(f"/api/courses/{course['course_id']}/enroll", headers=student_s)
    await client.post("/api/courses/", json={**course_payload, "title": "Compilers"}, headers=instructor_b)

    response = await client.get("/api/courses/")

    assert response.status_code == 200
    courses = {c["title"]: c for c in response.json()}
    assert set(courses) == {"Distributed Systems", "Compilers"}

    listed = courses["Distributed Systems"]
    assert listed["students"] == [{"user_id": STUDENT_S, "name": "Sam Student", "email": "sam@example.edu"}]
    assert [t["task_id"] for t in listed["tasks"]] == [task["task_id"]]
    # Task summaries only, never the nested submissions
    assert "submissions" not in listed["tasks"][0]


@pytest.mark.asyncio
async def test_missing_field_is_a_client_error(client, instructor_a):
    response = await client.post(
        "/api/courses/",
        json={"title": "No description", "category": "Misc"},
        headers=instructor_a
    )

    assert response.status_code == 400
    assert response.json() == {"message": "Missing required field: description"}


@pytest.mark.asyncio
async def test_blank_title_is_rejected(client, instructor_a, course_payload):
    response = await client.post(
        "/api/courses/", json={**course_payload, "title": "   "}, headers=instructor_a
    )

    assert response.status_code == 400
    assert "title" in response.json()["message"]


@pytest.mark.asyncio
async def test_update_title_keeps_other_fields(client, course, instructor_a, course_payload):
    response = await client.put(
        f"/api/courses/{course['course_id']}",
        json={"title": "Distributed Systems II"},
        headers=instructor_a
    )

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Distributed Systems II"
    assert body["description"] == course_payload["description"]
    assert body["category"] == course_payload["category"]


@pytest.mark.asyncio
async def test_update_with_empty_values_is_a_no_op(client, db, course, instructor_a):
    before = await db.courses.find_one({"course_id": course["course_id"]}, {"_id": 0})

    for payload in ({}, {"title": "", "description": ""}, {"category": "ignored"}):
        response = await client.put(
            f"/api/courses/{course['course_id']}", json=payload, headers=instructor_a
        )
        assert response.status_code == 200

    after = await db.courses.find_one({"course_id": course["course_id"]}, {"_id": 0})
    assert after == before


@pytest.mark.asyncio
async def test_update_without_body_is_a_no_op(client, db, course, instructor_a):
    before = await db.courses.find_one({"course_id": course["course_id"]}, {"_id": 0})

    response = await client.put(f"/api/courses/{course['course_id']}", headers=instructor_a)

    assert response.status_code == 200
    assert response.json()["title"] == course["title"]
    assert await db.courses.find_one({"course_id": course["course_id"]}, {"_id": 0}) == before


@pytest.mark.asyncio
async def test_update_with_falsy_non_string_values_is_a_no_op(client, db, course, instructor_a):
    before = await db.courses.find_one({"course_id": course["course_id"]}, {"_id": 0})

    response = await client.put(
        f"/api/courses/{course['course_id']}", json={"title": 0, "description": False}, headers=instructor_a
    )

    assert response.status_code == 200
    assert await db.courses.find_one({"course_id": course["course_id"]}, {"_id": 0}) == before


@pytest.mark.asyncio
async def test_malformed_json_body(client, instructor_a):
    response = await client.post(
        "/api/courses/",
        content=b'{"title": "Distributed',
        headers={**instructor_a, "Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid JSON body"}


@pytest.mark.asyncio
async def test_only_owner_updates_course(client, course, instructor_b, student_s):
    for headers in (instructor_b, student_s):
        response = await client.put(
            f"/api/courses/{course['course_id']}", json={"title": "Hijacked"}, headers=headers
        )
        assert response.status_code == 403
        assert response.json() == {"message": "Not authorized to update this course"}


@pytest.mark.asyncio
async def test_update_unknown_course(client, instructor_a):
    response = await client.put("/api/courses/CRS_MISSING", json={"title": "x"}, headers=instructor_a)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_store_failure_is_a_generic_server_error(client, monkeypatch):
    async def unavailable(db):
        raise ServerSelectionTimeoutError("mongo:27017: connection refused")

    monkeypatch.setattr(course_router, "list_courses", unavailable)

    response = await client.get("/api/courses/")

    assert response.status_code == 500
    assert response.json() == {"message": "Server error"}
