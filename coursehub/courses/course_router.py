from fastapi import APIRouter, Body, Depends, File, Form, UploadFile
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import Optional
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import PyMongoError
from coursehub.courses.models import CourseCreate, CourseUpdate, TaskFields
from coursehub.courses.database import (
    create_course, get_course_detail, list_courses, update_course, create_task
)
from coursehub.courses.dependencies import get_db, CallerContext
from coursehub.courses.permissions import Action, role_guard, course_guard
from coursehub.courses.uploads import store_upload, discard_upload
from coursehub.errors import NotFound, ValidationError

router = APIRouter(tags=["Courses"])

# ==================== COURSE CRUD ====================

@router.get("/")
async def list_courses_endpoint(db: AsyncIOMotorDatabase = Depends(get_db)):
    """List all courses with instructor, students and tasks in summary form"""
    return await list_courses(db)


@router.get("/{course_id}")
async def get_course_endpoint(course_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    """Get single course"""
    course = await get_course_detail(db, course_id)
    if not course:
        raise NotFound("Course not found")
    return course


@router.post("/", status_code=201)
async def create_course_endpoint(
    course: CourseCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    caller: CallerContext = Depends(role_guard(Action.CREATE_COURSE))
):
    """Create course (instructor only)"""
    return await create_course(db, course.dict(), caller.user_id)


@router.put("/{course_id}")
async def update_course_endpoint(
    data: Optional[CourseUpdate] = Body(None),
    db: AsyncIOMotorDatabase = Depends(get_db),
    course: dict = Depends(course_guard(Action.UPDATE_COURSE))
):
    """
    Update course (owning instructor only)
    Only non-empty title/description are applied; no body changes nothing
    """
    updates = data.dict() if data else {}
    return await update_course(db, course["course_id"], updates)

# ==================== COURSE TASKS ====================

def _parse_task_fields(title: str, description: str, due_date: datetime) -> TaskFields:
    try:
        return TaskFields(title=title, description=description, due_date=due_date)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(f"Invalid value for {field}: {first.get('msg')}")


@router.post("/{course_id}/tasks", status_code=201)
async def add_course_task(
    title: str = Form(...),
    description: str = Form(...),
    due_date: datetime = Form(..., alias="dueDate"),
    file: Optional[UploadFile] = File(None),
    db: AsyncIOMotorDatabase = Depends(get_db),
    course: dict = Depends(course_guard(Action.ADD_TASK))
):
    """
    Add task to course (owning instructor only)
    Multipart form with an optional single attachment
    """
    fields = _parse_task_fields(title, description, due_date)
    file_meta = await store_upload(file)

    try:
        return await create_task(db, course["course_id"], fields.dict(), file_meta)
    except PyMongoError:
        discard_upload(file_meta)
        raise
