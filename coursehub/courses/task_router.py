import os
from typing import Optional
from fastapi import APIRouter, Body, Depends
from fastapi.responses import FileResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
from coursehub.courses.models import TaskCreate, TaskUpdate
from coursehub.courses.database import (
    get_course, create_task, list_tasks_for_course, update_task
)
from coursehub.courses.dependencies import get_db, CallerContext
from coursehub.courses.permissions import Action, TaskAccess, authorize, role_guard, task_guard
from coursehub.errors import NotFound

router = APIRouter(tags=["Tasks"])

# ==================== TASK CRUD ====================

@router.get("/course/{course_id}")
async def list_course_tasks(course_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    """Get all tasks for a course, submissions included"""
    return await list_tasks_for_course(db, course_id)


@router.post("/", status_code=201)
async def create_task_endpoint(
    data: TaskCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    caller: CallerContext = Depends(role_guard(Action.CREATE_TASK))
):
    """
    Create task (instructor only)
    The caller must own the target course
    """
    course = await get_course(db, data.course_id)
    if not course:
        raise NotFound("Course not found")

    authorize(caller, Action.CREATE_TASK, course)

    return await create_task(db, course["course_id"], data.dict(exclude={"course_id"}))


@router.put("/{task_id}")
async def update_task_endpoint(
    data: Optional[TaskUpdate] = Body(None),
    db: AsyncIOMotorDatabase = Depends(get_db),
    access: TaskAccess = Depends(task_guard(Action.UPDATE_TASK))
):
    """
    Update task (owning instructor only)
    Only non-empty title/description/dueDate are applied; no body changes nothing
    """
    updates = data.dict() if data else {}
    return await update_task(db, access.task["task_id"], updates)

# ==================== ATTACHMENT ====================

@router.get("/{task_id}/file")
async def download_task_file(access: TaskAccess = Depends(task_guard(Action.DOWNLOAD_FILE))):
    """Download the task attachment (course instructor or enrolled students)"""
    file_meta = access.task.get("file")
    if not file_meta or not os.path.isfile(file_meta["storage_path"]):
        raise NotFound("File not found")

    return FileResponse(
        file_meta["storage_path"],
        media_type=file_meta.get("mime_type") or "application/octet-stream",
        filename=file_meta["original_name"]
    )
