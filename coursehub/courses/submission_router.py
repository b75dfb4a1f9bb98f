from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from coursehub.courses.models import SubmissionCreate, GradeUpdate
from coursehub.courses.database import add_submission, grade_submission, get_task
from coursehub.courses.dependencies import get_db
from coursehub.courses.permissions import Action, TaskAccess, task_guard
from coursehub.errors import Conflict, NotFound

router = APIRouter(tags=["Submissions"])


@router.post("/{task_id}/submit")
async def submit_task(
    data: SubmissionCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    access: TaskAccess = Depends(task_guard(Action.SUBMIT_TASK))
):
    """
    Submit task (enrolled students only, one submission each)
    Due date is not enforced
    """
    recorded = await add_submission(db, access.task["task_id"], access.caller.user_id, data.content)
    if not recorded:
        raise Conflict("Already submitted this task")

    return {"message": "Task submitted successfully"}


@router.put("/{task_id}/submissions/{student_id}/grade")
async def grade_task_submission(
    student_id: str,
    data: GradeUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    access: TaskAccess = Depends(task_guard(Action.GRADE_SUBMISSION))
):
    """Grade one student's submission (owning instructor only)"""
    graded = await grade_submission(db, access.task["task_id"], student_id, data.grade)
    if not graded:
        raise NotFound("Submission not found")

    return await get_task(db, access.task["task_id"])
