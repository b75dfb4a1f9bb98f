from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from coursehub.courses.database import enroll_student
from coursehub.courses.dependencies import get_db, get_current_user, CallerContext
from coursehub.courses.permissions import Action, course_guard
from coursehub.errors import Conflict

router = APIRouter(tags=["Enrollments"])


@router.post("/{course_id}/enroll")
async def enroll_endpoint(
    db: AsyncIOMotorDatabase = Depends(get_db),
    caller: CallerContext = Depends(get_current_user),
    course: dict = Depends(course_guard(Action.ENROLL))
):
    """
    Enroll the caller in course
    Any authenticated user may enroll, once
    """
    enrolled = await enroll_student(db, course["course_id"], caller.user_id)
    if not enrolled:
        raise Conflict("Already enrolled in this course")

    return {"message": "Successfully enrolled in course"}
