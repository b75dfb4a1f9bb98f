"""
Authorization rules for course and task actions

Each action maps to an ordered list of (predicate, message) rules. The first
rule that fails raises Forbidden with its message. Routes never check roles
or ownership inline; they go through role_guard, course_guard or task_guard,
which load the resource and evaluate the rules before the handler body runs.
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from coursehub.courses.database import get_course, get_task
from coursehub.courses.dependencies import CallerContext, get_current_user, get_db
from coursehub.errors import Forbidden, NotFound

logger = logging.getLogger(__name__)


class Action(str, Enum):
    CREATE_COURSE = "create_course"
    UPDATE_COURSE = "update_course"
    ENROLL = "enroll"
    ADD_TASK = "add_task"
    CREATE_TASK = "create_task"
    UPDATE_TASK = "update_task"
    SUBMIT_TASK = "submit_task"
    GRADE_SUBMISSION = "grade_submission"
    DOWNLOAD_FILE = "download_file"

# ==================== PREDICATES ====================

Predicate = Callable[[CallerContext, Optional[dict]], bool]

def is_instructor(caller: CallerContext, course: Optional[dict]) -> bool:
    return caller.is_instructor

def owns_course(caller: CallerContext, course: Optional[dict]) -> bool:
    return course is not None and course.get("instructor") == caller.user_id

def is_enrolled(caller: CallerContext, course: Optional[dict]) -> bool:
    return course is not None and caller.user_id in course.get("students", [])

def owns_or_enrolled(caller: CallerContext, course: Optional[dict]) -> bool:
    return owns_course(caller, course) or is_enrolled(caller, course)

# ==================== RULE TABLE ====================

RULES: Dict[Action, List[Tuple[Predicate, str]]] = {
    Action.CREATE_COURSE: [
        (is_instructor, "Only instructors can create courses"),
    ],
    Action.UPDATE_COURSE: [
        (owns_course, "Not authorized to update this course"),
    ],
    # Open to any authenticated caller, whatever the role
    Action.ENROLL: [],
    Action.ADD_TASK: [
        (owns_course, "Not authorized to add tasks to this course"),
    ],
    Action.CREATE_TASK: [
        (is_instructor, "Only instructors can create tasks"),
        (owns_course, "Not authorized to create tasks for this course"),
    ],
    Action.UPDATE_TASK: [
        (owns_course, "Not authorized to update this task"),
    ],
    Action.SUBMIT_TASK: [
        (is_enrolled, "Not enrolled in this course"),
    ],
    Action.GRADE_SUBMISSION: [
        (owns_course, "Not authorized to grade this task"),
    ],
    Action.DOWNLOAD_FILE: [
        (owns_or_enrolled, "Not authorized to access this file"),
    ],
}


# Rules that only look at the caller, checked before any resource is loaded
ROLE_PREDICATES = {is_instructor}


def authorize_role(caller: CallerContext, action: Action) -> None:
    """
    Evaluate only the caller-level rules of action.

    Raises:
        403: the first failing role rule
    """
    for predicate, message in RULES[action]:
        if predicate in ROLE_PREDICATES and not predicate(caller, None):
            logger.warning("Denied %s for %s (role %s)", action.value, caller.user_id, caller.role.value)
            raise Forbidden(message)


def authorize(caller: CallerContext, action: Action, course: Optional[dict] = None) -> None:
    """
    Evaluate every rule of action against course.

    Raises:
        403: the first failing rule for this action
    """
    for predicate, message in RULES[action]:
        if not predicate(caller, course):
            logger.warning(
                "Denied %s for %s on course %s",
                action.value, caller.user_id, course.get("course_id") if course else None
            )
            raise Forbidden(message)

# ==================== RESOURCE GUARDS ====================

class TaskAccess:
    """Task plus its owning course, already authorized"""
    def __init__(self, task: dict, course: dict, caller: CallerContext):
        self.task = task
        self.course = course
        self.caller = caller


def role_guard(action: Action):
    """Dependency factory: authenticated caller that passes the role rules of action"""
    async def dependency(caller: CallerContext = Depends(get_current_user)) -> CallerContext:
        authorize_role(caller, action)
        return caller

    return dependency


def course_guard(action: Action):
    """
    Dependency factory: loads the course named by the course_id path
    parameter and authorizes action on it.

    Raises:
        404: Course not found
        403: rule failed
    """
    async def dependency(
        course_id: str,
        db: AsyncIOMotorDatabase = Depends(get_db),
        caller: CallerContext = Depends(get_current_user)
    ) -> dict:
        course = await get_course(db, course_id)
        if not course:
            raise NotFound("Course not found")

        authorize(caller, action, course)
        return course

    return dependency


def task_guard(action: Action):
    """
    Dependency factory: loads the task named by the task_id path parameter
    and its owning course, then authorizes action on that course.

    Raises:
        404: Task or its course not found
        403: rule failed
    """
    async def dependency(
        task_id: str,
        db: AsyncIOMotorDatabase = Depends(get_db),
        caller: CallerContext = Depends(get_current_user)
    ) -> TaskAccess:
        task = await get_task(db, task_id)
        if not task:
            raise NotFound("Task not found")

        course = await get_course(db, task["course"])
        if not course:
            raise NotFound("Course not found")

        authorize(caller, action, course)
        return TaskAccess(task, course, caller)

    return dependency
