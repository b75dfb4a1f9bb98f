import logging
import secrets
from datetime import datetime
from typing import Dict, Iterable, List, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
from coursehub.courses.models import Course, Task, Submission

logger = logging.getLogger(__name__)

# Mongo's _id never leaves this module
NO_ID = {"_id": 0}

def generate_id(prefix: str) -> str:
    """Generate unique ID with prefix"""
    return f"{prefix}_{secrets.token_hex(8).upper()}"

def merge_updates(fields: dict) -> dict:
    """
    Keep only the fields that carry a value.
    Empty strings and None leave the stored value unchanged.
    """
    return {key: value for key, value in fields.items() if value}

# ==================== USER SUMMARIES ====================

async def get_user_summaries(db: AsyncIOMotorDatabase, user_ids: Iterable[str]) -> Dict[str, dict]:
    """Map user_id -> {user_id, name, email} for display"""
    ids = list({uid for uid in user_ids if uid})
    if not ids:
        return {}

    cursor = db.users.find(
        {"user_id": {"$in": ids}},
        {"_id": 0, "user_id": 1, "name": 1, "email": 1}
    )
    users = await cursor.to_list(length=None)

    summaries = {uid: {"user_id": uid} for uid in ids}
    for user in users:
        summaries[user["user_id"]] = {
            "user_id": user["user_id"],
            "name": user.get("name"),
            "email": user.get("email")
        }
    return summaries

# ==================== COURSE CRUD ====================

async def create_course(db: AsyncIOMotorDatabase, course_data: dict, instructor_id: str) -> dict:
    """Create course owned by instructor_id, with no students and no tasks"""
    course = Course(
        course_id=generate_id("CRS"),
        instructor=instructor_id,
        **course_data
    ).dict()

    await db.courses.insert_one(course)
    course.pop("_id", None)
    logger.info("Course %s created by %s", course["course_id"], instructor_id)

    course["tasks"] = []
    return course

async def get_course(db: AsyncIOMotorDatabase, course_id: str) -> Optional[dict]:
    """Get stored course by ID"""
    return await db.courses.find_one({"course_id": course_id}, NO_ID)

async def get_task_summaries(db: AsyncIOMotorDatabase, course_ids: List[str]) -> Dict[str, List[dict]]:
    """Tasks of each course, oldest first, in summary form"""
    grouped = {cid: [] for cid in course_ids}
    if not course_ids:
        return grouped

    cursor = db.tasks.find(
        {"course": {"$in": course_ids}},
        {"_id": 0, "task_id": 1, "title": 1, "due_date": 1, "course": 1}
    ).sort("created_at", 1)

    for task in await cursor.to_list(length=None):
        grouped[task.pop("course")].append(task)
    return grouped

async def expand_courses(db: AsyncIOMotorDatabase, courses: List[dict]) -> List[dict]:
    """Replace instructor/student ids with summaries and attach task summaries"""
    user_ids = []
    for course in courses:
        user_ids.append(course["instructor"])
        user_ids.extend(course.get("students", []))

    users = await get_user_summaries(db, user_ids)
    tasks = await get_task_summaries(db, [c["course_id"] for c in courses])

    expanded = []
    for course in courses:
        expanded.append({
            **course,
            "instructor": users.get(course["instructor"], {"user_id": course["instructor"]}),
            "students": [users.get(sid, {"user_id": sid}) for sid in course.get("students", [])],
            "tasks": tasks.get(course["course_id"], [])
        })
    return expanded

async def list_courses(db: AsyncIOMotorDatabase) -> List[dict]:
    """All courses, newest first, expanded"""
    cursor = db.courses.find({}, NO_ID).sort("created_at", -1)
    courses = await cursor.to_list(length=None)
    return await expand_courses(db, courses)

async def get_course_detail(db: AsyncIOMotorDatabase, course_id: str) -> Optional[dict]:
    """Single expanded course"""
    course = await get_course(db, course_id)
    if not course:
        return None
    expanded = await expand_courses(db, [course])
    return expanded[0]

async def update_course(db: AsyncIOMotorDatabase, course_id: str, updates: dict) -> dict:
    """Apply a partial update (merge semantic) and return the stored course"""
    updates = merge_updates(updates)
    if updates:
        updates["updated_at"] = datetime.utcnow()
        await db.courses.update_one({"course_id": course_id}, {"$set": updates})
        logger.info("Course %s updated: %s", course_id, sorted(updates))

    return await get_course(db, course_id)

# ==================== ENROLLMENT ====================

async def enroll_student(db: AsyncIOMotorDatabase, course_id: str, user_id: str) -> bool:
    """
    Add user_id to the course's students.

    $addToSet makes the uniqueness check and the write a single atomic
    operation. Returns False when the user was already enrolled.
    """
    result = await db.courses.update_one(
        {"course_id": course_id},
        {"$addToSet": {"students": user_id}}
    )
    if result.modified_count == 0:
        return False

    logger.info("User %s enrolled in course %s", user_id, course_id)
    return True

# ==================== TASK CRUD ====================

async def create_task(
    db: AsyncIOMotorDatabase,
    course_id: str,
    task_data: dict,
    file_meta: Optional[dict] = None
) -> dict:
    """
    Create task for course_id.
    The course -> tasks relation is derived from task.course, so this is
    the only write.
    """
    task = Task(
        task_id=generate_id("TSK"),
        course=course_id,
        file=file_meta,
        **task_data
    ).dict()

    await db.tasks.insert_one(task)
    task.pop("_id", None)
    logger.info("Task %s created for course %s", task["task_id"], course_id)
    return task

async def get_task(db: AsyncIOMotorDatabase, task_id: str) -> Optional[dict]:
    """Get stored task by ID"""
    return await db.tasks.find_one({"task_id": task_id}, NO_ID)

async def list_tasks_for_course(db: AsyncIOMotorDatabase, course_id: str) -> List[dict]:
    """Tasks of a course with course summary and submission students expanded"""
    cursor = db.tasks.find({"course": course_id}, NO_ID).sort("created_at", 1)
    tasks = await cursor.to_list(length=None)
    if not tasks:
        return []

    course = await get_course(db, course_id)
    course_summary = {"course_id": course_id, "title": course.get("title") if course else None}

    student_ids = [sub["student"] for task in tasks for sub in task.get("submissions", [])]
    users = await get_user_summaries(db, student_ids)

    for task in tasks:
        task["course"] = course_summary
        task["submissions"] = [
            {**sub, "student": users.get(sub["student"], {"user_id": sub["student"]})}
            for sub in task.get("submissions", [])
        ]
    return tasks

async def update_task(db: AsyncIOMotorDatabase, task_id: str, updates: dict) -> dict:
    """Apply a partial update (merge semantic) and return the stored task"""
    updates = merge_updates(updates)
    if updates:
        updates["updated_at"] = datetime.utcnow()
        await db.tasks.update_one({"task_id": task_id}, {"$set": updates})
        logger.info("Task %s updated: %s", task_id, sorted(updates))

    return await get_task(db, task_id)

# ==================== SUBMISSIONS ====================

async def add_submission(db: AsyncIOMotorDatabase, task_id: str, student_id: str, content: str) -> bool:
    """
    Append a submission unless this student already has one.

    The filter and the $push run as one conditional write. Returns False
    when a submission from student_id already exists.
    """
    submission = Submission(student=student_id, content=content).dict()

    result = await db.tasks.update_one(
        {"task_id": task_id, "submissions.student": {"$ne": student_id}},
        {"$push": {"submissions": submission}}
    )
    if result.modified_count == 0:
        return False

    logger.info("Submission recorded for task %s by %s", task_id, student_id)
    return True

async def grade_submission(db: AsyncIOMotorDatabase, task_id: str, student_id: str, grade: float) -> bool:
    """Set the grade of student_id's submission. False if there is none."""
    result = await db.tasks.update_one(
        {"task_id": task_id, "submissions.student": student_id},
        {"$set": {
            "submissions.$.grade": grade,
            "submissions.$.graded_at": datetime.utcnow()
        }}
    )
    if result.matched_count == 0:
        return False

    logger.info("Submission of %s on task %s graded %s", student_id, task_id, grade)
    return True

# ==================== INDEXES ====================

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create MongoDB indexes"""
    await db.courses.create_index("course_id", unique=True)
    await db.courses.create_index("instructor")
    await db.courses.create_index("created_at")

    await db.tasks.create_index("task_id", unique=True)
    await db.tasks.create_index([("course", 1), ("created_at", 1)])

    await db.users.create_index("user_id", unique=True)
