"""
CourseHub course system wiring
Routers and indexes for courses, enrollments, tasks and submissions
"""

import logging
from fastapi import FastAPI
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from coursehub.courses.course_router import router as course_router
from coursehub.courses.enrollment_router import router as enrollment_router
from coursehub.courses.task_router import router as task_router
from coursehub.courses.submission_router import router as submission_router
from coursehub.courses.database import create_indexes

logger = logging.getLogger(__name__)

# ==================== ROUTER SETUP ====================

def setup_course_routes(app: FastAPI):
    """Register all course-related routers"""

    app.include_router(course_router, prefix="/api/courses")
    app.include_router(enrollment_router, prefix="/api/courses")
    app.include_router(task_router, prefix="/api/tasks")
    app.include_router(submission_router, prefix="/api/tasks")

    logger.info("Course routes registered")

# ==================== STARTUP ====================

async def startup_course_system(db: AsyncIOMotorDatabase):
    """Initialize course system on app startup"""
    try:
        await create_indexes(db)
    except PyMongoError:
        # Requests still fail individually with 500 while the store is down
        logger.exception("Could not create course indexes")
        return
    logger.info("Course system initialized")
