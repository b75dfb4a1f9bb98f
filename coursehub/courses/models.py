from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime
from enum import Enum

# ==================== ENUMS ====================

class UserRole(str, Enum):
    INSTRUCTOR = "instructor"
    STUDENT = "student"

# ==================== DATABASE MODELS ====================

class Course(BaseModel):
    course_id: str  # CRS_XXXXXX
    title: str
    description: str
    category: str
    instructor: str  # owning user_id, never reassigned
    students: List[str] = []  # enrolled user_ids, unique
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

class TaskFile(BaseModel):
    """Attachment metadata recorded once, at task creation"""
    filename: str  # generated name on disk
    original_name: str
    storage_path: str
    mime_type: Optional[str] = None
    size: int = 0

class Submission(BaseModel):
    student: str  # user_id
    content: str
    submitted_at: datetime = Field(default_factory=datetime.utcnow)
    grade: Optional[float] = None  # None = not graded yet
    graded_at: Optional[datetime] = None

class Task(BaseModel):
    task_id: str  # TSK_XXXXXX
    title: str
    description: str
    due_date: datetime
    course: str  # owning course_id, never reassigned
    file: Optional[TaskFile] = None
    submissions: List[Submission] = []
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

# ==================== REQUEST SCHEMAS ====================

class CourseCreate(BaseModel):
    title: str
    description: str
    category: str

    @validator("title", "description", "category")
    def validate_not_blank(cls, v):
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

class CourseUpdate(BaseModel):
    # Falsy values leave the stored field untouched
    title: Optional[str] = None
    description: Optional[str] = None

    @validator("title", "description", pre=True)
    def drop_falsy(cls, v):
        return v or None

class TaskFields(BaseModel):
    title: str
    description: str
    due_date: datetime = Field(..., alias="dueDate")

    @validator("title", "description")
    def validate_not_blank(cls, v):
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    class Config:
        populate_by_name = True

class TaskCreate(TaskFields):
    course_id: str = Field(..., alias="courseId")

class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = Field(None, alias="dueDate")

    # "" or 0 for dueDate means "keep", not a malformed date
    @validator("title", "description", "due_date", pre=True)
    def drop_falsy(cls, v):
        return v or None

    class Config:
        populate_by_name = True

class SubmissionCreate(BaseModel):
    content: str

class GradeUpdate(BaseModel):
    grade: float = Field(..., ge=0)
