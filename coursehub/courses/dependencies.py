from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from coursehub.auth_utils import verify_token
from coursehub.courses.models import UserRole
from coursehub.errors import Unauthenticated

def get_db_instance():
    """Get database from main module"""
    from coursehub.main import db
    return db

class CallerContext:
    """
    Identity carried by a verified bearer token
    """
    def __init__(self, user_id: str, role: UserRole):
        self.user_id = user_id
        self.role = role

    @property
    def is_instructor(self) -> bool:
        return self.role == UserRole.INSTRUCTOR

    def __repr__(self):
        return f"CallerContext(user_id={self.user_id!r}, role={self.role.value!r})"

# ==================== DEPENDENCY FUNCTIONS ====================

async def get_db() -> AsyncIOMotorDatabase:
    """Database dependency"""
    return get_db_instance()

async def get_current_user(payload: dict = Depends(verify_token)) -> CallerContext:
    """
    Dependency: resolves the caller from token claims

    Raises:
        401: token carries no user id or an unknown role
    """
    user_id = payload.get("sub") or payload.get("userId")
    if not user_id:
        raise Unauthenticated("Invalid token: missing user id")

    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        raise Unauthenticated("Invalid token: unknown role")

    return CallerContext(str(user_id), role)
