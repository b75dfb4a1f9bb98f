"""
Centralized error handling

Every error leaves the API as {"message": "..."} with a single status code.
Store failures and unexpected exceptions are logged and reported as a
generic 500 without internal detail.
"""

import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server error"


class CourseHubError(Exception):
    """Base exception for domain errors (carries its HTTP status)"""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class Unauthenticated(CourseHubError):
    """Missing, invalid or expired credential (401)"""
    status_code = 401


class Forbidden(CourseHubError):
    """Authenticated but wrong role or not the owner (403)"""
    status_code = 403


class NotFound(CourseHubError):
    """Referenced entity absent (404)"""
    status_code = 404


class Conflict(CourseHubError):
    """Duplicate enrollment or submission (400)"""
    status_code = 400


class ValidationError(CourseHubError):
    """Malformed request or missing required field (400)"""
    status_code = 400


class StoreUnavailable(CourseHubError):
    """Document store unreachable or failing (500)"""
    status_code = 500

    def __init__(self, message: str = SERVER_ERROR_MESSAGE):
        super().__init__(message)


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Invalid JSON body"
    # loc looks like ("body", "title") or ("query", "limit")
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    if first.get("type") == "missing":
        return f"Missing required field: {field}" if field else "Missing request body"
    return f"Invalid value for {field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")


async def coursehub_error_handler(request: Request, exc: CourseHubError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _message(exc.status_code, SERVER_ERROR_MESSAGE)
    return _message(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _message(400, _describe_validation_error(exc))


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _message(exc.status_code, str(exc.detail))


async def store_error_handler(request: Request, exc: PyMongoError):
    logger.exception("Store failure on %s %s", request.method, request.url.path)
    error = StoreUnavailable()
    return _message(error.status_code, error.message)


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _message(500, SERVER_ERROR_MESSAGE)


def register_error_handlers(app: FastAPI):
    """Map every failure to one status and a {"message"} body"""
    app.add_exception_handler(CourseHubError, coursehub_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(PyMongoError, store_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
