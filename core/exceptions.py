import traceback
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from settings.config import settings
from utils.logger import get_logger

logger = get_logger("Global_Exception")

VALIDATION_ERROR = "VALIDATION_ERROR"
UNAUTHORIZED = "UNAUTHORIZED"
FORBIDDEN = "FORBIDDEN"
NOT_FOUND = "NOT_FOUND"
CONFLICT = "CONFLICT"
ALREADY_EXISTS = "ALREADY_EXISTS"
SERVER_ERROR = "SERVER_ERROR"

STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: VALIDATION_ERROR,
    status.HTTP_401_UNAUTHORIZED: UNAUTHORIZED,
    status.HTTP_403_FORBIDDEN: FORBIDDEN,
    status.HTTP_404_NOT_FOUND: NOT_FOUND,
    status.HTTP_409_CONFLICT: CONFLICT,
    422: VALIDATION_ERROR,
}


class AppException(HTTPException):
    def __init__(self, status_code: int, detail: str, code: str | None = None):
        super().__init__(status_code=status_code, detail=detail)
        self.code = code or STATUS_CODES.get(status_code, SERVER_ERROR)


class ValidationFailed(AppException):
    def __init__(self, detail: str):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail, VALIDATION_ERROR)


class Unauthorized(AppException):
    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, detail, UNAUTHORIZED)


class Forbidden(AppException):
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status.HTTP_403_FORBIDDEN, detail, FORBIDDEN)


class NotFound(AppException):
    def __init__(self, detail: str):
        super().__init__(status.HTTP_404_NOT_FOUND, detail, NOT_FOUND)


class Conflict(AppException):
    def __init__(self, detail: str):
        super().__init__(status.HTTP_409_CONFLICT, detail, CONFLICT)


class AlreadyExists(AppException):
    def __init__(self, detail: str):
        super().__init__(status.HTTP_409_CONFLICT, detail, ALREADY_EXISTS)


def error_body(message: str, code: str, exc: Exception | None = None) -> dict:
    """
    The error envelope every handler returns: {success, error: {message, code}}.
    In DEBUG mode the formatted traceback is attached as error.stack.
    """
    error = {"message": message, "code": code}
    if settings.DEBUG and exc is not None:
        error["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return {"success": False, "error": error}


async def app_exception_handler(request: Request, exc: AppException):
    logger.warning(f"AppException: {exc.detail}", extra={"path": request.url.path, "code": exc.code})
    return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail), exc.code, exc), headers=exc.headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = STATUS_CODES.get(exc.status_code, SERVER_ERROR if exc.status_code >= 500 else VALIDATION_ERROR)
    return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail), code, exc), headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg"))
    logger.info("Request validation failed", extra={"path": request.url.path})
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(", ".join(messages), VALIDATION_ERROR, exc))


async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    logger.warning("Duplicate key", extra={"path": request.url.path})
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=error_body("Duplicate value for a unique field", CONFLICT, exc))


async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path}
    )
    return JSONResponse(
        status_code=500,
        content=error_body("Internal server error", SERVER_ERROR, exc)
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DuplicateKeyError, duplicate_key_handler)
    app.add_exception_handler(Exception, global_exception_handler)
