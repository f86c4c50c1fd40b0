"""
Error taxonomy and request-boundary error handling
"""

import uuid
import logging
from typing import Optional
from datetime import datetime
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

class ErrorContext:
    """Context object for tracking error information across the request lifecycle"""

    def __init__(self, request: Request):
        self.request_id = str(uuid.uuid4())
        self.request = request
        self.endpoint = str(request.url.path)
        self.method = request.method
        self.client_ip = self._get_client_ip()
        self.timestamp = datetime.utcnow()

    def _get_client_ip(self) -> Optional[str]:
        """Extract client IP from request headers"""
        if "x-forwarded-for" in self.request.headers:
            return self.request.headers["x-forwarded-for"].split(",")[0].strip()
        elif "x-real-ip" in self.request.headers:
            return self.request.headers["x-real-ip"]
        elif self.request.client:
            return self.request.client.host
        return None

class AppError(Exception):
    """Base class for errors that map onto an HTTP status"""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

class ValidationError(AppError):
    """Missing or malformed input"""
    status_code = 400

class AuthError(AppError):
    """Bad credentials or a missing/invalid bearer token"""
    status_code = 401

class NotFoundError(AppError):
    status_code = 404

class ConflictError(AppError):
    """Unique constraint clash, e.g. an email that is already registered"""
    status_code = 400

class DatabaseError(AppError):
    """Custom exception for database-related errors"""
    status_code = 500

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(message)

def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})

def _log_error(error_context: ErrorContext, error: Exception, status_code: int):
    """Log error with request context; server faults get the traceback"""
    message = (
        f"Error {error_context.request_id}: {type(error).__name__} in "
        f"{error_context.method} {error_context.endpoint} -> {status_code}: {error}"
    )
    extra = {
        "request_id": error_context.request_id,
        "endpoint": error_context.endpoint,
        "method": error_context.method,
        "status_code": status_code,
        "client_ip": error_context.client_ip,
        "error_type": type(error).__name__,
    }
    if status_code >= 500:
        logger.error(message, extra=extra, exc_info=error)
    else:
        logger.info(message, extra=extra)

def register_exception_handlers(app: FastAPI):
    """Map every failure to a JSON body of the form {"error": message}"""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        _log_error(ErrorContext(request), exc, exc.status_code)
        if isinstance(exc, DatabaseError):
            return error_response(exc.status_code, "Internal server error")
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else first.get("msg")
        else:
            message = "Invalid request body"
        _log_error(ErrorContext(request), exc, 400)
        return error_response(400, message)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        _log_error(ErrorContext(request), exc, 500)
        return error_response(500, "Internal server error")

class DatabaseManager:
    """Context manager wrapping one unit of work in a single commit"""

    def __init__(self, db: Session):
        self.db = db

    def __enter__(self) -> Session:
        return self.db

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.db.rollback()
            if isinstance(exc_val, SQLAlchemyError):
                logger.error(f"Database transaction error: {exc_val}")
                raise DatabaseError(f"Database transaction failed: {str(exc_val)}", exc_val) from exc_val
            return False
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Database commit failed: {e}")
            self.db.rollback()
            raise DatabaseError(f"Database transaction failed: {str(e)}", e) from e
        return False
