"""Custom exception classes and error handling."""

from typing import Any

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "error": {
                    "code": code,
                    "message": message,
                    "details": details or {},
                },
            },
        )


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            code="AUTH_FAILED",
            message=message,
        )


class PermissionDeniedError(AppException):
    """Permission denied for the requested action."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            code="PERMISSION_DENIED",
            message=message,
        )


class AccessDeniedError(AppException):
    """Student is not enrolled in the course an exam belongs to."""

    def __init__(self, exam_id: str, course_id: str | None = None):
        details: dict[str, Any] = {"exam_id": exam_id}
        if course_id:
            details["course_id"] = course_id
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            code="ACCESS_DENIED",
            message="You are not enrolled in the course required for this exam",
            details=details,
        )


class ValidationError(AppException):
    """Data validation failed."""

    def __init__(
        self,
        message: str = "Validation error",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code="VALIDATION_ERROR",
            message=message,
            details=details,
        )


class MalformedInputError(AppException):
    """Authored content could not be parsed; nothing was written."""

    def __init__(
        self,
        message: str = "Malformed input",
        errors: list[dict[str, Any]] | None = None,
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code="MALFORMED_INPUT",
            message=message,
            details={"errors": errors or []},
        )


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(
        self,
        resource: str = "Resource",
        identifier: str | None = None,
    ):
        details = {}
        if identifier:
            details["identifier"] = identifier
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            code="NOT_FOUND",
            message=f"{resource} not found",
            details=details,
        )


class ExamUnavailableError(AppException):
    """Exam is missing or has no questions, so it cannot be taken."""

    def __init__(self, exam_id: str, reason: str = "not_found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            code="EXAM_UNAVAILABLE",
            message="This exam could not be loaded or has no questions",
            details={"exam_id": exam_id, "reason": reason},
        )


class ConflictError(AppException):
    """Resource already exists."""

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            code="CONFLICT",
            message=message,
        )


class SessionStateError(AppException):
    """Action is not allowed in the exam session's current state."""

    def __init__(self, message: str, session_status: str | None = None):
        details = {}
        if session_status:
            details["status"] = session_status
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            code="SESSION_STATE",
            message=message,
            details=details,
        )


class PersistenceError(AppException):
    """Backing store could not complete a write or read."""

    def __init__(
        self,
        message: str = "Storage backend unavailable",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            code="PERSISTENCE_FAILED",
            message=message,
            details=details,
        )


class SubmissionFailedError(AppException):
    """Result could not be saved; answers are kept and submit may be retried."""

    def __init__(self, session_id: str, reason: str | None = None):
        details: dict[str, Any] = {"session_id": session_id, "retryable": True}
        if reason:
            details["reason"] = reason
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            code="SUBMISSION_FAILED",
            message="Failed to submit exam. Please try again.",
            details=details,
        )
