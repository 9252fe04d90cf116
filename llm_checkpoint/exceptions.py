"""Custom exception hierarchy for llm-checkpoint."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Store errors
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    VERSION_NOT_FOUND = "VERSION_NOT_FOUND"
    FILE_ALREADY_EXISTS = "FILE_ALREADY_EXISTS"

    # Storage errors
    STORAGE_CORRUPTED = "STORAGE_CORRUPTED"

    # Version control errors
    VCS_QUERY_FAILED = "VCS_QUERY_FAILED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class CheckpointError(Exception):
    """
    Base exception for all llm-checkpoint errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            status_code: HTTP status code to return
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class NotFoundError(CheckpointError):
    """An operation referenced a File or Version that does not exist."""

    def __init__(self, message: str, error_code: ErrorCode, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, status_code=404, details=details)


class FileRecordNotFoundError(NotFoundError):
    """Tracked file not found in the store."""

    def __init__(self, file_ref):
        key = "file_id" if isinstance(file_ref, int) else "file_path"
        super().__init__(
            f"File not found: {file_ref}",
            ErrorCode.FILE_NOT_FOUND,
            details={key: file_ref}
        )


class VersionNotFoundError(NotFoundError):
    """Version not found in the store."""

    def __init__(self, version_id: int):
        super().__init__(
            f"Version not found: {version_id}",
            ErrorCode.VERSION_NOT_FOUND,
            details={"version_id": version_id}
        )


class ConflictError(CheckpointError):
    """A file record already exists for this path."""

    def __init__(self, file_path: str, message: Optional[str] = None):
        super().__init__(
            message or f"File already tracked: {file_path}",
            ErrorCode.FILE_ALREADY_EXISTS,
            status_code=409,
            details={"file_path": file_path}
        )


class StorageCorruptionError(CheckpointError):
    """The persistent store could not be loaded."""

    def __init__(self, db_path: str, original_error: Optional[Exception] = None):
        details = {"db_path": db_path}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            f"Version store is unreadable: {db_path}",
            ErrorCode.STORAGE_CORRUPTED,
            status_code=500,
            details=details
        )


class VCSQueryError(CheckpointError):
    """A version control command failed or returned nothing."""

    def __init__(self, command: str, message: str = "Version control query failed"):
        super().__init__(
            f"{message}: {command}",
            ErrorCode.VCS_QUERY_FAILED,
            status_code=502,
            details={"command": command}
        )


class ValidationError(CheckpointError):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )
