"""
Custom exception classes for the application.

Fatal import errors abort the whole import. Row and field errors are
recovered and recorded in the ImportReport.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "MALFORMED_INPUT")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code or f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


# ===================
# IMPORT ERRORS
# ===================

class MalformedInputError(ValidationError):
    """Spreadsheet has no usable header and data rows. Fatal for the import."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="MALFORMED_INPUT",
            message=message,
            details=details
        )


class MappingResolutionError(ExternalServiceError):
    """Column mapping could not be resolved. Fatal for the import."""

    def __init__(
        self,
        reason: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            service="mapping_resolver",
            code="MAPPING_RESOLUTION_ERROR",
            message=f"Column mapping resolution failed: {reason}",
            details={"reason": reason, **(details or {})}
        )
        self.reason = reason


class RowValidationError(ValidationError):
    """A single row failed to produce a valid draft. Recorded, not raised to callers."""

    def __init__(
        self,
        row: int,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="ROW_VALIDATION_ERROR",
            message=message,
            details={"row": row, **(details or {})}
        )
        self.row = row


class FieldCoercionWarning(AppError):
    """
    A single cell could not be coerced into its target field.

    Stored inline on the draft; the field is omitted and the row continues.
    """

    def __init__(
        self,
        column: str,
        field: str,
        value: Any,
        expected: str = "a positive number"
    ):
        super().__init__(
            code="FIELD_COERCION_WARNING",
            message=f"{column}: cannot read '{value}' as {expected} for {field}",
            status_code=422,
            details={"column": column, "field": field, "value": str(value)}
        )
        self.column = column
        self.field = field


# ===================
# PREVIEW / UPLOAD ERRORS
# ===================

class PreviewNotFoundError(NotFoundError):
    """Import preview not found or expired."""

    def __init__(self, preview_id: str):
        super().__init__(
            resource="Import preview",
            identifier=preview_id,
            code="PREVIEW_NOT_FOUND"
        )


class UploadTooLargeError(AppError):
    """Uploaded file exceeds the configured limit (413)."""

    def __init__(self, size: int, limit: int):
        super().__init__(
            code="UPLOAD_TOO_LARGE",
            message=f"File is too large ({size} bytes, limit {limit} bytes)",
            status_code=413,
            details={"size": size, "limit": limit}
        )
