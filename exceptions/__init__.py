"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ExternalServiceError,

    # Import pipeline
    MalformedInputError,
    MappingResolutionError,
    RowValidationError,
    FieldCoercionWarning,

    # Previews / uploads
    PreviewNotFoundError,
    UploadTooLargeError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ExternalServiceError",

    # Import pipeline
    "MalformedInputError",
    "MappingResolutionError",
    "RowValidationError",
    "FieldCoercionWarning",

    # Previews / uploads
    "PreviewNotFoundError",
    "UploadTooLargeError",
]
