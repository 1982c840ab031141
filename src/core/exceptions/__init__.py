from src.core.exceptions.base import (
    AppException,
    NotFoundError,
    ValidationError,
    BackendError,
    ExportError,
    ExportUnavailableError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "ValidationError",
    "BackendError",
    "ExportError",
    "ExportUnavailableError",
]
