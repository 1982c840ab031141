from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id={identifier} not found"
        super().__init__(message=message, status_code=404)


class ValidationError(AppException):
    """Validation error."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=422, details=details)


class BackendError(AppException):
    """Request to the backend (tables / RPC) failed."""

    def __init__(self, context: str, reason: str, status_code: int | None = None):
        message = f"{context}: {reason}"
        super().__init__(
            message=message,
            status_code=502,
            details={"context": context, "reason": reason, "backend_status": status_code},
        )


class ExportError(AppException):
    """Every export format in the fallback chain failed."""

    def __init__(self, message: str, errors: dict[str, str] | None = None):
        super().__init__(message=message, status_code=500, details={"errors": errors or {}})


class ExportUnavailableError(AppException):
    """WeasyPrint/system libraries not available (e.g. pango on macOS)."""

    def __init__(self, message: str | None = None):
        msg = message or (
            "PDF generation is not available on this system. "
            "On macOS install: brew install pango glib."
        )
        super().__init__(message=msg, status_code=503)
