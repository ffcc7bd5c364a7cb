"""Error taxonomy for the ingestion and insight paths.

Each error carries the HTTP status it maps to so the exception handler in
``main.py`` can answer with a structured body instead of an opaque 500.
"""


class AppError(Exception):
    """Base class for errors that are safe to report to the caller"""
    status_code = 500
    error_type = "APP_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Missing or malformed input (no file, wrong extension, too large, bad body)"""
    status_code = 400
    error_type = "VALIDATION_ERROR"


class FormatError(AppError):
    """The uploaded bytes are not a legal workbook for the declared format"""
    status_code = 400
    error_type = "FORMAT_ERROR"


class EmptyFileError(AppError):
    """The workbook decoded fine but carries no data rows"""
    status_code = 400
    error_type = "EMPTY_FILE"


class PersistenceError(AppError):
    """The document store could not be reached or rejected the write"""
    status_code = 500
    error_type = "PERSISTENCE_ERROR"


class AuthorizationError(AppError):
    """Missing/invalid credentials (401) or insufficient role (403)"""
    status_code = 401
    error_type = "AUTHORIZATION_ERROR"

    def __init__(self, message: str, status_code: int = 401):
        super().__init__(message)
        self.status_code = status_code
