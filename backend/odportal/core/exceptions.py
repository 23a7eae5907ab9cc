class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class InvalidTransitionError(AppError):
    """Raised when a status change is not allowed from the request's current status."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)

class StaleRequestError(AppError):
    """Raised when a request changed status between read and conditional update."""
    def __init__(self, request_id: str, expected_status: str):
        super().__init__(
            "OD request was updated by another reviewer. Reload and try again.",
            status_code=409,
            details={"request_id": request_id, "expected_status": expected_status},
        )

class DocumentValidationError(AppError):
    """Raised when an uploaded document is missing, empty or of an unsupported type."""
    def __init__(self, message: str, details: dict = None, status_code: int = 422):
        super().__init__(message, status_code=status_code, details=details)

class StorageError(AppError):
    """Raised when the document store cannot complete an operation."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=502, details=details)

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)

class PermissionDeniedError(AppError):
    """Raised when a user's role or class scope does not cover the requested action."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=403, details=details)

class SubmissionValidationError(AppError):
    """Raised when an OD submission is missing data that cannot be defaulted from the profile."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)
