class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_payload(self, *, expose_details: bool = True) -> dict:
        return {"message": self.message, "details": self.details}


class ValidationFailedError(AppError):
    """Raised when request fields fail business validation; `fields` maps field keys to messages."""
    def __init__(self, fields: dict[str, str], message: str = "Validation failed"):
        self.fields = dict(fields)
        super().__init__(message, status_code=400, details={"fields": self.fields})


class SessionConflictError(AppError):
    """Raised when a session overlaps existing bookings and no override was requested."""
    def __init__(self, message: str, conflicts: list[dict], details: dict = None):
        self.conflicts = conflicts
        super().__init__(message, status_code=409, details=details)

    def to_payload(self, *, expose_details: bool = True) -> dict:
        payload = super().to_payload(expose_details=expose_details)
        payload["conflicts"] = self.conflicts
        return payload


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)


class PermissionDeniedError(AppError):
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, status_code=403)


class InvalidTransitionError(AppError):
    """Raised when an invitation response cannot be applied to the current state."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class StorageError(AppError):
    """Raised when the database or the filesystem fails underneath an operation."""
    def __init__(self, message: str, *, reason: str | None = None, details: dict = None):
        self.reason = reason
        super().__init__(message, status_code=500, details=details)

    def to_payload(self, *, expose_details: bool = True) -> dict:
        payload = super().to_payload(expose_details=expose_details)
        if expose_details and self.reason:
            payload["details"] = {**self.details, "reason": self.reason}
        return payload
