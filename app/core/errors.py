from typing import Any, Dict, Optional


class AppError(Exception):
    """Base application error. Carries an HTTP status, a machine-readable code and field details."""

    status_code = 500
    code = "APP_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any = None):
        suffix = f" #{entity_id}" if entity_id is not None else ""
        super().__init__(f"{entity}{suffix} not found", {"entity": entity, "id": entity_id})


class StateConflictError(AppError):
    """The entity exists but is in a state that forbids the requested operation."""

    status_code = 400
    code = "STATE_CONFLICT"


class BusinessLogicError(AppError):
    status_code = 422
    code = "BUSINESS_LOGIC_ERROR"
