"""
Error hierarchy for the Open Spaces API.

Every failure a handler can raise derives from OpenSpacesError and carries a
stable code, a category and the HTTP status the global handler in app.py uses.
Storage failures are wrapped into StorageError at the adapter boundary so that
no driver message reaches a client.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    AUTHORIZATION = "authorization"
    STORAGE = "storage"
    DELIVERY = "delivery"


class OpenSpacesError(Exception):
    """Base exception for all Open Spaces errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        http_status: int = 500,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.http_status = http_status
        self.details = details

    def to_response(self) -> dict:
        error = {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
        }
        if self.details:
            error["details"] = self.details
        return {"error": error}


class ValidationError(OpenSpacesError):
    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message, code, ErrorCategory.VALIDATION, http_status=400)


class InvalidRole(ValidationError):
    def __init__(self, role: Optional[str]):
        super().__init__(f"Invalid role specified: {role}", code="INVALID_ROLE")


class InvalidOrExpiredToken(ValidationError):
    def __init__(self):
        super().__init__("Invalid or expired token", code="INVALID_OR_EXPIRED_TOKEN")


class NotFoundError(OpenSpacesError):
    def __init__(self, resource: str, resource_id: Optional[str] = None):
        message = f"{resource} not found" if resource_id is None else f"{resource} {resource_id} not found"
        super().__init__(message, "NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND, http_status=404)


class ConflictError(OpenSpacesError):
    def __init__(self, message: str, code: str = "CONFLICT"):
        super().__init__(message, code, ErrorCategory.CONFLICT, http_status=409)


class DuplicateUser(ConflictError):
    def __init__(self, email: str):
        super().__init__(f"User with email {email} already exists", code="DUPLICATE_USER")


class RoomInUse(ConflictError):
    def __init__(self, room_id: str):
        super().__init__(
            f"Cannot delete room {room_id}: it has time slots assigned to it",
            code="ROOM_IN_USE",
        )


class CannotDeleteSelf(ConflictError):
    def __init__(self):
        super().__init__("You cannot delete your own account", code="CANNOT_DELETE_SELF")


class IdeaAlreadyMerged(ConflictError):
    def __init__(self, idea_id: str):
        super().__init__(f"Idea {idea_id} has already been merged", code="IDEA_ALREADY_MERGED")


class ConcurrentModification(ConflictError):
    def __init__(self):
        super().__init__(
            "The record was modified concurrently, please retry",
            code="CONCURRENT_MODIFICATION",
        )


class ForbiddenError(OpenSpacesError):
    def __init__(self):
        super().__init__("Forbidden", "FORBIDDEN", ErrorCategory.AUTHORIZATION, http_status=403)


class StorageError(OpenSpacesError):
    """A storage collaborator failed. The message is always generic."""

    def __init__(self, message: str = "Storage backend unavailable"):
        super().__init__(message, "STORAGE_ERROR", ErrorCategory.STORAGE, http_status=500)


class DeliveryDegraded(OpenSpacesError):
    def __init__(self, message: str, code: str = "DELIVERY_DEGRADED", details: Optional[dict] = None):
        super().__init__(message, code, ErrorCategory.DELIVERY, http_status=502, details=details)


class UserCreatedEmailFailed(DeliveryDegraded):
    """The user row exists, only the invitation email failed."""

    def __init__(self, user: dict):
        super().__init__(
            "User created, but failed to send invitation email. "
            "Please ask the user to try the login page.",
            code="USER_CREATED_EMAIL_FAILED",
            details={"user": user},
        )
        self.user = user
