from backend.schemas.contact import (
    CONTACT_RULES,
    ContactErrorResponse,
    ContactRequest,
    ContactSubmission,
    ContactSuccessResponse,
    FieldErrorItem,
    HealthResponse,
    NotFoundResponse,
    ValidationErrorResponse,
)

__all__ = [
    "CONTACT_RULES",
    "ContactErrorResponse",
    "ContactRequest",
    "ContactSubmission",
    "ContactSuccessResponse",
    "FieldErrorItem",
    "HealthResponse",
    "NotFoundResponse",
    "ValidationErrorResponse",
]
