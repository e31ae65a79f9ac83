from enum import Enum
from pydantic import BaseModel, ConfigDict
from typing import Generic, TypeVar, Optional

T = TypeVar("T")


class ErrorCategory(Enum):
    VALIDATION = "Validation"
    NOT_FOUND = "Not Found"
    AUTHENTICATION = "Authentication"
    AUTHORIZATION = "Authorization"
    INTERNAL = "Internal Server Error"
    BAD_REQUEST = "Bad Request"
    RESOURCE_CONFLICT = "Resource Conflict"
    # Rejected because it would break a household rule (e.g. last admin)
    INVARIANT_VIOLATION = "Invariant Violation"
    CUSTOM = "Custom Error"


class Error(BaseModel):
    message: str
    status_code: int
    category: ErrorCategory
    field: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True)


class Result(BaseModel, Generic[T]):
    """Envelope for every API response body."""
    success: bool
    error: Optional[Error] = None
    data: Optional[T] = None

    @classmethod
    def successful(cls, data: Optional[T] = None):
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: Error):
        return cls(success=False, error=error)

    @classmethod
    def from_error(
        cls,
        message: str,
        status_code: int,
        category: ErrorCategory,
        field: Optional[str] = None,
    ):
        return cls.failure(
            Error(message=message, status_code=status_code, category=category, field=field)
        )
