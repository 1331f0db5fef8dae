from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

TITLE_MAX_LENGTH = 100
DETAIL_MAX_LENGTH = 1000

# Date, 'T', time, optional fraction, then 'Z' (UTC only)
_ISO_DATETIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d{1,6})?)?Z$")

_DUE_AT_MESSAGE = "dueAt must be an ISO8601 UTC timestamp (e.g., '2025-12-31T23:59:59.000Z')."


def _validate_title(value: str) -> str:
    """
    Internal helper shared by the create and update schemas.
    Enforce 1..100 length on the value as sent; it is stored unchanged.
    """
    if not (1 <= len(value) <= TITLE_MAX_LENGTH):
        raise ValueError(f"title length must be between 1 and {TITLE_MAX_LENGTH} characters")
    return value


def _reject_null(value: Optional[str], field: str) -> str:
    # Validators only run on supplied values, so omission still means "absent".
    if value is None:
        raise ValueError(f"{field} must be a string when provided; omit it instead of sending null")
    return value


def _validate_due_at(value: str) -> str:
    """
    Internal helper to check that dueAt is a full ISO8601 UTC timestamp.
    - A time and the 'Z' designator are required; bare dates and offsets are rejected.
    - The original string is kept as-is so clients get back exactly what they sent.
    """
    if not _ISO_DATETIME_RE.fullmatch(value):
        raise ValueError(_DUE_AT_MESSAGE)
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValueError(_DUE_AT_MESSAGE) from e
    return value


_input_config = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
)


# PUBLIC_INTERFACE
class CreateTaskDto(BaseModel):
    """
    Schema for creating a new Task.
    Unknown fields are rejected.
    """

    model_config = ConfigDict(
        **_input_config,
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "detail": "Milk, eggs, bread",
                "dueAt": "2025-02-01T17:00:00.000Z",
                "isComplete": False,
            }
        },
    )

    title: str = Field(..., description="Short title for the task (1..100 chars, stored as sent)")
    detail: Optional[str] = Field(
        default=None, description="Optional detailed description", max_length=DETAIL_MAX_LENGTH
    )
    due_at: Optional[str] = Field(default=None, description="Optional due timestamp (ISO8601 UTC)")
    is_complete: StrictBool = Field(default=False, description="Completion status flag")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _validate_title(v)

    @field_validator("detail", "due_at")
    @classmethod
    def reject_null(cls, v: Optional[str], info: ValidationInfo) -> str:
        return _reject_null(v, to_camel(info.field_name))

    @field_validator("due_at")
    @classmethod
    def validate_due_at(cls, v: str) -> str:
        return _validate_due_at(v)


# PUBLIC_INTERFACE
class UpdateTaskDto(BaseModel):
    """
    Schema for updating an existing Task.

    title and isComplete are required and always rewritten. detail and dueAt
    are optional, and omitting either one removes it from the stored task.
    """

    model_config = ConfigDict(
        **_input_config,
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "detail": "Milk, eggs, bread, and paper towels",
                "isComplete": True,
            }
        },
    )

    title: str = Field(..., description="Short title for the task (1..100 chars, stored as sent)")
    detail: Optional[str] = Field(
        default=None,
        description="Detailed description; omit to remove it",
        max_length=DETAIL_MAX_LENGTH,
    )
    due_at: Optional[str] = Field(default=None, description="Due timestamp (ISO8601 UTC); omit to remove it")
    is_complete: StrictBool = Field(..., description="Completion status flag")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _validate_title(v)

    @field_validator("detail", "due_at")
    @classmethod
    def reject_null(cls, v: Optional[str], info: ValidationInfo) -> str:
        return _reject_null(v, to_camel(info.field_name))

    @field_validator("due_at")
    @classmethod
    def validate_due_at(cls, v: str) -> str:
        return _validate_due_at(v)


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a Task.
    detail and dueAt are left out of the response when the task has none.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "3f1c2a9e-5b7d-4e8f-9a0b-1c2d3e4f5a6b",
                "title": "Buy groceries",
                "detail": "Milk, eggs, bread",
                "dueAt": "2025-02-01T17:00:00.000Z",
                "isComplete": False,
                "createdAt": "2025-01-25T10:15:30.123Z",
                "updatedAt": "2025-01-26T09:00:00.000Z",
            }
        },
    )

    id: str = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Short title for the task")
    detail: Optional[str] = Field(default=None, description="Optional detailed description")
    due_at: Optional[str] = Field(default=None, description="Optional due timestamp (ISO8601 UTC)")
    is_complete: bool = Field(..., description="Completion status flag")
    created_at: str = Field(..., description="Creation timestamp (ISO8601 UTC)")
    updated_at: str = Field(..., description="Last update timestamp (ISO8601 UTC)")
