"""
Common Pydantic schemas used across the API.
"""
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from seopilot.services.types import PipelineWarning


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


class IDSchema(BaseSchema):
    """Schema with UUID ID."""

    id: UUID


class WarningSchema(BaseSchema):
    """A skipped or degraded unit of work."""

    kind: str
    message: str
    file: str | None = None
    issue_id: str | None = None

    @classmethod
    def from_warning(cls, warning: PipelineWarning) -> "WarningSchema":
        return cls(**warning.to_dict())


class ErrorResponse(BaseSchema):
    """Error response."""

    detail: str
