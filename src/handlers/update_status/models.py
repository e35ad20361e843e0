from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    field_validator,
)

from core.utils.constants import ALLOWED_STATUSES


class UpdateStatusRequest(BaseModel):
    """Validation model for an image status change."""

    model_config = ConfigDict(str_strip_whitespace=True)

    image_id: StrictStr = Field(..., min_length=1, description="Image ID to update")
    status: StrictStr = Field(..., description="active, hidden or deleted")

    @field_validator("image_id")
    @classmethod
    def validate_image_id_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("image_id must not be blank")
        return value

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: str) -> str:
        status = value.lower()
        if status not in ALLOWED_STATUSES:
            raise ValueError(f"Invalid status. Allowed: {', '.join(sorted(ALLOWED_STATUSES))}")
        return status


class UpdateStatusResponse(BaseModel):
    image_id: str
    status: str
    updated_at: str | None = None
    message: str
