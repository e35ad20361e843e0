from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator


class BackfillRequest(BaseModel):
    """Query parameters of a metadata backfill run."""

    model_config = ConfigDict(str_strip_whitespace=True)

    dry_run: StrictBool = Field(False, description="Extract and report without writing")
    limit: int = Field(0, ge=0, description="Maximum images to process, 0 for all")
    force_all: StrictBool = Field(False, description="Re-extract every image")

    @field_validator("dry_run", "force_all", mode="before")
    @classmethod
    def parse_flag(cls, value: object) -> object:
        if isinstance(value, str):
            return value.lower() == "true"
        return value
