from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime

class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    oam_url: str = Field(..., examples=["https://example.com/apps/web-frontend.yaml"])
    external_id: str = Field(..., min_length=1, max_length=255, pattern=r"^[A-Za-z0-9._-]+$", examples=["req-1"])
    provider: str = Field(..., examples=["gcp"])
    tool: str = Field(..., examples=["terraform", "gcloud"])

    @field_validator("external_id")
    @classmethod
    def _not_dot_segment(cls, v: str) -> str:
        if v in (".", ".."):
            raise ValueError("external_id must not be a relative path segment")
        return v

class GenerateResponse(BaseModel):
    message: str
    deploy_script: str = ""

class RequestRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    external_id: str
    storage_path: str
    status_code: int
    message: str
    created_at: datetime
