"""Models for the code-generation service contract."""
from typing import Dict
from pydantic import BaseModel, ConfigDict


class GenerationServiceRequest(BaseModel):
    """Body posted to the generation service."""
    requirements: str
    programming_language: str = "JSON"


class GenerationServiceResponse(BaseModel):
    """Envelope returned by the generation service; ``code`` holds the file map as text."""
    code: str


class GeneratedFileSet(BaseModel):
    """Generated files: relative path -> file content."""
    model_config = ConfigDict(frozen=True)

    files: Dict[str, str]

    def get(self, path: str, default: str = "") -> str:
        return self.files.get(path, default)

    def __len__(self) -> int:
        return len(self.files)
