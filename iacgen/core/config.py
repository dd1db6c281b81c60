import tempfile
from typing import Literal
from pydantic import ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from iacgen.core.errors import ConfigError

# provider -> settings field holding its bucket/container name
STORAGE_TARGETS = {
    "gcs": "gcs_bucket",
    "s3": "aws_s3_bucket",
    "azure": "azure_blob_container",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "oam-iac-generator"
    api_host: str = "127.0.0.1"
    api_port: int = 8080

    database_url: str
    run_migrations: bool = True

    storage_provider: Literal["gcs", "s3", "azure"] = "gcs"
    gcs_bucket: str | None = None
    aws_s3_bucket: str | None = None
    azure_blob_container: str | None = None

    generation_service_url: str = "http://localhost:3000/ai/generate-code"

    workspaces_dir: str = tempfile.gettempdir()

    @model_validator(mode="after")
    def _require_storage_target(self) -> "Settings":
        field = STORAGE_TARGETS[self.storage_provider]
        if not getattr(self, field):
            raise ValueError(
                f"STORAGE_PROVIDER is '{self.storage_provider}' but {field.upper()} is not set"
            )
        return self

    @property
    def storage_target(self) -> str:
        return getattr(self, STORAGE_TARGETS[self.storage_provider])


def load_settings(**overrides) -> Settings:
    """Read settings from the environment, failing with ConfigError on any violation."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
