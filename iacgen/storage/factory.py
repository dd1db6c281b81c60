"""Factory: instantiate the storage backend from configuration."""

from __future__ import annotations

from iacgen.core.config import STORAGE_TARGETS, Settings
from iacgen.core.errors import ConfigError
from iacgen.storage.base import StorageBackend
from iacgen.storage.placeholders import AzureStorage, S3Storage


def create_storage(settings: Settings) -> StorageBackend:
    """Create the backend named by ``STORAGE_PROVIDER``.

    Called once at startup; the instance is shared by all requests.

    Raises:
        ConfigError: If the provider is unknown, its bucket is missing, or
            the backend client cannot be created.
    """
    provider = settings.storage_provider
    if provider not in STORAGE_TARGETS:
        raise ConfigError(f"Unsupported storage provider: {provider!r}")

    target = settings.storage_target
    if not target:
        raise ConfigError(
            f"{STORAGE_TARGETS[provider].upper()} must be set when STORAGE_PROVIDER={provider}"
        )

    if provider == "gcs":
        from iacgen.storage.gcs import GcsStorage
        try:
            return GcsStorage(bucket=target)
        except Exception as e:
            raise ConfigError(f"Failed to create GCS client: {e}") from e

    if provider == "s3":
        return S3Storage(bucket=target)

    return AzureStorage(container=target)
