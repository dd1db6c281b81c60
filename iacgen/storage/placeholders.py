"""Selectable storage providers that have no implementation yet.

They exist so configuration can name them; every upload fails explicitly.
"""

from __future__ import annotations

from pathlib import Path

from iacgen.core.errors import UploadError
from iacgen.storage.base import StorageBackend


class S3Storage(StorageBackend):
    provider = "s3"

    def __init__(self, bucket: str) -> None:
        self.bucket = bucket

    async def upload(self, local_path: Path, object_key: str) -> str:
        raise UploadError("AWS S3 storage is not yet implemented")


class AzureStorage(StorageBackend):
    provider = "azure"

    def __init__(self, container: str) -> None:
        self.container = container

    async def upload(self, local_path: Path, object_key: str) -> str:
        raise UploadError("Azure Blob storage is not yet implemented")
