"""Google Cloud Storage backend (STORAGE_PROVIDER=gcs)."""

from __future__ import annotations

import asyncio
import io
import logging
from pathlib import Path

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage

from iacgen.core.errors import UploadError
from iacgen.storage.base import StorageBackend
from iacgen.workspace.archive import ARCHIVE_MEDIA_TYPE

logger = logging.getLogger(__name__)


class GcsStorage(StorageBackend):
    """Single-shot uploads of archives into one GCS bucket."""

    provider = "gcs"

    def __init__(self, bucket: str, client: storage.Client | None = None) -> None:
        """Initialize the backend.

        Args:
            bucket: Target bucket name.
            client: Pre-built client; by default one is created from the
                ambient application-default credentials, which raises if
                none are available.
        """
        self._client = client or storage.Client()
        self._bucket_name = bucket
        self._bucket = self._client.bucket(bucket)

    async def upload(self, local_path: Path, object_key: str) -> str:
        """Read the archive into memory and upload it in one request."""
        try:
            data = Path(local_path).read_bytes()
            blob = self._bucket.blob(object_key)
            await asyncio.to_thread(
                blob.upload_from_file,
                io.BytesIO(data),
                size=len(data),
                content_type=ARCHIVE_MEDIA_TYPE,
            )
        except (OSError, GoogleAPIError, GoogleAuthError) as e:
            raise UploadError(str(e)) from e

        path = f"gs://{self._bucket_name}/{object_key}"
        logger.debug("GCS upload: %s (%d bytes)", path, len(data))
        return path
