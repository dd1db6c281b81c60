"""Storage backend interface for generated IaC archives."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path


class StorageBackend(ABC):
    """Uploads a local archive and returns where it can be addressed remotely."""

    #: configuration name of the backend (``STORAGE_PROVIDER``)
    provider: str

    @abstractmethod
    async def upload(self, local_path: Path, object_key: str) -> str:
        """Upload ``local_path`` under ``object_key``.

        Returns a scheme-qualified remote path. Raises UploadError on failure.
        """


def build_object_key(external_id: str, now: datetime | None = None) -> str:
    """``<external_id>/<RFC3339 upload time>.zip``."""
    now = now or datetime.now(timezone.utc)
    return f"{external_id}/{now.isoformat()}.zip"
