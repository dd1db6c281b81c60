"""Tests for storage backends and backend selection (mocked GCS client, no network calls)."""
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch
import pytest
from google.api_core.exceptions import ServiceUnavailable
from google.auth.exceptions import DefaultCredentialsError
from iacgen.core.config import Settings
from iacgen.core.errors import ConfigError, UploadError
from iacgen.storage.base import build_object_key
from iacgen.storage.factory import create_storage
from iacgen.storage.gcs import GcsStorage
from iacgen.storage.placeholders import AzureStorage, S3Storage


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, database_url="sqlite://", **kwargs)


@pytest.mark.asyncio
async def test_gcs_upload_returns_scheme_qualified_path():
    """Uploading a known file returns gs://bucket/key and sends the whole archive."""
    client = MagicMock()
    backend = GcsStorage("iac-bundles", client=client)

    with tempfile.TemporaryDirectory() as temp_dir:
        archive = Path(temp_dir) / "req-1.zip"
        data = b"PK\x05\x06" + b"\x00" * 18
        archive.write_bytes(data)

        path = await backend.upload(archive, "req-1/2026-10-18T00:00:00+00:00.zip")

    assert path == "gs://iac-bundles/req-1/2026-10-18T00:00:00+00:00.zip"
    assert re.fullmatch(r"gs://[^/]+/.+", path)
    client.bucket.assert_called_once_with("iac-bundles")
    client.bucket.return_value.blob.assert_called_once_with("req-1/2026-10-18T00:00:00+00:00.zip")

    blob = client.bucket.return_value.blob.return_value
    blob.upload_from_file.assert_called_once()
    args, kwargs = blob.upload_from_file.call_args
    assert args[0].getvalue() == data
    assert kwargs["size"] == len(data)
    assert kwargs["content_type"] == "application/zip"


@pytest.mark.asyncio
async def test_gcs_service_error_becomes_upload_error():
    client = MagicMock()
    blob = client.bucket.return_value.blob.return_value
    blob.upload_from_file.side_effect = ServiceUnavailable("backend unavailable")
    backend = GcsStorage("iac-bundles", client=client)

    with tempfile.TemporaryDirectory() as temp_dir:
        archive = Path(temp_dir) / "req-1.zip"
        archive.write_bytes(b"zip")
        with pytest.raises(UploadError, match="backend unavailable"):
            await backend.upload(archive, "req-1/x.zip")


@pytest.mark.asyncio
async def test_gcs_missing_archive_becomes_upload_error():
    client = MagicMock()
    backend = GcsStorage("iac-bundles", client=client)

    with tempfile.TemporaryDirectory() as temp_dir:
        with pytest.raises(UploadError):
            await backend.upload(Path(temp_dir) / "missing.zip", "req-1/x.zip")

    client.bucket.return_value.blob.return_value.upload_from_file.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("backend", [S3Storage("bucket"), AzureStorage("container")])
async def test_placeholder_backends_always_fail(backend):
    """Unimplemented providers never report a successful upload."""
    with tempfile.TemporaryDirectory() as temp_dir:
        archive = Path(temp_dir) / "req-1.zip"
        archive.write_bytes(b"zip")
        with pytest.raises(UploadError, match="not yet implemented"):
            await backend.upload(archive, "req-1/x.zip")


def test_object_key_format():
    now = datetime(2026, 10, 18, 12, 30, 5, tzinfo=timezone.utc)
    assert build_object_key("req-1", now) == "req-1/2026-10-18T12:30:05+00:00.zip"


def test_object_key_defaults_to_current_utc_time():
    key = build_object_key("req-1")
    assert key.startswith("req-1/")
    assert key.endswith("+00:00.zip")


def test_factory_builds_gcs_backend_from_ambient_credentials():
    with patch("iacgen.storage.gcs.storage.Client") as mock_client_cls:
        backend = create_storage(_settings(storage_provider="gcs", gcs_bucket="iac-bundles"))

    assert isinstance(backend, GcsStorage)
    mock_client_cls.assert_called_once_with()


def test_factory_reports_missing_credentials_as_config_error():
    with patch("iacgen.storage.gcs.storage.Client", side_effect=DefaultCredentialsError("no credentials")):
        with pytest.raises(ConfigError, match="Failed to create GCS client"):
            create_storage(_settings(storage_provider="gcs", gcs_bucket="iac-bundles"))


def test_factory_selects_placeholder_backends():
    assert isinstance(create_storage(_settings(storage_provider="s3", aws_s3_bucket="b")), S3Storage)
    assert isinstance(
        create_storage(_settings(storage_provider="azure", azure_blob_container="c")), AzureStorage
    )


def test_factory_rejects_unknown_provider():
    settings = MagicMock()
    settings.storage_provider = "ftp"
    with pytest.raises(ConfigError, match="Unsupported storage provider"):
        create_storage(settings)


def test_factory_requires_the_selected_providers_target():
    settings = Settings.model_construct(storage_provider="s3", aws_s3_bucket=None)
    with pytest.raises(ConfigError, match="AWS_S3_BUCKET must be set when STORAGE_PROVIDER=s3"):
        create_storage(settings)
