from __future__ import annotations
import logging
import shutil
from pathlib import Path
from typing import Mapping
from iacgen.core.errors import MaterializeError
from iacgen.core.request_log import REQUEST_LOG_NAME

log = logging.getLogger(__name__)


class WorkspaceManager:
    """Scratch directory for a single generation run, keyed by external id.

    Layout under ``workspaces_dir``::

        <external_id>/              generated files + request-log.txt
        <external_id>.zip           archive built from the directory above
    """

    def __init__(self, workspaces_dir: str | Path, external_id: str):
        base = Path(workspaces_dir).resolve()
        root = (base / external_id).resolve()
        if root.parent != base:
            raise MaterializeError(f"Invalid external id for workspace: {external_id!r}")
        self.external_id = external_id
        self.base_dir = base
        self.root = root
        self.log_path = root / REQUEST_LOG_NAME
        self.archive_path = base / f"{external_id}.zip"

    def ensure(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MaterializeError(f"Failed to create temp directory: {e}") from e

    def resolve(self, relative_path: str) -> Path:
        """Map a generated file path onto the workspace, refusing anything outside it.

        The request log's own path is reserved, so generated content never
        shares a file with the audit entries.
        """
        try:
            candidate = (self.root / relative_path).resolve()
        except (ValueError, OSError) as e:
            raise MaterializeError(f"Invalid generated file path {relative_path!r}: {e}") from e
        if candidate == self.root or not candidate.is_relative_to(self.root):
            raise MaterializeError(f"Refusing to write outside workspace: {relative_path}")
        if candidate == self.log_path:
            raise MaterializeError(f"Generated file path is reserved for the request log: {relative_path}")
        return candidate

    def materialize(self, files: Mapping[str, str]) -> list[Path]:
        """Write generated files into the workspace.

        All paths are validated before anything is written, so a single bad
        entry leaves the workspace untouched.
        """
        targets = [(self.resolve(rel), content) for rel, content in files.items()]
        written = []
        for path, content in targets:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content, encoding="utf-8")
            except OSError as e:
                raise MaterializeError(
                    f"Failed to write generated file {path.relative_to(self.root)}: {e}"
                ) from e
            written.append(path)
        return written

    def cleanup(self) -> None:
        """Remove the workspace and its archive. Errors are logged, never raised."""
        try:
            shutil.rmtree(self.root)
        except FileNotFoundError:
            pass
        except OSError as e:
            log.warning("Failed to remove workspace %s: %s", self.root, e,
                        extra={"external_id": self.external_id, "stage": "CLEANING_UP"})
        try:
            self.archive_path.unlink(missing_ok=True)
        except OSError as e:
            log.warning("Failed to remove archive %s: %s", self.archive_path, e,
                        extra={"external_id": self.external_id, "stage": "CLEANING_UP"})
