from __future__ import annotations
import asyncio
import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable, Dict
import httpx
import yaml
from iacgen.core.errors import ArchiveError, FetchError, GenerationError, PersistError, PipelineError, UploadError
from iacgen.core.request_log import RequestLogger
from iacgen.core.workflow import (
    BEST_EFFORT_OK,
    CODE_FAILED,
    CODE_OK,
    TERMINAL_STAGES,
    BestEffortResult,
    RequestStage,
)
from iacgen.db.store import RequestStore
from iacgen.generation.client import GenerationClient
from iacgen.generation.prompt import DEPLOY_SCRIPT_NAME
from iacgen.generation.types import GeneratedFileSet
from iacgen.schemas.generate import GenerationRequest
from iacgen.storage.base import StorageBackend, build_object_key
from iacgen.workspace.archive import archive_directory
from iacgen.workspace.manager import WorkspaceManager

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationOutcome:
    message: str
    deploy_script: str
    storage_path: str


@dataclass
class PipelineRun:
    """Mutable state of one run, threaded through the stage handlers."""
    request: GenerationRequest
    workspace: WorkspaceManager
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    stage: RequestStage = RequestStage.FETCHING
    oam_yaml: str = ""
    prompt: str = ""
    files: GeneratedFileSet | None = None
    archive_path: Path | None = None
    storage_path: str = ""
    message: str = ""
    cleaned_up: bool = False


StageHandler = Callable[[PipelineRun], Awaitable[RequestStage]]


class Orchestrator:
    """Runs a generation request through the pipeline stages.

    Every stage is a coroutine that does its work and returns the next stage,
    or raises a PipelineError which sends the run to FAILED. Nothing is
    retried. The workspace and archive are removed on every exit path.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        generator: GenerationClient,
        storage: StorageBackend,
        store: RequestStore | None,
        workspaces_dir: str | Path,
        request_log: RequestLogger | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.http = http
        self.generator = generator
        self.storage = storage
        self.store = store
        self.workspaces_dir = Path(workspaces_dir)
        self.request_log = request_log or RequestLogger()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        # external_id -> number of runs currently using its workspace
        self._in_flight: Counter = Counter()
        self._transitions: Dict[RequestStage, StageHandler] = {
            RequestStage.FETCHING: self._fetch,
            RequestStage.PROMPTING: self._build_prompt,
            RequestStage.GENERATING: self._generate,
            RequestStage.MATERIALIZING: self._materialize,
            RequestStage.ARCHIVING: self._archive,
            RequestStage.UPLOADING: self._upload,
            RequestStage.PERSISTING: self._persist_success,
            RequestStage.CLEANING_UP: self._cleanup,
        }

    def _log(self, run: PipelineRun, code: int, message: str, out_dir: str = "") -> BestEffortResult:
        extra = {"external_id": run.request.external_id, "stage": run.stage.value}
        if code == CODE_OK:
            log.info(message, extra=extra)
        else:
            log.error(message, extra=extra)
        if run.cleaned_up:
            return BEST_EFFORT_OK
        result = self.request_log.append(
            run.workspace.log_path,
            run.request_id,
            run.request.external_id,
            out_dir,
            code,
            message,
        )
        if not result.ok:
            log.warning("Request log write failed: %s", result.error, extra=extra)
        return result

    async def run(self, request: GenerationRequest) -> GenerationOutcome:
        """Execute the full pipeline for one request.

        Returns the outcome on success; raises the failing stage's PipelineError
        otherwise, after logging it and cleaning up.
        """
        ws = WorkspaceManager(self.workspaces_dir, request.external_id)
        run = PipelineRun(request=request, workspace=ws)

        if self._in_flight[request.external_id]:
            log.warning(
                "Another run with the same external_id is in progress; their workspaces will collide",
                extra={"external_id": request.external_id, "stage": run.stage.value},
            )
        self._in_flight[request.external_id] += 1
        try:
            ws.ensure()
            while run.stage not in TERMINAL_STAGES:
                run.stage = await self._transitions[run.stage](run)
        except PipelineError as e:
            failed_at = run.stage
            self._log(run, CODE_FAILED, str(e))
            run.stage = RequestStage.FAILED
            await self._persist(run, status_code=CODE_FAILED, message=str(e))
            log.error("Run failed at %s", failed_at.value,
                      extra={"external_id": request.external_id, "stage": RequestStage.FAILED.value})
            raise
        finally:
            if not run.cleaned_up:
                self._remove_workspace(run)
            self._in_flight[request.external_id] -= 1
            if not self._in_flight[request.external_id]:
                del self._in_flight[request.external_id]

        return GenerationOutcome(
            message=run.message,
            deploy_script=run.files.get(DEPLOY_SCRIPT_NAME, "") if run.files else "",
            storage_path=run.storage_path,
        )

    async def _fetch(self, run: PipelineRun) -> RequestStage:
        self._log(run, CODE_OK, "Fetching OAM file...")
        try:
            res = await self.http.get(run.request.oam_url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(f"Failed to fetch OAM file URL: {e}") from e
        try:
            res.raise_for_status()
            text = res.text
        except (httpx.HTTPError, UnicodeDecodeError) as e:
            raise FetchError(f"Failed to read OAM file content: {e}") from e
        try:
            parsed = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise FetchError(f"Failed to parse OAM file: {e}") from e
        if not isinstance(parsed, dict):
            raise FetchError("Failed to parse OAM file: document is not a mapping")
        run.oam_yaml = text
        self._log(run, CODE_OK, "Successfully fetched OAM file.")
        return RequestStage.PROMPTING

    async def _build_prompt(self, run: PipelineRun) -> RequestStage:
        req = run.request
        self._log(run, CODE_OK, f"Building prompt for tool={req.tool} provider={req.provider}...")
        run.prompt = self.generator.build_prompt(run.oam_yaml, req.provider, req.tool)
        return RequestStage.GENERATING

    async def _generate(self, run: PipelineRun) -> RequestStage:
        self._log(run, CODE_OK, "Generating files from LLM...")
        try:
            run.files = await self.generator.generate(run.prompt)
        except GenerationError as e:
            raise GenerationError(f"Failed to generate files from LLM: {e}") from e
        self._log(run, CODE_OK, "Successfully generated files from LLM.")
        return RequestStage.MATERIALIZING

    async def _materialize(self, run: PipelineRun) -> RequestStage:
        self._log(run, CODE_OK, "Writing generated files...")
        written = run.workspace.materialize(run.files.files)
        self._log(run, CODE_OK, f"Wrote {len(written)} generated files.")
        return RequestStage.ARCHIVING

    async def _archive(self, run: PipelineRun) -> RequestStage:
        self._log(run, CODE_OK, "Zipping directory...")
        try:
            run.archive_path = archive_directory(run.workspace.root, run.workspace.archive_path)
        except ArchiveError as e:
            raise ArchiveError(f"Failed to zip directory: {e}") from e
        self._log(run, CODE_OK, "Successfully zipped directory.")
        return RequestStage.UPLOADING

    async def _upload(self, run: PipelineRun) -> RequestStage:
        self._log(run, CODE_OK, "Uploading to storage...")
        object_key = build_object_key(run.request.external_id, self.clock())
        try:
            path = await self.storage.upload(run.archive_path, object_key)
        except UploadError as e:
            raise UploadError(f"Failed to upload to storage: {e}") from e
        run.storage_path = path
        run.message = f"Successfully generated and uploaded IaC to {path}"
        self._log(run, CODE_OK, f"Successfully uploaded to {path}", out_dir=path)
        return RequestStage.PERSISTING

    async def _persist_success(self, run: PipelineRun) -> RequestStage:
        self._log(run, CODE_OK, "Recording request...", out_dir=run.storage_path)
        await self._persist(run, status_code=CODE_OK, message=run.message)
        return RequestStage.CLEANING_UP

    async def _persist(self, run: PipelineRun, status_code: int, message: str) -> BestEffortResult:
        """Store the audit record; failures are reported, never raised."""
        if self.store is None:
            return BEST_EFFORT_OK
        try:
            await asyncio.to_thread(
                self.store.save, run.request.external_id, run.storage_path, status_code, message
            )
        except PersistError as e:
            log.warning("%s", e, extra={"external_id": run.request.external_id, "stage": run.stage.value})
            return BestEffortResult(ok=False, error=str(e))
        return BEST_EFFORT_OK

    async def _cleanup(self, run: PipelineRun) -> RequestStage:
        self._log(run, CODE_OK, "Cleaning up workspace...", out_dir=run.storage_path)
        self._remove_workspace(run)
        return RequestStage.DONE

    def _remove_workspace(self, run: PipelineRun) -> None:
        run.workspace.cleanup()
        run.cleaned_up = True
