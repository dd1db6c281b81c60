"""Fake collaborators for pipeline tests: generation service, storage, request logger."""
import json
import shutil
from pathlib import Path
import httpx
from iacgen.core.request_log import RequestLogger
from iacgen.storage.base import StorageBackend

OAM_URL = "https://specs.example.com/apps/web.yaml"
GENERATION_URL = "http://generator.test/ai/generate-code"

OAM_YAML = """\
apiVersion: core.oam.dev/v1beta1
kind: Application
metadata:
  name: web
spec:
  components:
    - name: web
      type: webservice
      properties:
        image: nginx:1.25
"""


def generation_reply(files: dict, fenced: bool = True) -> dict:
    """Body the generation service answers with for the given file map."""
    code = json.dumps({"files": files})
    if fenced:
        code = f"```json\n{code}\n```"
    return {"code": code}


class FakeGenerationService:
    """httpx.MockTransport handler serving the OAM file and the generation endpoint."""

    def __init__(self, files=None, generation_status=200, generation_body=None, oam_error=None):
        self.files = files if files is not None else {"main.tf": "resource \"null_resource\" \"x\" {}\n"}
        self.generation_status = generation_status
        self.generation_body = generation_body
        self.oam_error = oam_error
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url == OAM_URL:
            if self.oam_error is not None:
                raise self.oam_error(f"Connection refused: {url}", request=request)
            return httpx.Response(200, text=OAM_YAML)
        if url == GENERATION_URL:
            if self.generation_body is not None:
                return httpx.Response(self.generation_status, text=self.generation_body)
            return httpx.Response(self.generation_status, json=generation_reply(self.files))
        return httpx.Response(404, text="not found")

    def generation_calls(self):
        return [r for r in self.requests if str(r.url) == GENERATION_URL]


class CapturingStorage(StorageBackend):
    """Keeps a copy of every uploaded archive, since the pipeline deletes the original."""

    provider = "gcs"

    def __init__(self, capture_dir: Path, bucket: str = "test-bucket"):
        self.capture_dir = Path(capture_dir)
        self.bucket = bucket
        self.uploads = []

    async def upload(self, local_path: Path, object_key: str) -> str:
        copy = self.capture_dir / f"upload-{len(self.uploads)}.zip"
        shutil.copyfile(local_path, copy)
        self.uploads.append((object_key, copy))
        return f"gs://{self.bucket}/{object_key}"


class RecordingRequestLogger(RequestLogger):
    """RequestLogger that also keeps entries in memory so they outlive the workspace."""

    def __init__(self):
        self.entries = []

    def append(self, log_path, request_id, external_id, out_dir, code, message):
        self.entries.append({
            "log_path": Path(log_path),
            "request_id": request_id,
            "external_id": external_id,
            "out_dir": out_dir,
            "code": code,
            "message": message,
        })
        return super().append(log_path, request_id, external_id, out_dir, code, message)

    def messages(self, code=None):
        return [e["message"] for e in self.entries if code is None or e["code"] == code]


def read_request_log(log_path) -> list:
    """Parse a request log back into entries."""
    lines = Path(log_path).read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines if line.strip()]
