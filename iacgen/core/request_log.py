"""Per-request audit log written next to the generated files."""
from __future__ import annotations
import json
from datetime import datetime, timezone
from pathlib import Path
from iacgen.core.workflow import BestEffortResult, BEST_EFFORT_OK

REQUEST_LOG_NAME = "request-log.txt"


class RequestLogger:
    """Appends one JSON object per line to a request log file.

    Every call opens the file in append mode and flushes before returning, so
    the file is readable at any point of a run. Failures are reported through
    the returned result instead of raised.
    """

    def append(
        self,
        log_path: Path,
        request_id: str,
        external_id: str,
        out_dir: str,
        code: int,
        message: str,
    ) -> BestEffortResult:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": request_id,
            "external_id": external_id,
            "out_dir": out_dir,
            "code": code,
            "message": message,
        }
        try:
            with open(log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record) + "\n")
                f.flush()
        except OSError as e:
            return BestEffortResult(ok=False, error=str(e))
        return BEST_EFFORT_OK
