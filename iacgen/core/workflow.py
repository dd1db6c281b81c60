from dataclasses import dataclass
from enum import Enum

class RequestStage(str, Enum):
    FETCHING = "FETCHING"
    PROMPTING = "PROMPTING"
    GENERATING = "GENERATING"
    MATERIALIZING = "MATERIALIZING"
    ARCHIVING = "ARCHIVING"
    UPLOADING = "UPLOADING"
    PERSISTING = "PERSISTING"
    CLEANING_UP = "CLEANING_UP"
    DONE = "DONE"
    FAILED = "FAILED"

TERMINAL_STAGES = frozenset({RequestStage.DONE, RequestStage.FAILED})

# log entry codes
CODE_OK = 0
CODE_FAILED = 1

@dataclass(frozen=True)
class BestEffortResult:
    """Outcome of an advisory side effect (request log line, audit record).

    Callers may inspect or discard it; a failed best-effort operation never
    changes the outcome of a run.
    """
    ok: bool
    error: str | None = None

BEST_EFFORT_OK = BestEffortResult(ok=True)
