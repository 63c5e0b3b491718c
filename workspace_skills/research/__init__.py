"""Deep research: long-running interactions tracked through a local task file."""

from workspace_skills.research.client import InteractionsClient
from workspace_skills.research.models import (
    CheckResult,
    InteractionStatus,
    TaskFileError,
    TaskRecord,
)
from workspace_skills.research.tasks import (
    NO_OUTPUT_TEXT,
    check_task,
    extract_result_text,
    poll_task,
    start_task,
)

__all__ = [
    "NO_OUTPUT_TEXT",
    "CheckResult",
    "InteractionStatus",
    "InteractionsClient",
    "TaskFileError",
    "TaskRecord",
    "check_task",
    "extract_result_text",
    "poll_task",
    "start_task",
]
