"""Task record persisted while a deep-research interaction runs."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class InteractionStatus(str, Enum):
    in_progress = "in_progress"
    completed = "completed"
    failed = "failed"
    error = "error"


class TaskFileError(ValueError):
    """Task file is missing, not JSON, or lacks an interaction id."""


class TaskRecord(BaseModel):
    """JSON envelope written by ``start`` and rewritten by each check.

    Once the interaction completes the whole file is replaced by the result
    text, so a record only exists for in-flight or failed tasks.
    """

    model_config = ConfigDict(extra="allow")

    interaction_id: str = Field(min_length=1)
    status: str = InteractionStatus.in_progress.value
    prompt: str = ""
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    error: Any = None

    @classmethod
    def load(cls, path: str | Path) -> TaskRecord:
        p = Path(path)
        if not p.is_file():
            raise TaskFileError(f"File {p} not found.")
        try:
            raw = json.loads(p.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TaskFileError(f"Could not parse {p}. Is it a valid JSON file?") from e
        if not isinstance(raw, dict) or not raw.get("interaction_id"):
            raise TaskFileError(f"No interaction_id found in {p}.")
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise TaskFileError(f"Invalid task record in {p}: {e}") from e

    def save(self, path: str | Path) -> None:
        Path(path).write_text(
            self.model_dump_json(indent=2, exclude_none=True), encoding="utf-8"
        )


class CheckResult(BaseModel):
    """Outcome of one status query."""

    status: InteractionStatus
    server_status: str
    result_text: str | None = None
