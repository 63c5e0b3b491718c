"""start / check / poll lifecycle for a research task file."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

import httpx

from workspace_skills.research.client import InteractionsClient
from workspace_skills.research.models import (
    CheckResult,
    InteractionStatus,
    TaskRecord,
)
from workspace_skills.transport import ApiError

logger = logging.getLogger(__name__)

NO_OUTPUT_TEXT = "No text output found in completed interaction."


def extract_result_text(data: dict) -> str:
    """Text of the last output of a completed interaction."""
    outputs = data.get("outputs") or []
    if outputs and isinstance(outputs[-1], dict) and outputs[-1].get("text"):
        return outputs[-1]["text"]
    return NO_OUTPUT_TEXT


async def start_task(
    client: InteractionsClient,
    path: str | Path,
    prompt: str,
    agent: str | None = None,
) -> TaskRecord:
    interaction_id = await client.create(prompt, agent)
    record = TaskRecord(interaction_id=interaction_id, prompt=prompt)
    record.save(path)
    logger.info("Started interaction %s, saved to %s", interaction_id, path)
    return record


async def check_task(client: InteractionsClient, path: str | Path) -> CheckResult:
    """Query the interaction once and persist what came back.

    On completion the task file is overwritten with the result text. On
    failure the JSON record keeps the server's error.
    """
    record = TaskRecord.load(path)
    data = await client.get(record.interaction_id)
    server_status = str(data.get("status", ""))

    if server_status == InteractionStatus.completed.value:
        text = extract_result_text(data)
        Path(path).write_text(text, encoding="utf-8")
        return CheckResult(
            status=InteractionStatus.completed,
            server_status=server_status,
            result_text=text,
        )

    if server_status == InteractionStatus.failed.value:
        record.status = InteractionStatus.failed.value
        record.error = data.get("error") or "Unknown error"
        record.save(path)
        return CheckResult(status=InteractionStatus.failed, server_status=server_status)

    record.status = server_status
    record.save(path)
    return CheckResult(status=InteractionStatus.in_progress, server_status=server_status)


async def poll_task(
    client: InteractionsClient,
    path: str | Path,
    interval: float,
    on_progress: Callable[[CheckResult], None] | None = None,
) -> InteractionStatus:
    """Check every ``interval`` seconds until the task leaves in_progress.

    Any request or task-file failure ends the loop with ``error``; only the
    still-running case is retried.
    """
    while True:
        try:
            result = await check_task(client, path)
        except (ApiError, httpx.HTTPError, ValueError, OSError) as e:
            logger.error("Check failed: %s", e)
            return InteractionStatus.error

        if result.status is not InteractionStatus.in_progress:
            return result.status
        if on_progress is not None:
            on_progress(result)
        await asyncio.sleep(interval)
