"""Tests for the deep research task lifecycle."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from workspace_skills.research import (
    NO_OUTPUT_TEXT,
    InteractionStatus,
    InteractionsClient,
    TaskFileError,
    TaskRecord,
    check_task,
    extract_result_text,
    poll_task,
    start_task,
)

INTERACTIONS = "/v1beta/interactions"


@pytest.fixture
def client(api):
    return InteractionsClient(api)


@pytest.fixture
def task_file(tmp_path):
    path = tmp_path / "task.json"
    TaskRecord(interaction_id="int-1", prompt="history of tea").save(path)
    return path


def _status(status: str, **extra) -> httpx.Response:
    return httpx.Response(200, json={"id": "int-1", "status": status, **extra})


# ── Task file ───────────────────────────────────────────────────────


class TestTaskRecord:
    def test_save_and_load(self, task_file):
        record = TaskRecord.load(task_file)
        assert record.interaction_id == "int-1"
        assert record.status == "in_progress"
        assert record.prompt == "history of tea"

    def test_missing_file(self, tmp_path):
        with pytest.raises(TaskFileError, match="not found"):
            TaskRecord.load(tmp_path / "none.json")

    def test_not_json(self, tmp_path):
        path = tmp_path / "task.json"
        path.write_text("The final research report...")
        with pytest.raises(TaskFileError, match="Is it a valid JSON file"):
            TaskRecord.load(path)

    def test_no_interaction_id(self, tmp_path):
        path = tmp_path / "task.json"
        path.write_text(json.dumps({"status": "in_progress"}))
        with pytest.raises(TaskFileError, match="No interaction_id found"):
            TaskRecord.load(path)

    def test_unknown_keys_kept(self, tmp_path):
        path = tmp_path / "task.json"
        path.write_text(json.dumps({"interaction_id": "x", "note": "mine"}))
        TaskRecord.load(path).save(path)
        assert json.loads(path.read_text())["note"] == "mine"


class TestExtractResultText:
    def test_last_output(self):
        data = {"outputs": [{"text": "draft"}, {"text": "final"}]}
        assert extract_result_text(data) == "final"

    def test_no_outputs(self):
        assert extract_result_text({"outputs": []}) == NO_OUTPUT_TEXT
        assert extract_result_text({}) == NO_OUTPUT_TEXT


# ── start / check ───────────────────────────────────────────────────


class TestStart:
    @pytest.mark.asyncio
    async def test_writes_task_file(self, client, fake_google, tmp_path):
        fake_google.add("POST", INTERACTIONS, httpx.Response(200, json={"id": "int-42"}))
        path = tmp_path / "task.json"

        record = await start_task(client, path, "history of tea")

        assert record.interaction_id == "int-42"
        saved = json.loads(path.read_text())
        assert saved["interaction_id"] == "int-42"
        assert saved["status"] == "in_progress"
        body = json.loads(fake_google.sent("POST", INTERACTIONS)[0].content)
        assert body == {
            "input": "history of tea",
            "agent": "deep-research-pro-preview-12-2025",
            "background": True,
        }

    @pytest.mark.asyncio
    async def test_custom_agent(self, client, fake_google, tmp_path):
        fake_google.add("POST", INTERACTIONS, httpx.Response(200, json={"id": "int-42"}))
        await start_task(client, tmp_path / "t.json", "q", agent="other-agent")
        assert json.loads(fake_google.sent("POST", INTERACTIONS)[0].content)["agent"] == "other-agent"

    @pytest.mark.asyncio
    async def test_no_id_returned(self, client, fake_google, tmp_path):
        fake_google.add("POST", INTERACTIONS, httpx.Response(200, json={}))
        path = tmp_path / "task.json"
        with pytest.raises(ValueError, match="No interaction ID returned"):
            await start_task(client, path, "q")
        assert not path.exists()


class TestCheck:
    @pytest.mark.asyncio
    async def test_completed_overwrites_file(self, client, fake_google, task_file):
        fake_google.add(
            "GET",
            f"{INTERACTIONS}/int-1",
            _status("completed", outputs=[{"text": "# Tea\nA report."}]),
        )
        result = await check_task(client, task_file)
        assert result.status is InteractionStatus.completed
        assert result.result_text == "# Tea\nA report."
        assert task_file.read_text() == "# Tea\nA report."

    @pytest.mark.asyncio
    async def test_completed_without_output(self, client, fake_google, task_file):
        fake_google.add("GET", f"{INTERACTIONS}/int-1", _status("completed"))
        await check_task(client, task_file)
        assert task_file.read_text() == NO_OUTPUT_TEXT

    @pytest.mark.asyncio
    async def test_failed_records_error(self, client, fake_google, task_file):
        fake_google.add(
            "GET", f"{INTERACTIONS}/int-1", _status("failed", error={"message": "quota"})
        )
        result = await check_task(client, task_file)
        assert result.status is InteractionStatus.failed
        saved = json.loads(task_file.read_text())
        assert saved["status"] == "failed"
        assert saved["error"] == {"message": "quota"}

    @pytest.mark.asyncio
    async def test_failed_without_error(self, client, fake_google, task_file):
        fake_google.add("GET", f"{INTERACTIONS}/int-1", _status("failed"))
        await check_task(client, task_file)
        assert json.loads(task_file.read_text())["error"] == "Unknown error"

    @pytest.mark.asyncio
    async def test_running_saves_server_status(self, client, fake_google, task_file):
        fake_google.add("GET", f"{INTERACTIONS}/int-1", _status("queued"))
        result = await check_task(client, task_file)
        assert result.status is InteractionStatus.in_progress
        assert result.server_status == "queued"
        assert json.loads(task_file.read_text())["status"] == "queued"

    @pytest.mark.asyncio
    async def test_non_json_body_rejected(self, client, fake_google, task_file):
        fake_google.add("GET", f"{INTERACTIONS}/int-1", httpx.Response(200, text="<html>proxy</html>"))
        before = task_file.read_text()
        with pytest.raises(ValueError, match="Unexpected response"):
            await check_task(client, task_file)
        assert task_file.read_text() == before


# ── poll ────────────────────────────────────────────────────────────


class TestPoll:
    @pytest.mark.asyncio
    async def test_until_completed(self, client, fake_google, task_file):
        fake_google.add(
            "GET",
            f"{INTERACTIONS}/int-1",
            _status("in_progress"),
            _status("in_progress"),
            _status("completed", outputs=[{"text": "done"}]),
        )
        seen = []

        status = await poll_task(client, task_file, 0, seen.append)

        assert status is InteractionStatus.completed
        assert len(fake_google.sent("GET", f"{INTERACTIONS}/int-1")) == 3
        assert len(seen) == 2
        assert task_file.read_text() == "done"

    @pytest.mark.asyncio
    async def test_until_failed(self, client, fake_google, task_file):
        fake_google.add(
            "GET", f"{INTERACTIONS}/int-1", _status("in_progress"), _status("failed")
        )
        assert await poll_task(client, task_file, 0) is InteractionStatus.failed

    @pytest.mark.asyncio
    async def test_request_error_stops(self, client, fake_google, task_file):
        fake_google.add("GET", f"{INTERACTIONS}/int-1", httpx.Response(500, text="boom"))
        assert await poll_task(client, task_file, 0) is InteractionStatus.error
        assert len(fake_google.requests) == 1

    @pytest.mark.asyncio
    async def test_bad_task_file_stops(self, client, fake_google, tmp_path):
        path = tmp_path / "task.json"
        path.write_text("not json")
        assert await poll_task(client, path, 0) is InteractionStatus.error
        assert fake_google.requests == []

    @pytest.mark.asyncio
    async def test_non_json_body_stops(self, client, fake_google, task_file):
        fake_google.add("GET", f"{INTERACTIONS}/int-1", httpx.Response(200, text="<html>proxy</html>"))
        assert await poll_task(client, task_file, 0) is InteractionStatus.error
        assert len(fake_google.requests) == 1
        assert json.loads(task_file.read_text())["interaction_id"] == "int-1"

    @pytest.mark.asyncio
    async def test_sleeps_interval_between_checks(self, client, fake_google, task_file):
        fake_google.add(
            "GET",
            f"{INTERACTIONS}/int-1",
            _status("in_progress"),
            _status("in_progress"),
            _status("completed", outputs=[{"text": "done"}]),
        )
        with patch("workspace_skills.research.tasks.asyncio.sleep", new_callable=AsyncMock) as sleep:
            status = await poll_task(client, task_file, 7)

        assert status is InteractionStatus.completed
        assert sleep.await_count == 2
        sleep.assert_awaited_with(7)
