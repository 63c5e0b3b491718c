"""Shared test fixtures for workspace-skills."""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio

from workspace_skills import cli
from workspace_skills.config.models import SkillsConfig
from workspace_skills.transport import GoogleApiClient, bearer_headers


class FakeGoogle:
    """Canned responses keyed by (method, path), with every request recorded.

    Responses queued for a route are served in order; the last one is
    repeated for any further calls.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *responses: httpx.Response) -> None:
        self.routes.setdefault((method, path), []).extend(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, text=f"no route for {request.method} {request.url.path}")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(
            response.status_code, headers=response.headers, content=response.content
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def sent(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


@pytest.fixture
def fake_google():
    return FakeGoogle()


@pytest_asyncio.fixture
async def api(fake_google):
    async with GoogleApiClient(
        bearer_headers("test-token"), transport=fake_google.transport
    ) as client:
        yield client


@pytest.fixture
def sample_config():
    return SkillsConfig()


@pytest.fixture
def credentials(monkeypatch):
    monkeypatch.setenv("GCLOUD_ACCESS_TOKEN", "test-token")
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")


@pytest.fixture
def isolated_dir(tmp_path, monkeypatch):
    """Work in tmp_path with no project or user config file in reach."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def cli_env(isolated_dir, credentials, fake_google, monkeypatch):
    """CLI commands talk to fake_google instead of the network."""
    monkeypatch.setattr(cli, "_transport", fake_google.transport)
    monkeypatch.setattr(cli, "_config", None)
    return isolated_dir
