"""Client for the Generative Language ``interactions`` endpoint."""

from __future__ import annotations

from workspace_skills.config.models import ResearchConfig
from workspace_skills.transport import GoogleApiClient


class InteractionsClient:
    def __init__(self, api: GoogleApiClient, config: ResearchConfig | None = None) -> None:
        self._api = api
        self.config = config or ResearchConfig()

    @property
    def url(self) -> str:
        return f"{self.config.api_base}/interactions"

    async def create(self, prompt: str, agent: str | None = None) -> str:
        """Start a background interaction and return its id."""
        data = await self._api.request(
            "POST",
            self.url,
            json={
                "input": prompt,
                "agent": agent or self.config.agent,
                "background": True,
            },
        )
        interaction_id = data.get("id") if isinstance(data, dict) else None
        if not interaction_id:
            raise ValueError("No interaction ID returned.")
        return interaction_id

    async def get(self, interaction_id: str) -> dict:
        return await self._api.request_json("GET", f"{self.url}/{interaction_id}")
