import os
from typing import Any

import httpx


BASE_URL = "https://generativelanguage.googleapis.com/v1beta/"
DEFAULT_MODEL = os.environ.get("GEMINI_MODEL", "gemini-1.5-flash")
TIMEOUT = 60


class GeminiError(Exception):
    pass


def gemini_client_factory(
    token: str | None = None,
    *,
    base_url: str = BASE_URL,
    timeout: float = TIMEOUT,
) -> httpx.AsyncClient:
    token = os.environ.get("GEMINI_API_KEY") if token is None else token
    return httpx.AsyncClient(
        base_url=base_url,
        headers={
            "x-goog-api-key": token or "",
            "Content-Type": "application/json",
        },
        timeout=timeout,
    )


class GeminiClient:
    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        token: str | None = None,
        *,
        base_url: str = BASE_URL,
        timeout: float = TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.model = model
        self._client = (
            gemini_client_factory(token, base_url=base_url, timeout=timeout)
            if client is None
            else client
        )

    @staticmethod
    def payload(prompt: str) -> dict[str, Any]:
        return {"contents": [{"parts": [{"text": prompt}]}]}

    async def generate_content(self, prompt: str) -> str:
        resp = await self._client.post(
            f"models/{self.model}:generateContent", json=self.payload(prompt)
        )
        try:
            data = resp.json()
        except ValueError as e:
            raise GeminiError(f"Non-JSON reply ({resp.status_code}).") from e

        if not isinstance(data, dict):
            raise GeminiError(f"Unexpected reply ({resp.status_code}). {data}")
        if "error" in data or resp.is_error:
            raise GeminiError(f"Problem generating content. {data}")

        try:
            parts = data["candidates"][0]["content"]["parts"]
            text = "".join(p.get("text", "") for p in parts)
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise GeminiError(f"No candidates in reply. {data}") from e

        if not text:
            raise GeminiError(f"Empty candidate. {data}")
        return text

    async def aclose(self) -> None:
        await self._client.aclose()
