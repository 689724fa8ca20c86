import json

import httpx
import pytest

from domain.agemini import GeminiClient, GeminiError
from tests.conftest import fake_gemini, gemini_reply


@pytest.mark.asyncio
async def test_generate_content() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=gemini_reply("Hello there"))

    llm = fake_gemini(handler)
    got = await llm.generate_content("Say hello")
    await llm.aclose()

    assert got == "Hello there"
    (request,) = seen
    assert request.method == "POST"
    assert request.url.path == "/v1beta/models/gemini-1.5-flash:generateContent"
    assert request.headers["x-goog-api-key"] == "test-key"
    assert json.loads(request.content) == {
        "contents": [{"parts": [{"text": "Say hello"}]}]
    }


@pytest.mark.asyncio
async def test_generate_content_joins_parts() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "candidates": [
                    {"content": {"parts": [{"text": "[1,"}, {"text": " 2]"}]}}
                ]
            },
        )

    assert await fake_gemini(handler).generate_content("x") == "[1, 2]"


@pytest.mark.parametrize(
    "status,body",
    (
        (400, {"error": {"code": 400, "message": "API key not valid."}}),
        (200, {"error": {"code": 429, "message": "Quota exceeded."}}),
        (200, {"candidates": []}),
        (200, {"promptFeedback": {"blockReason": "SAFETY"}}),
        (200, gemini_reply("")),
        (200, 5),
        (200, ["not", "an", "object"]),
        (200, {"candidates": [{"content": {"parts": ["[]"]}}]}),
        (200, {"candidates": [{"content": {"parts": [{"text": 5}]}}]}),
    ),
)
@pytest.mark.asyncio
async def test_generate_content_errors(status: int, body: object) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=body)

    with pytest.raises(GeminiError):
        await fake_gemini(handler).generate_content("x")


@pytest.mark.asyncio
async def test_generate_content_non_json() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>Bad gateway</html>")

    with pytest.raises(GeminiError):
        await fake_gemini(handler).generate_content("x")


def test_default_client_sends_key() -> None:
    llm = GeminiClient(token="secret", base_url="https://gemini.test/v1beta/")
    assert llm._client.headers["x-goog-api-key"] == "secret"
    assert str(llm._client.base_url) == "https://gemini.test/v1beta/"
