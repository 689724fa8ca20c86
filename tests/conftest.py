import json
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Iterator

from databases import Database
import httpx
import pytest
import pytest_asyncio
from starlette.testclient import TestClient

from app.app import build_app
from app.config import Config
from domain.agemini import GeminiClient
from domain.repository import create_tables


BASE_URL = "https://gemini.test/v1beta/"


RECIPES = [
    {
        "id": 1,
        "title": "Spinach Omelette",
        "prepTime": 5,
        "cookTime": 10,
        "ingredients": ["eggs", "spinach", "butter"],
        "instructions": ["Whisk the eggs", "Wilt the spinach", "Fold and serve"],
        "description": "A fluffy omelette with wilted spinach.",
    },
    {
        "id": 2,
        "title": "Egg Fried Rice",
        "prepTime": "10 mins",
        "cookTime": "10 mins",
        "ingredients": ["eggs", "rice", "soy sauce"],
        "instructions": "1. Fry the rice\n2. Scramble in the eggs",
        "description": "Leftover rice made good.",
    },
]


def gemini_reply(text: str) -> dict[str, Any]:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


def fenced(data: Any) -> str:
    return f"```json\n{json.dumps(data)}\n```"


Handler = Callable[[httpx.Request], httpx.Response]


def ok_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json=gemini_reply(fenced(RECIPES)))


def broken_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        500, json={"error": {"code": 500, "message": "Internal error"}}
    )


def fake_gemini(handler: Handler, *, model: str = "gemini-1.5-flash") -> GeminiClient:
    client = httpx.AsyncClient(
        base_url=BASE_URL,
        transport=httpx.MockTransport(handler),
        headers={"x-goog-api-key": "test-key"},
    )
    return GeminiClient(model=model, client=client)


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest_asyncio.fixture
async def db(db_url: str) -> AsyncIterator[Database]:
    database = Database(db_url)
    await database.connect()
    await create_tables(database)
    yield database
    await database.disconnect()


@pytest.fixture
def make_client(db_url: str) -> Iterator[Callable[..., TestClient]]:
    clients: list[TestClient] = []

    def factory(handler: Handler = ok_handler, **settings: Any) -> TestClient:
        cfg = Config(db_url=db_url, **settings)
        client = TestClient(build_app(cfg, llm=fake_gemini(handler)))
        client.__enter__()
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client: Callable[..., TestClient]) -> TestClient:
    return make_client()


@pytest.fixture
def user(client: TestClient) -> dict[str, str]:
    resp = client.post(
        "/api/profiles", json={"email": "sam@example.com", "full_name": "Sam"}
    )
    assert resp.status_code == 201
    return {"X-User-Id": resp.json()["id"]}
