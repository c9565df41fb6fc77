"""
System smoke test: full API flow in-process with SQLite.
Verifies health, lesson listing and detail, unlock status, and keyword matching.
Uses a temp file DB so the app and the fixtures share the same database.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from nora.api.deps import get_db
from nora.database import session_scope
from nora.engines.content.keyword_markdown import KeywordEntry, parse_keywords_markdown
from nora.engines.content.keyword_sync import KeywordSyncService
from nora.engines.content.lesson_import import LessonImportService
from nora.engines.content.lesson_parser import parse_lesson_text
from nora.kernel.models.keyword import Keyword
from nora.main import app
from nora.pedagogy.keyword_matcher import KeywordIndexHolder


@pytest_asyncio.fixture
async def client(session_maker, sample_lessons, sample_keywords):
    """Async client over a seeded test database."""
    async with session_scope(session_maker) as session:
        await LessonImportService(session).import_lessons(parse_lesson_text(sample_lessons))
        await KeywordSyncService(session).sync(parse_keywords_markdown(sample_keywords))

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.state.keyword_index = KeywordIndexHolder()
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_db, None)
        app.state.keyword_index = KeywordIndexHolder()


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert "X-Request-ID" in r.headers


@pytest.mark.asyncio
async def test_request_id_echoed(client: AsyncClient):
    r = await client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_list_lessons_in_order(client: AsyncClient):
    r = await client.get("/api/v1/lessons")
    assert r.status_code == 200
    data = r.json()
    assert data["total"] == 3
    assert [lesson["id"] for lesson in data["lessons"]] == ["CONNECT-1", "CONNECT-2", "DISCIPLINE-1"]
    assert data["lessons"][1]["prerequisites"] == ["CONNECT-1"]
    assert all(lesson["is_locked"] is None for lesson in data["lessons"])


@pytest.mark.asyncio
async def test_list_lessons_with_completed(client: AsyncClient):
    r = await client.get("/api/v1/lessons", params={"completed": ["DISCIPLINE-1"]})
    locked = {lesson["id"]: lesson["is_locked"] for lesson in r.json()["lessons"]}
    assert locked == {"CONNECT-1": False, "CONNECT-2": True, "DISCIPLINE-1": False}

    r = await client.get("/api/v1/lessons", params={"completed": ["CONNECT-1"]})
    locked = {lesson["id"]: lesson["is_locked"] for lesson in r.json()["lessons"]}
    assert locked["CONNECT-2"] is False


@pytest.mark.asyncio
async def test_lesson_detail_with_keyword_spans(client: AsyncClient):
    r = await client.get("/api/v1/lessons/CONNECT-1")
    assert r.status_code == 200
    lesson = r.json()
    assert lesson["title"] == "Welcome to Special Time"
    assert [s["order"] for s in lesson["segments"]] == [1, 2]

    first = lesson["segments"][0]
    assert [span["term"] for span in first["keywords"]] == ["Special Time", "Play"]
    span = first["keywords"][1]
    assert first["body_text"][span["start"]:span["end"]] == "Play"

    assert lesson["quiz"]["correct_answer"] == "CONNECT-1-quiz-opt-B"
    assert len(lesson["quiz"]["options"]) == 4


@pytest.mark.asyncio
async def test_unknown_lesson_is_404(client: AsyncClient):
    r = await client.get("/api/v1/lessons/CONNECT-99")
    assert r.status_code == 404
    body = r.json()
    assert body["code"] == "not_found"
    assert body["identifiers"] == ["CONNECT-99"]


@pytest.mark.asyncio
async def test_unlock_status(client: AsyncClient):
    r = await client.post("/api/v1/lessons/unlock-status", json={"completed_lesson_ids": []})
    assert r.status_code == 200
    data = r.json()
    assert data["statuses"] == {"CONNECT-1": True, "CONNECT-2": False, "DISCIPLINE-1": True}
    assert data["locked"] == ["CONNECT-2"]


@pytest.mark.asyncio
async def test_list_keywords(client: AsyncClient):
    r = await client.get("/api/v1/keywords")
    assert r.status_code == 200
    terms = [k["term"] for k in r.json()["keywords"]]
    assert terms == sorted(terms)
    assert len(terms) == 4


@pytest.mark.asyncio
async def test_match_keywords(client: AsyncClient):
    r = await client.post("/api/v1/keywords/match", json={"text": "We tried play therapy today."})
    assert r.status_code == 200
    data = r.json()
    assert [(m["term"], m["start"], m["end"]) for m in data["matches"]] == [("Play Therapy", 9, 21)]
    assert "".join(piece["text"] for piece in data["pieces"]) == "We tried play therapy today."


@pytest.mark.asyncio
async def test_match_requires_text(client: AsyncClient):
    r = await client.post("/api/v1/keywords/match", json={})
    assert r.status_code == 422


async def _matched_terms(client: AsyncClient, text: str):
    r = await client.post("/api/v1/keywords/match", json={"text": text})
    assert r.status_code == 200
    return [m["term"] for m in r.json()["matches"]]


@pytest.mark.asyncio
async def test_match_picks_up_keywords_synced_while_serving(client: AsyncClient, session_maker):
    text = "Play, then a time-out."
    assert await _matched_terms(client, text) == ["Play"]

    async with session_scope(session_maker) as session:
        await KeywordSyncService(session).sync([KeywordEntry(term="Time-Out", definition="A short calm break.")])

    assert await _matched_terms(client, text) == ["Play", "Time-Out"]


@pytest.mark.asyncio
async def test_definition_change_republishes_index(client: AsyncClient, session_maker):
    await _matched_terms(client, "Play")
    version = app.state.keyword_index.version

    async with session_scope(session_maker) as session:
        await KeywordSyncService(session).sync([KeywordEntry(term="Play", definition="Rewritten.")])

    await _matched_terms(client, "Play")
    assert app.state.keyword_index.version == version + 1


@pytest.mark.asyncio
async def test_unchanged_glossary_is_not_rebuilt(client: AsyncClient, session_maker):
    async with session_scope(session_maker) as session:
        session.add(Keyword(id="kw-blank", term="Ghost", definition=""))

    assert await _matched_terms(client, "A Ghost at Play") == ["Play"]
    version = app.state.keyword_index.version

    assert await _matched_terms(client, "A Ghost at Play") == ["Play"]
    assert await _matched_terms(client, "Ghost") == []
    assert app.state.keyword_index.version == version
