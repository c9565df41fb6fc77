"""Integration tests for keyword sync against a SQLite database."""

import itertools

import pytest

from nora.database import session_scope
from nora.engines.content.keyword_markdown import KeywordEntry, parse_keywords_markdown
from nora.engines.content.keyword_sync import KeywordSyncService
from nora.engines.content.repositories import KeywordRepository
from nora.errors import NotFoundError


def _ids():
    counter = itertools.count(1)
    return lambda: f"kw-{next(counter)}"


async def _sync(session_maker, entries, remove_orphans=False, id_generator=None):
    async with session_scope(session_maker) as session:
        service = KeywordSyncService(session, id_generator or _ids())
        return await service.sync(entries, remove_orphans=remove_orphans)


async def _stored(session_maker):
    async with session_maker() as session:
        return {k.term: k for k in await KeywordRepository(session).list_all()}


@pytest.mark.asyncio
async def test_first_sync_creates_everything(session_maker, sample_keywords):
    entries = parse_keywords_markdown(sample_keywords)
    result = await _sync(session_maker, entries)
    assert result.created == 4
    assert result.updated == 0
    assert result.total == 4

    stored = await _stored(session_maker)
    assert set(stored) == {"Play", "Play Therapy", "Special Time", "Labeled Praise"}
    assert stored["Play"].id == "kw-1"


@pytest.mark.asyncio
async def test_second_sync_is_a_no_op(session_maker, sample_keywords):
    entries = parse_keywords_markdown(sample_keywords)
    await _sync(session_maker, entries)

    async with session_maker() as session:
        plan = await KeywordSyncService(session).plan(entries)
    assert plan.has_changes is False
    assert plan.unchanged == 4


@pytest.mark.asyncio
async def test_changed_definition_updates_in_place(session_maker):
    await _sync(session_maker, [KeywordEntry(term="Play", definition="Old text.")])
    before = (await _stored(session_maker))["Play"]

    async with session_maker() as session:
        plan = await KeywordSyncService(session).plan([KeywordEntry(term="Play", definition="New text.")])
    assert len(plan.to_update) == 1
    assert plan.to_update[0].old_definition == "Old text."
    assert plan.to_update[0].definition == "New text."

    result = await _sync(session_maker, [KeywordEntry(term="Play", definition="New text.")])
    assert result.updated == 1
    after = (await _stored(session_maker))["Play"]
    assert after.id == before.id
    assert after.definition == "New text."


@pytest.mark.asyncio
async def test_orphans_kept_unless_removal_requested(session_maker):
    await _sync(session_maker, [
        KeywordEntry(term="Play", definition="A."),
        KeywordEntry(term="Time-Out", definition="B."),
    ])

    result = await _sync(session_maker, [KeywordEntry(term="Play", definition="A.")])
    assert result.deleted == 0
    assert set(await _stored(session_maker)) == {"Play", "Time-Out"}

    result = await _sync(session_maker, [KeywordEntry(term="Play", definition="A.")], remove_orphans=True)
    assert result.deleted == 1
    assert set(await _stored(session_maker)) == {"Play"}


@pytest.mark.asyncio
async def test_plan_lists_orphans(session_maker):
    await _sync(session_maker, [KeywordEntry(term="Play", definition="A.")])
    async with session_maker() as session:
        plan = await KeywordSyncService(session).plan([])
    assert plan.orphans == ["Play"]
    assert plan.to_delete == []


@pytest.mark.asyncio
async def test_apply_fails_when_planned_keyword_vanished(session_maker):
    await _sync(session_maker, [KeywordEntry(term="Play", definition="A.")])

    with pytest.raises(NotFoundError):
        async with session_scope(session_maker) as session:
            service = KeywordSyncService(session, _ids())
            plan = await service.plan([KeywordEntry(term="Play", definition="B.")])
            await KeywordRepository(session).delete((await KeywordRepository(session).get_by_term("Play")))
            await session.flush()
            await service.apply(plan)

    # Rolled back: the keyword is still there with its old definition
    assert (await _stored(session_maker))["Play"].definition == "A."
