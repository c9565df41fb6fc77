"""
Keyword sync - reconcile the stored glossary with the Markdown file.

The Markdown file is the source of truth. Matching is by exact term; a term
that already exists keeps its id and only its definition is rewritten.
Stored keywords missing from the file are left alone unless orphan removal
is requested.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from nora.engines.content.keyword_markdown import KeywordEntry
from nora.engines.content.repositories import KeywordRepository
from nora.errors import NotFoundError
from nora.kernel.ids import IdGenerator, generate_id
from nora.kernel.models.keyword import Keyword
from nora.logging_config import get_logger

logger = get_logger(__name__)


class KeywordChange(BaseModel):
    """A stored keyword that the sync will rewrite or delete."""

    keyword_id: str
    term: str
    definition: str
    old_definition: Optional[str] = None


class KeywordSyncPlan(BaseModel):
    """What a sync would do, computed without touching the database."""

    to_create: List[KeywordEntry] = []
    to_update: List[KeywordChange] = []
    to_delete: List[KeywordChange] = []
    orphans: List[str] = []
    unchanged: int = 0

    @property
    def has_changes(self) -> bool:
        return bool(self.to_create or self.to_update or self.to_delete)


class KeywordSyncResult(BaseModel):
    created: int = 0
    updated: int = 0
    deleted: int = 0
    unchanged: int = 0
    total: int = 0


class KeywordSyncService:
    """Plans and applies glossary changes inside the caller's transaction."""

    def __init__(self, session: AsyncSession, id_generator: IdGenerator = generate_id):
        self.session = session
        self.keywords = KeywordRepository(session)
        self.id_generator = id_generator

    async def plan(self, entries: List[KeywordEntry], remove_orphans: bool = False) -> KeywordSyncPlan:
        """Diff validated entries against stored keywords."""
        existing = {keyword.term: keyword for keyword in await self.keywords.list_all()}
        incoming_terms = set()
        plan = KeywordSyncPlan()

        for entry in entries:
            incoming_terms.add(entry.term)
            stored = existing.get(entry.term)
            if stored is None:
                plan.to_create.append(entry)
            elif stored.definition != entry.definition:
                plan.to_update.append(
                    KeywordChange(
                        keyword_id=stored.id,
                        term=stored.term,
                        definition=entry.definition,
                        old_definition=stored.definition,
                    )
                )
            else:
                plan.unchanged += 1

        for term, stored in existing.items():
            if term in incoming_terms:
                continue
            plan.orphans.append(term)
            if remove_orphans:
                plan.to_delete.append(
                    KeywordChange(keyword_id=stored.id, term=stored.term, definition=stored.definition)
                )

        logger.info(
            "Planned keyword sync",
            extra={
                "to_create": len(plan.to_create),
                "to_update": len(plan.to_update),
                "to_delete": len(plan.to_delete),
                "orphans": len(plan.orphans),
                "unchanged": plan.unchanged,
            },
        )
        return plan

    async def apply(self, plan: KeywordSyncPlan) -> KeywordSyncResult:
        """
        Stage every planned change and flush.

        Raises:
            NotFoundError: a keyword the plan refers to disappeared since
                planning; the caller's transaction should roll back.
        """
        # Write times carry microseconds; the served index compares them to detect changes
        now = datetime.now(timezone.utc)
        for entry in plan.to_create:
            self.keywords.add(
                Keyword(
                    id=self.id_generator(),
                    term=entry.term,
                    definition=entry.definition,
                    created_at=now,
                    updated_at=now,
                )
            )

        for change in plan.to_update:
            keyword = await self._require(change.keyword_id)
            keyword.definition = change.definition
            keyword.updated_at = now

        for change in plan.to_delete:
            keyword = await self._require(change.keyword_id)
            await self.keywords.delete(keyword)

        await self.session.flush()
        result = KeywordSyncResult(
            created=len(plan.to_create),
            updated=len(plan.to_update),
            deleted=len(plan.to_delete),
            unchanged=plan.unchanged,
            total=await self.keywords.count(),
        )
        logger.info(
            "Applied keyword sync",
            extra={
                "keywords_created": result.created,
                "keywords_updated": result.updated,
                "keywords_deleted": result.deleted,
                "keywords_total": result.total,
            },
        )
        return result

    async def sync(self, entries: List[KeywordEntry], remove_orphans: bool = False) -> KeywordSyncResult:
        return await self.apply(await self.plan(entries, remove_orphans=remove_orphans))

    async def _require(self, keyword_id: str) -> Keyword:
        keyword = await self.keywords.get(keyword_id)
        if keyword is None:
            raise NotFoundError(f"Keyword {keyword_id} not found", identifier=keyword_id)
        return keyword
