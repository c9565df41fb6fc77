"""
FastAPI dependencies for database sessions and the keyword index.
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from nora.database import async_session_maker
from nora.engines.content.repositories import KeywordRepository
from nora.logging_config import get_logger
from nora.pedagogy.keyword_matcher import KeywordIndex, KeywordIndexHolder

logger = get_logger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields database sessions."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_keyword_index_holder(request: Request) -> KeywordIndexHolder:
    holder = getattr(request.app.state, "keyword_index", None)
    if holder is None:
        holder = KeywordIndexHolder()
        request.app.state.keyword_index = holder
    return holder


IndexHolder = Annotated[KeywordIndexHolder, Depends(get_keyword_index_holder)]


async def get_keyword_index(holder: IndexHolder, db: DbSession) -> KeywordIndex:
    """
    Current keyword index, rebuilt whenever the stored glossary changed.

    The glossary fingerprint (row count and latest write time) is compared
    with the one the published index was built from; a sync performed after
    startup is picked up on the next request without a restart.
    """
    repository = KeywordRepository(db)
    stamp = await repository.fingerprint()
    if holder.is_stale(stamp):
        keywords = await repository.list_all()
        version = holder.rebuild(keywords, stamp=stamp)
        logger.info(
            "Rebuilt keyword index after glossary change",
            extra={"version": version, "terms": len(holder.current())},
        )
    return holder.current()


CurrentKeywordIndex = Annotated[KeywordIndex, Depends(get_keyword_index)]
