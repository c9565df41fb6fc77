"""Keyword glossary endpoints."""

from fastapi import APIRouter

from nora.api.deps import CurrentKeywordIndex, DbSession
from nora.engines.content.repositories import KeywordRepository
from nora.pedagogy.keyword_matcher import split_text
from nora.schemas.keyword import (
    KeywordListResponse,
    KeywordMatchRequest,
    KeywordMatchResponse,
    KeywordResponse,
)

router = APIRouter()


@router.get("", response_model=KeywordListResponse)
async def list_keywords(db: DbSession):
    keywords = await KeywordRepository(db).list_all()
    return KeywordListResponse(
        keywords=[KeywordResponse.model_validate(keyword) for keyword in keywords],
        total=len(keywords),
    )


@router.post("/match", response_model=KeywordMatchResponse)
async def match_keywords(request: KeywordMatchRequest, index: CurrentKeywordIndex):
    """Find glossary terms in arbitrary text."""
    matches = index.find_matches(request.text)
    return KeywordMatchResponse(matches=matches, pieces=split_text(request.text, matches))
