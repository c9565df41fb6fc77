"""
Keyword schemas for API request/response validation.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from nora.pedagogy.keyword_matcher import KeywordSpan, TextPiece


class KeywordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    term: str
    definition: str


class KeywordListResponse(BaseModel):
    keywords: List[KeywordResponse]
    total: int


class KeywordMatchRequest(BaseModel):
    text: str = Field(..., max_length=100_000)


class KeywordMatchResponse(BaseModel):
    matches: List[KeywordSpan]
    pieces: List[TextPiece]
