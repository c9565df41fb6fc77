"""
API v1 routes.
"""

from fastapi import APIRouter

from nora.api.v1 import keywords, lessons

router = APIRouter()

router.include_router(lessons.router, prefix="/lessons", tags=["Lessons"])
router.include_router(keywords.router, prefix="/keywords", tags=["Keywords"])
