"""
Keyword model - glossary terms highlighted in lesson text.
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from nora.kernel.models.base import Base, TimestampMixin


class Keyword(Base, TimestampMixin):
    """A glossary term and its Markdown definition."""

    __tablename__ = "keywords"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    term: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    definition: Mapped[str] = mapped_column(Text, nullable=False)
