"""
Pytest fixtures for Nora tests.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from nora.database import build_engine, build_session_maker, init_db


SAMPLE_LESSONS = """\
Phase 1: CONNECT
Day 1: Welcome to Special Time
Why five minutes a day changes everything.
Card 1: Why It Works
Special Time is five minutes of Play every day.
Tip: Put your phone in another room.
Card 2: Sample Script
Child: Look at my tower!
You: You built a tall tower.
Day 1 Quiz
Q: How long is Special Time?
A) One hour
B) Five minutes
C) All afternoon
D) Only on weekends
Correct Answer: B
Reason: Five focused minutes are enough.

Day 2: Labeled Praise
Tell your child exactly what they did well.
Card 1: What It Sounds Like
Labeled Praise names the behavior you liked.
Card 2: Your Turn
Write one labeled praise you could use today.
$$Text Input Field$$
Ideal Answer: Thank you for putting the blocks away.
Day 2 Quiz
Q: Which one is labeled praise?
A. Good job
B. Nice
C. Thanks for using gentle hands
D. Wow
Correct Answer: C
Reason: It names the exact behavior.

Phase 2: DISCIPLINE
Day 1: Clear Commands
One direct command at a time.
Card 1: Direct Commands
1. Be specific
2. Be positive
"""

SAMPLE_KEYWORDS = """\
# Nora Keywords

### Play

Child-led activity where the parent follows.

---

### Play Therapy

A structured therapeutic approach.

**History:** Developed in the early 20th century.

### Special Time

Five minutes of daily, child-led play.

### Labeled Praise

Praise that names the specific behavior.
"""


@pytest.fixture
def sample_lessons() -> str:
    return SAMPLE_LESSONS


@pytest.fixture
def sample_keywords() -> str:
    return SAMPLE_KEYWORDS


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """File-backed SQLite engine; every connection sees the same database."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'nora_test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_maker(db_engine):
    return build_session_maker(db_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()
