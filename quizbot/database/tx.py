# quizbot/database/tx.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession


@asynccontextmanager
async def transactional(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    All-or-nothing unit of work on top of SQLAlchemy 2.x autobegin.

    - If a transaction is already active, use SAVEPOINT (begin_nested):
      an exception rolls back to the savepoint only, the caller decides
      what happens to the outer transaction.
    - Otherwise, start a new transaction (committed on clean exit).
    """
    if session.in_transaction():
        async with session.begin_nested():
            yield session
    else:
        async with session.begin():
            yield session
