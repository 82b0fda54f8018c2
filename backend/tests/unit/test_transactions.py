"""
Unit tests for taskboard.services.transactions.

The runner commits once per successful attempt, rolls back every failure,
and only retries store errors that signal transient contention.
"""

import pytest
from sqlalchemy.exc import DBAPIError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.core.errors import BadInputError, StoreContentionError
from taskboard.models.user import User
from taskboard.services.transactions import is_transient, run_unit_of_work
from taskboard.testing import create_user


class _SerializationFailure(Exception):
    sqlstate = "40001"


class _Deadlock(Exception):
    pgcode = "40P01"


def _dbapi_error(orig: Exception) -> DBAPIError:
    return DBAPIError("UPDATE tasks SET position=?", {}, orig)


@pytest.mark.unit
@pytest.mark.parametrize(
    "orig,expected",
    [
        (_SerializationFailure("could not serialize access"), True),
        (_Deadlock("deadlock detected"), True),
        (Exception("database is locked"), True),
        (Exception("syntax error at or near"), False),
    ],
)
def test_is_transient(orig: Exception, expected: bool):
    assert is_transient(_dbapi_error(orig)) is expected


@pytest.mark.unit
async def test_commits_result(session: AsyncSession):
    async def operation():
        return await create_user(session, commit=False, email="commit@example.com")

    user = await run_unit_of_work(session, operation)
    user_id = user.id

    await session.rollback()
    stored = (await session.exec(select(User).where(User.email == "commit@example.com"))).one()
    assert stored.id == user_id


@pytest.mark.unit
async def test_retries_transient_failure_then_succeeds(session: AsyncSession):
    attempts: list[int] = []

    async def operation():
        attempts.append(len(attempts) + 1)
        if len(attempts) < 3:
            raise _dbapi_error(_SerializationFailure("could not serialize access"))
        return "done"

    assert await run_unit_of_work(session, operation, max_attempts=3) == "done"
    assert attempts == [1, 2, 3]


@pytest.mark.unit
async def test_exhausted_retries_raise_contention(session: AsyncSession):
    calls = 0

    async def operation():
        nonlocal calls
        calls += 1
        raise _dbapi_error(Exception("database is locked"))

    with pytest.raises(StoreContentionError):
        await run_unit_of_work(session, operation, max_attempts=2)
    assert calls == 2


@pytest.mark.unit
async def test_non_transient_store_error_is_not_retried(session: AsyncSession):
    calls = 0

    async def operation():
        nonlocal calls
        calls += 1
        raise _dbapi_error(Exception("syntax error"))

    with pytest.raises(DBAPIError):
        await run_unit_of_work(session, operation, max_attempts=3)
    assert calls == 1


@pytest.mark.unit
async def test_board_error_rolls_back_staged_writes(session: AsyncSession):
    async def operation():
        await create_user(session, commit=False, email="rolled-back@example.com")
        raise BadInputError("late validation failure")

    with pytest.raises(BadInputError):
        await run_unit_of_work(session, operation)

    result = await session.exec(select(User).where(User.email == "rolled-back@example.com"))
    assert result.one_or_none() is None
