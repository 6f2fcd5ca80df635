"""SqlUnitOfWork — one AsyncSession transaction per routing call."""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from leadflow.adapters.persistence.repositories import (
    SqlAssignmentEventRepository,
    SqlPipelineCatalog,
    SqlRotationStateRepository,
    SqlVendorRegistry,
)
from leadflow.application.ports.unit_of_work import UnitOfWork
from leadflow.domain.errors import RotationConflict

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected, lock_not_available, unique_violation
CONFLICT_SQLSTATES = frozenset({"40001", "40P01", "55P03", "23505"})


def is_conflict(exc: BaseException) -> bool:
    """True for storage errors that mean "another transaction got there first"."""
    if not isinstance(exc, DBAPIError):
        return False
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code in CONFLICT_SQLSTATES


class SqlUnitOfWork(UnitOfWork):
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        read_only: bool = False,
    ):
        self._session_factory = session_factory
        self._read_only = read_only
        self._session: AsyncSession | None = None

    async def __aenter__(self) -> SqlUnitOfWork:
        self._session = self._session_factory()
        if self._read_only:
            await self._session.execute(text("SET TRANSACTION READ ONLY"))
        self.vendors = SqlVendorRegistry(self._session)
        self.catalog = SqlPipelineCatalog(self._session)
        self.rotation = SqlRotationStateRepository(self._session)
        self.events = SqlAssignmentEventRepository(self._session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await self.rollback()
        finally:
            await self._session.close()
            self._session = None

        if exc is not None and is_conflict(exc):
            logger.warning("Transaction conflict: %s", exc.orig)
            raise RotationConflict() from exc

    async def commit(self) -> None:
        if self._read_only:
            raise RuntimeError("Cannot commit a read-only unit of work")
        try:
            await self._session.commit()
        except DBAPIError as e:
            if is_conflict(e):
                raise RotationConflict() from e
            raise

    async def rollback(self) -> None:
        if self._session is not None:
            await self._session.rollback()
