"""
Explicit transactions over the database connection.
"""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING

from .exceptions import OperationError, SqlgooseError

if TYPE_CHECKING:
    from types import TracebackType

    from .database import Database

logger = logging.getLogger("sqlgoose.session")


class Session:
    """
    Transaction handle created by :meth:`Database.start_session`.

    Supports two usage patterns:

    1. **Explicit calls**::

           session = db.start_session()
           await session.start_transaction()
           await order.create({...})
           await session.commit_transaction()

    2. **Context manager**::

           async with db.start_session():
               await order.create({...})

       The transaction commits on a clean exit and rolls back if the block
       raises.

    The connection is shared, so every model call made while the transaction
    is open takes part in it.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    @property
    def in_transaction(self) -> bool:
        return self._database.in_session_transaction

    async def start_transaction(self) -> None:
        await self._database.begin()

    async def commit_transaction(self) -> None:
        """Commit; a failed commit is rolled back and re-raised."""
        try:
            await self._database.commit()
        except SqlgooseError:
            raise
        except Exception as e:  # noqa: BLE001
            # Whatever the driver raised, leave the connection usable
            with contextlib.suppress(Exception):
                await self._database.rollback()
            raise OperationError(f"Failed to commit transaction: {e}") from e

    async def abort_transaction(self) -> None:
        await self._database.rollback()

    async def __aenter__(self) -> Session:
        await self.start_transaction()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if not self.in_transaction:
            return
        if exc_type is not None:
            logger.debug("Rolling back session after %s", exc_type.__name__)
            await self.abort_transaction()
        else:
            await self.commit_transaction()
