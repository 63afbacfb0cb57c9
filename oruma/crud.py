"""Shared plumbing for the contact and note stores.

The stores issue their SQL through a :class:`~oruma.database.Database`
handle and translate integrity failures into
:class:`~oruma.errors.ConstraintViolation`.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .database import Database
from .errors import ConstraintViolation


logger = logging.getLogger(__name__)


class BaseStore:
    """Base class for stores bound to one database handle."""

    def __init__(self, database: Database):
        self.database = database

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.database!r})"

    async def commit(self, db: AsyncSession, action: str) -> None:
        """
        Commit the session, rolling back on a constraint failure.

        Args:
            db (AsyncSession): Session holding the pending write.
            action (str): Short description used in the error message.

        Raises:
            ConstraintViolation: If the write breaks a unique, foreign key
                or check constraint.
        """
        try:
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            logger.warning("Constraint violation while trying to %s: %s", action, exc.orig)
            raise ConstraintViolation(f"Cannot {action}: {exc.orig}") from exc
