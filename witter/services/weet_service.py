"""
Witter API — Weet Service
==========================

What:  Create, read, edit and delete individual weets.
Who:   Called by routes/weets.py. Authorship is checked before edit/delete
       by the require_author dependency, not here.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from witter.exceptions import DatabaseError, NotFoundError, ValidationError
from witter.models.user import User
from witter.models.weet import Weet
from witter.schemas.weet import WeetResponse
from witter.services.enrichment import enrich_weet

logger = logging.getLogger(__name__)


class WeetService:
    """Stateless weet operations. Every read returns the enriched shape."""

    async def _require_weet(self, db: AsyncSession, weet_id: int) -> Weet:
        weet = await db.get(Weet, weet_id)
        if weet is None:
            raise NotFoundError(
                "The weet does not appear to exist", resource="weet", resource_id=weet_id
            )
        return weet

    @staticmethod
    def _require_body(body: Optional[str]) -> str:
        if body is None or not body.strip():
            raise ValidationError("A weet cannot be empty", field="weet")
        return body

    async def get(
        self, db: AsyncSession, weet_id: int, viewer: Optional[str] = None
    ) -> WeetResponse:
        weet = await self._require_weet(db, weet_id)
        return await enrich_weet(db, weet, viewer)

    async def create(
        self, db: AsyncSession, body: Optional[str], author: str, viewer: Optional[str] = None
    ) -> WeetResponse:
        """
        Insert a weet by `author` and return it enriched.

        Raises:
            ValidationError: empty body
            NotFoundError:   unknown author
            DatabaseError:   the insert failed
        """
        body = self._require_body(body)
        if await db.get(User, author) is None:
            raise NotFoundError(f"{author} does not exist", resource="user", resource_id=author)

        weet = Weet(weet=body, author=author)
        db.add(weet)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to create weet for %s: %s", author, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "create_weet", "author": author})
        logger.info("Weet %s created by %s", weet.id, author)
        return await enrich_weet(db, weet, viewer)

    async def edit(
        self, db: AsyncSession, weet_id: int, body: Optional[str], viewer: Optional[str] = None
    ) -> WeetResponse:
        """Replace the text of one weet. Author and timestamp are unchanged."""
        body = self._require_body(body)
        weet = await self._require_weet(db, weet_id)

        weet.weet = body
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to edit weet %s: %s", weet_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "edit_weet", "weet_id": weet_id})
        logger.info("Weet %s edited", weet_id)
        return await enrich_weet(db, weet, viewer)

    async def delete(self, db: AsyncSession, weet_id: int) -> str:
        """Remove one weet. Its reactions cascade at the store."""
        weet = await self._require_weet(db, weet_id)
        try:
            await db.delete(weet)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to delete weet %s: %s", weet_id, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "delete_weet", "weet_id": weet_id})
        logger.info("Weet %s deleted", weet_id)
        return "Weet successfully deleted."


weet_service = WeetService()
