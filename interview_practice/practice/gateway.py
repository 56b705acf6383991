import asyncio
import logging
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from interview_practice.core.exceptions import PersistenceError
from interview_practice.practice.models import SessionRecord
from interview_practice.repositories.practice_repository import PracticeRepository

logger = logging.getLogger(__name__)


class PracticeSessionGateway(Protocol):
    async def save(self, record: SessionRecord) -> int:
        """Persist a finalized session and return its record id. Raises PersistenceError."""


class SqlPracticeSessionGateway:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def _save_sync(self, record: SessionRecord) -> int:
        db = self.session_factory()
        try:
            practice = PracticeRepository(db).create(record)
            return practice.id
        finally:
            db.close()

    async def save(self, record: SessionRecord) -> int:
        try:
            record_id = await asyncio.to_thread(self._save_sync, record)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not save practice session {record.session_id}: {exc}") from exc
        logger.info("Saved practice session %s as record %s", record.session_id, record_id)
        return record_id
