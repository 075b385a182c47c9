"""
Event category store.
The category list lives in a single server-owned config record that is
seeded with the default categories the first time it is read.
"""

from typing import List, Optional
import logging

from sqlalchemy.exc import IntegrityError, OperationalError

from ceart_api.core.config import DEFAULT_CATEGORIES
from ceart_api.core.exceptions import ConflictError, InvalidInputError, NotFoundError, StorageUnavailableError
from ceart_api.db.database import DatabaseManager, db_manager
from ceart_api.db.repositories import ConfigRecordRepository
from ceart_api.models.settings import EVENT_CATEGORIES_KEY

logger = logging.getLogger(__name__)


class CategoryService:
    """
    Lazy-initialised list of event categories.
    """

    def __init__(self, database: DatabaseManager = db_manager, defaults: Optional[List[str]] = None):
        self.db_manager = database
        self.defaults = list(defaults) if defaults is not None else list(DEFAULT_CATEGORIES)

    def _load_for_update(self, session) -> List[str]:
        """Read the stored list under a row lock, seeding it when absent."""
        repository = ConfigRecordRepository(session)
        record = repository.get(EVENT_CATEGORIES_KEY, for_update=True)
        if record is None:
            record = repository.put(EVENT_CATEGORIES_KEY, list(self.defaults))
            logger.info(f"Seeded event categories: {record.value}")
        return list(record.value or [])

    def _run(self, operation):
        """Run ``operation(session)`` in a transaction; a concurrent first seed is retried once."""
        for attempt in range(2):
            try:
                with self.db_manager.get_transaction_session() as session:
                    return operation(session)
            except IntegrityError:
                if attempt:
                    raise
                logger.debug("Category record seeded concurrently, retrying")
            except OperationalError as e:
                logger.error(f"Category store failed in storage: {e}")
                raise StorageUnavailableError() from e

    def get_categories(self) -> List[str]:
        return self._run(self._load_for_update)

    def add_category(self, name: str) -> List[str]:
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Category name is required", {"field": "name"})

        def operation(session):
            categories = self._load_for_update(session)
            if any(existing.lower() == name.lower() for existing in categories):
                raise ConflictError(f"Category '{name}' already exists", {"name": name})
            categories.append(name)
            ConfigRecordRepository(session).put(EVENT_CATEGORIES_KEY, categories)
            return categories

        categories = self._run(operation)
        logger.info(f"Category '{name}' added")
        return categories

    def remove_category(self, name: str) -> List[str]:
        name = (name or "").strip()

        def operation(session):
            categories = self._load_for_update(session)
            remaining = [existing for existing in categories if existing.lower() != name.lower()]
            if len(remaining) == len(categories):
                raise NotFoundError("Category", name)
            ConfigRecordRepository(session).put(EVENT_CATEGORIES_KEY, remaining)
            return remaining

        categories = self._run(operation)
        logger.info(f"Category '{name}' removed")
        return categories


# Global category service instance
category_service = CategoryService()
