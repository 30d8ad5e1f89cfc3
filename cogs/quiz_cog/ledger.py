"""
Mistake ledger: a durable set of missed questions that outlives quiz sessions.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, List, Optional, Protocol

import asyncpg

from .questions import QuestionRecord, check_option_count

if TYPE_CHECKING:
    from database import Database

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the key-value store cannot be read or written"""


class KeyValueStore(Protocol):
    """Minimal durable key-value storage used by the ledger"""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class DatabaseStore:
    """KeyValueStore backed by the bot's Postgres kv_store table"""

    def __init__(self, db: Database):
        self.db = db

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.db.kv_get(key)
        except (asyncpg.PostgresError, OSError, RuntimeError) as e:
            raise StorageError(f"Failed to read '{key}': {e}") from e

    async def set(self, key: str, value: str) -> None:
        try:
            await self.db.kv_set(key, value)
        except (asyncpg.PostgresError, OSError, RuntimeError) as e:
            raise StorageError(f"Failed to write '{key}': {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self.db.kv_delete(key)
        except (asyncpg.PostgresError, OSError, RuntimeError) as e:
            raise StorageError(f"Failed to delete '{key}': {e}") from e


class MistakeLedger:
    """
    Set of missed questions keyed by question text.

    Every mutation is followed by a write of the full contents (or a delete
    of the key once the set is empty) before the call returns. Storage
    failures are logged and never raised to the caller.

    Loads and mutations run one at a time, so writes reach the store in the
    same order as the changes they record.
    """

    def __init__(self, store: KeyValueStore, key: str):
        self.store = store
        self.key = key
        self._entries: List[QuestionRecord] = []
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __contains__(self, record: QuestionRecord) -> bool:
        return self._index_of(record.question) is not None

    def _index_of(self, question: str) -> Optional[int]:
        return self._find(self._entries, question)

    async def load(self) -> None:
        """Load the ledger from storage, starting empty if the data is unusable"""
        async with self._lock:
            try:
                raw = await self.store.get(self.key)
            except StorageError as e:
                logger.error(f"Could not load mistakes for {self.key}: {e}", exc_info=True)
                self._entries = []
                return

            if raw is None:
                self._entries = []
                return

            try:
                entries = self._parse(raw)
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Discarding corrupted mistakes for {self.key}: {e}")
                self._entries = []
                await self._persist()
                return

            self._entries = entries
            logger.info(f"Loaded {len(entries)} mistakes for {self.key}")

    @classmethod
    def _parse(cls, raw: str) -> List[QuestionRecord]:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError("stored mistakes are not a list")
        entries = []
        for d in data:
            record = QuestionRecord.from_dict(d)
            check_option_count(record)
            if cls._find(entries, record.question) is None:
                entries.append(record)
        return entries

    @staticmethod
    def _find(entries: List[QuestionRecord], question: str) -> Optional[int]:
        for i, entry in enumerate(entries):
            if entry.question == question:
                return i
        return None

    async def add(self, record: QuestionRecord) -> bool:
        """Add a missed question. Returns False if it was already recorded"""
        async with self._lock:
            if self._index_of(record.question) is not None:
                return False
            self._entries.append(record)
            await self._persist()
            return True

    async def remove(self, record: QuestionRecord) -> bool:
        """Remove a question by its text. Returns False if it was not recorded"""
        async with self._lock:
            index = self._index_of(record.question)
            if index is None:
                return False
            del self._entries[index]
            await self._persist()
            return True

    async def clear(self) -> None:
        async with self._lock:
            self._entries = []
            await self._persist()

    def all(self) -> List[QuestionRecord]:
        """Snapshot of the current contents"""
        return list(self._entries)

    async def _persist(self) -> None:
        # Callers hold self._lock
        try:
            if self._entries:
                payload = json.dumps([e.to_dict() for e in self._entries])
                await self.store.set(self.key, payload)
            else:
                await self.store.delete(self.key)
        except StorageError as e:
            logger.error(f"Could not save mistakes for {self.key}: {e}", exc_info=True)
