"""
Shared fixtures for the quiz cog tests.
"""
import asyncio
import random
from typing import Dict, Optional

import pytest

from cogs.quiz_cog.config import mistakes_key
from cogs.quiz_cog.ledger import MistakeLedger, StorageError
from cogs.quiz_cog.questions import QuestionRecord


class MemoryStore:
    """In-memory KeyValueStore that records every write"""

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(data or {})
        self.writes = []
        self.fail_reads = False
        self.fail_writes = False
        self.set_delay = 0.0

    async def get(self, key):
        if self.fail_reads:
            raise StorageError("read failed")
        return self.data.get(key)

    async def set(self, key, value):
        if self.set_delay:
            await asyncio.sleep(self.set_delay)
        if self.fail_writes:
            raise StorageError("write failed")
        self.writes.append(("set", key))
        self.data[key] = value

    async def delete(self, key):
        if self.fail_writes:
            raise StorageError("delete failed")
        self.writes.append(("delete", key))
        self.data.pop(key, None)


LEDGER_KEY = mistakes_key(42)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def ledger(store):
    return MistakeLedger(store, LEDGER_KEY)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def q1():
    return QuestionRecord(question="Q1", options=("A", "B"), answer="A")


@pytest.fixture
def q2():
    return QuestionRecord(question="Q2", options=("C", "D"), answer="D")


@pytest.fixture
def bank(q1, q2):
    return [q1, q2]


class FixedOrder(random.Random):
    """Random source whose shuffle leaves the order unchanged"""

    def shuffle(self, x):
        pass


@pytest.fixture
def fixed_order():
    return FixedOrder()
