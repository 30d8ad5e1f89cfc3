"""
Tests for the persistent mistake ledger.
"""
import asyncio
import json
import logging

from cogs.quiz_cog.config import MAX_OPTIONS, mistakes_key
from cogs.quiz_cog.ledger import MistakeLedger
from cogs.quiz_cog.questions import QuestionRecord

LEDGER_KEY = mistakes_key(42)


async def test_add_is_idempotent_by_question_text(ledger, store, q1):
    same_text = QuestionRecord(question="Q1", options=("X", "Y"), answer="X")

    assert await ledger.add(q1) is True
    assert await ledger.add(same_text) is False

    assert ledger.all() == [q1]
    assert store.writes == [("set", LEDGER_KEY)]


async def test_add_persists_full_contents(ledger, store, q1, q2):
    await ledger.add(q1)
    await ledger.add(q2)

    stored = json.loads(store.data[LEDGER_KEY])
    assert stored == [q1.to_dict(), q2.to_dict()]


async def test_remove_by_question_text(ledger, store, q1, q2):
    await ledger.add(q1)
    await ledger.add(q2)

    assert await ledger.remove(QuestionRecord(question="Q1", options=("Z",), answer="Z")) is True
    assert await ledger.remove(q1) is False

    assert q1 not in ledger
    assert q2 in ledger
    assert json.loads(store.data[LEDGER_KEY]) == [q2.to_dict()]


async def test_removing_last_entry_deletes_the_key(ledger, store, q1):
    await ledger.add(q1)
    await ledger.remove(q1)

    assert LEDGER_KEY not in store.data
    assert store.writes[-1] == ("delete", LEDGER_KEY)
    assert not ledger


async def test_clear_empties_and_deletes(ledger, store, q1, q2):
    await ledger.add(q1)
    await ledger.add(q2)

    await ledger.clear()

    assert ledger.all() == []
    assert len(ledger) == 0
    assert LEDGER_KEY not in store.data


async def test_all_returns_a_snapshot(ledger, q1):
    await ledger.add(q1)
    snapshot = ledger.all()
    snapshot.clear()

    assert ledger.all() == [q1]


async def test_load_restores_saved_entries(store, q1, q2):
    first = MistakeLedger(store, LEDGER_KEY)
    await first.add(q1)
    await first.add(q2)

    second = MistakeLedger(store, LEDGER_KEY)
    await second.load()

    assert second.all() == [q1, q2]


async def test_load_with_nothing_stored(ledger, store):
    await ledger.load()

    assert ledger.all() == []
    assert store.writes == []


async def test_load_drops_duplicate_entries(store, ledger, q1):
    store.data[LEDGER_KEY] = json.dumps([q1.to_dict(), q1.to_dict()])

    await ledger.load()

    assert ledger.all() == [q1]


async def test_load_corrupted_data_starts_empty_and_clears_key(store, ledger, caplog):
    store.data[LEDGER_KEY] = "{not json"

    with caplog.at_level(logging.WARNING):
        await ledger.load()

    assert ledger.all() == []
    assert LEDGER_KEY not in store.data
    assert "corrupted" in caplog.text


async def test_load_invalid_records_starts_empty(store, ledger):
    bad = [{"question": "Q1", "options": ["A"], "answer": "B"}]
    store.data[LEDGER_KEY] = json.dumps(bad)

    await ledger.load()

    assert ledger.all() == []
    assert LEDGER_KEY not in store.data


async def test_load_non_list_starts_empty(store, ledger):
    store.data[LEDGER_KEY] = json.dumps({"question": "Q1"})

    await ledger.load()

    assert ledger.all() == []


async def test_read_failure_starts_empty(store, ledger):
    store.fail_reads = True

    await ledger.load()

    assert ledger.all() == []


async def test_write_failure_is_not_raised(store, ledger, q1, caplog):
    store.fail_writes = True

    with caplog.at_level(logging.ERROR):
        assert await ledger.add(q1) is True

    assert ledger.all() == [q1]
    assert "Could not save mistakes" in caplog.text


async def test_load_oversized_record_starts_empty(store, ledger, q1):
    options = [str(i) for i in range(MAX_OPTIONS + 1)]
    oversized = {"question": "Q9", "options": options, "answer": "0"}
    store.data[LEDGER_KEY] = json.dumps([q1.to_dict(), oversized])

    await ledger.load()

    assert ledger.all() == []
    assert LEDGER_KEY not in store.data


async def test_overlapping_mutations_store_final_contents(store, ledger, q1):
    store.set_delay = 0.05

    await asyncio.gather(ledger.add(q1), ledger.clear())

    assert ledger.all() == []
    assert LEDGER_KEY not in store.data
