"""Test the processed-id ledger and its key-value stores."""

import json

import pytest

from newsletter_brief.errors import PersistenceCorruptError
from newsletter_brief.storage.kv_store import InMemoryStore, JsonFileStore
from newsletter_brief.storage.ledger import PROCESSED_IDS_KEY, DedupLedger, decode_ids


def test_record_keeps_insertion_order_and_skips_known_ids() -> None:
    ledger = DedupLedger(["a", "b"])
    ledger.record(["b", "c", "c"])

    assert ledger.ids() == ["a", "b", "c"]
    assert "c" in ledger
    assert ledger.contains("a")
    assert "z" not in ledger


def test_record_evicts_oldest_beyond_capacity() -> None:
    ledger = DedupLedger(max_size=500)
    ledger.record([f"id-{i}" for i in range(500)])
    ledger.record([f"new-{i}" for i in range(3)])

    assert len(ledger) == 500
    assert "id-0" not in ledger
    assert "id-2" not in ledger
    assert "id-3" in ledger
    assert ledger.ids()[-3:] == ["new-0", "new-1", "new-2"]


def test_load_absent_key_gives_empty_ledger() -> None:
    ledger = DedupLedger.load(InMemoryStore())
    assert len(ledger) == 0


def test_load_corrupt_payload_gives_empty_ledger() -> None:
    store = InMemoryStore({PROCESSED_IDS_KEY: "{not json"})
    ledger = DedupLedger.load(store)
    assert len(ledger) == 0


def test_load_truncates_oversized_payload_to_newest() -> None:
    store = InMemoryStore({PROCESSED_IDS_KEY: json.dumps(["a", "b", "c", "d"])})
    ledger = DedupLedger.load(store, max_size=2)
    assert ledger.ids() == ["c", "d"]


def test_save_then_load_preserves_order() -> None:
    store = InMemoryStore()
    DedupLedger(["x", "y", "z"]).save(store)

    assert json.loads(store.get(PROCESSED_IDS_KEY)) == ["x", "y", "z"]
    assert DedupLedger.load(store).ids() == ["x", "y", "z"]


@pytest.mark.parametrize("payload", ["{}", '"abc"', "[1, 2]", "not json"])
def test_decode_ids_rejects_malformed_payloads(payload: str) -> None:
    with pytest.raises(PersistenceCorruptError):
        decode_ids(payload)


def test_max_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        DedupLedger(max_size=0)


def test_json_file_store_persists_between_instances(tmp_path) -> None:
    path = tmp_path / "state" / "state.json"
    JsonFileStore(path).set("KEY", "value")

    assert JsonFileStore(path).get("KEY") == "value"
    assert JsonFileStore(path).get("OTHER") is None
    assert not path.with_suffix(".json.tmp").exists()


def test_json_file_store_unreadable_file_reads_empty(tmp_path) -> None:
    path = tmp_path / "state.json"
    path.write_text("garbage", encoding="utf-8")

    store = JsonFileStore(path)
    assert store.get("KEY") is None

    store.set("KEY", "value")
    assert json.loads(path.read_text(encoding="utf-8")) == {"KEY": "value"}
