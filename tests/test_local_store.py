import json
import logging
import re
import sqlite3

import pytest

import database
from constants import STORAGE_KEY
from database import BackendError, LocalStore, NotFoundError, StorageCorruption, decode_dataset, new_activity_id
from models import Achievement, PdcaEntry


def _write_raw(db_path, value):
    conn = sqlite3.connect(db_path)
    conn.execute("INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)", (STORAGE_KEY, value))
    conn.commit()
    conn.close()


def _read_raw(db_path):
    conn = sqlite3.connect(db_path)
    row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (STORAGE_KEY,)).fetchone()
    conn.close()
    return json.loads(row[0])


def test_activity_id_format():
    assert re.fullmatch(r"act_\d+_[a-z0-9]{9}", new_activity_id())


def test_data_survives_a_new_instance(db_path):
    store = LocalStore(db_path)
    activity = store.create_activity("Imunisasi", "k2", 100)
    store.save_achievement(Achievement(activity.id, 0, 2025, 120))
    store.save_pdca(PdcaEntry(activity.id, 0, 2025, plan="Tetap"))

    reopened = LocalStore(db_path)

    assert reopened.list_activities("k2") == [activity]
    assert reopened.list_achievements(0, 2025, "k2")[0].value == 120
    assert reopened.get_pdca(activity.id, 0, 2025).plan == "Tetap"


def test_stored_document_uses_camel_case_shape(local_store, db_path):
    activity = local_store.create_activity("Imunisasi", "k2", 100, "cumulative")
    local_store.save_achievement(Achievement(activity.id, 2, 2025, 33))

    doc = _read_raw(db_path)

    assert set(doc) == {"activities", "achievements", "pdca"}
    assert doc["activities"][0] == {
        "id": activity.id,
        "clusterId": "k2",
        "name": "Imunisasi",
        "targetValue": 100.0,
        "targetLogic": "cumulative",
    }
    assert doc["achievements"][0] == {"activityId": activity.id, "month": 2, "year": 2025, "value": 33.0}


@pytest.mark.parametrize("raw", ["{bukan json", "[1, 2, 3]", '{"activities": [{"id": "x"}]}'])
def test_corrupt_document_resets_to_empty_dataset(db_path, caplog, raw):
    LocalStore(db_path)
    _write_raw(db_path, raw)

    with caplog.at_level(logging.WARNING, logger="database"):
        store = LocalStore(db_path)

    assert store.list_activities() == []
    assert store.list_achievements(0, 2025) == []
    assert "rusak" in caplog.text


def test_store_is_usable_after_corruption_recovery(db_path):
    LocalStore(db_path)
    _write_raw(db_path, "{bukan json")

    store = LocalStore(db_path)
    store.create_activity("Posyandu", "k2", 12)

    assert [a["name"] for a in _read_raw(db_path)["activities"]] == ["Posyandu"]


def test_decode_dataset_raises_storage_corruption():
    with pytest.raises(StorageCorruption):
        decode_dataset('"teks saja"')


def test_missing_keys_default_to_empty_lists():
    data = decode_dataset("{}")

    assert data == {"activities": [], "achievements": [], "pdca": []}


def test_saving_for_unknown_activity_raises_not_found(local_store):
    with pytest.raises(NotFoundError):
        local_store.save_achievement(Achievement("act_hilang", 0, 2025, 1))
    with pytest.raises(NotFoundError):
        local_store.save_pdca(PdcaEntry("act_hilang", 0, 2025, plan="x"))


def test_returned_records_are_copies(local_store):
    activity = local_store.create_activity("Imunisasi", "k2", 100)

    listed = local_store.list_activities("k2")[0]
    listed.name = "Diubah di luar store"
    activity.target_value = 1

    stored = local_store.list_activities("k2")[0]
    assert stored.name == "Imunisasi"
    assert stored.target_value == 100


def test_duplicate_rows_in_document_are_listed_once(db_path):
    row = {"id": "act_1_abcdefghi", "clusterId": "k1", "name": "Rapat", "targetValue": 1, "targetLogic": "static"}
    LocalStore(db_path)
    _write_raw(db_path, json.dumps({"activities": [row, dict(row)], "achievements": [], "pdca": []}))

    store = LocalStore(db_path)

    assert [a.id for a in store.list_activities("k1")] == ["act_1_abcdefghi"]


def test_pdca_activity_name_is_not_persisted(local_store, db_path):
    activity = local_store.create_activity("Imunisasi", "k2", 100)
    local_store.save_pdca(PdcaEntry(activity.id, 0, 2025, plan="A", activity_name="Nama lain"))

    assert "activityName" not in _read_raw(db_path)["pdca"][0]
    assert local_store.list_bulk_pdca(0, 2025)[0].activity_name == "Imunisasi"


@pytest.fixture
def failing_disk(monkeypatch):
    def locked(*args, **kwargs):
        raise sqlite3.OperationalError("database is locked")

    def apply():
        monkeypatch.setattr(database.sqlite3, "connect", locked)

    return apply


def test_failed_write_leaves_memory_unchanged(local_store, db_path, failing_disk):
    activity = local_store.create_activity("Imunisasi", "k2", 100)
    local_store.save_achievement(Achievement(activity.id, 0, 2025, 80))
    failing_disk()

    with pytest.raises(BackendError, match="database is locked"):
        local_store.create_activity("Posyandu", "k2", 12)
    with pytest.raises(BackendError):
        local_store.update_activity(activity.id, target_value=50)
    with pytest.raises(BackendError):
        local_store.save_achievement(Achievement(activity.id, 0, 2025, 120))
    with pytest.raises(BackendError):
        local_store.save_pdca(PdcaEntry(activity.id, 0, 2025, plan="A"))
    with pytest.raises(BackendError):
        local_store.delete_activity(activity.id)

    assert local_store.list_activities() == [activity]
    assert local_store.list_achievements(0, 2025)[0].value == 80
    assert local_store.get_pdca(activity.id, 0, 2025) is None


def test_memory_matches_disk_after_failed_write(db_path, monkeypatch, failing_disk):
    store = LocalStore(db_path)
    store.create_activity("Imunisasi", "k2", 100)
    failing_disk()

    with pytest.raises(BackendError):
        store.create_activity("Posyandu", "k2", 12)

    monkeypatch.undo()
    assert [a.name for a in store.list_activities()] == ["Imunisasi"]
    assert [a.name for a in LocalStore(db_path).list_activities()] == ["Imunisasi"]
