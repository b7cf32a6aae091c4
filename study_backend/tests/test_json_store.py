import json

import pytest

from studyhub.storage.json_store import TABLES, RecordNotFoundError, StudyJsonStore


def test_missing_file_is_created_with_every_table(tmp_path):
    store = StudyJsonStore(path=str(tmp_path / "nested" / "study.json"))
    data = store.load_all()

    assert set(data) == set(TABLES)
    with open(store.path, encoding="utf-8") as f:
        assert json.load(f) == data


def test_corrupted_file_is_reset(tmp_path):
    path = tmp_path / "study.json"
    path.write_text("{not json", encoding="utf-8")

    data = StudyJsonStore(path=str(path)).load_all()

    assert all(data[table] == [] for table in TABLES)


def test_missing_tables_are_added(tmp_path):
    path = tmp_path / "study.json"
    path.write_text(json.dumps({"notes": [{"id": "n1"}]}), encoding="utf-8")

    data = StudyJsonStore(path=str(path)).load_all()

    assert data["notes"] == [{"id": "n1"}]
    assert data["subjects"] == []


def test_insert_list_and_filter(store):
    store.insert_record("notes", {"id": "n1", "user_id": "alice", "subject_id": "s1"})
    store.insert_record("notes", {"id": "n2", "user_id": "alice", "subject_id": "s2"})
    store.insert_record("notes", {"id": "n3", "user_id": "bob", "subject_id": "s1"})

    assert [r["id"] for r in store.list_records("notes", user_id="alice")] == ["n1", "n2"]
    assert [r["id"] for r in store.list_records("notes", subject_id="s1")] == ["n1", "n3"]
    assert store.find_record("notes", user_id="carol") is None


def test_update_and_get(store):
    store.insert_record("subjects", {"id": "s1", "name": "Maths"})
    updated = store.update_record("subjects", "s1", {"name": "Calculus"})

    assert updated["name"] == "Calculus"
    assert store.get_record("subjects", "s1")["name"] == "Calculus"


def test_unknown_record(store):
    with pytest.raises(RecordNotFoundError):
        store.get_record("subjects", "nope")
    with pytest.raises(RecordNotFoundError):
        store.update_record("subjects", "nope", {"name": "x"})


def test_delete_where(store):
    store.insert_record("goals", {"id": "g1", "subject_id": "s1"})
    store.insert_record("goals", {"id": "g2", "subject_id": "s1"})
    store.insert_record("goals", {"id": "g3", "subject_id": "s2"})

    assert store.delete_where("goals", subject_id="s1") == 2
    assert [r["id"] for r in store.list_records("goals")] == ["g3"]
    with pytest.raises(ValueError):
        store.delete_where("goals")


def test_failed_transaction_writes_nothing(store):
    store.insert_record("tags", {"id": "t1", "name": "exam"})
    with pytest.raises(RuntimeError):
        with store.transaction() as data:
            data["tags"].clear()
            raise RuntimeError("abort")

    assert store.list_records("tags") == [{"id": "t1", "name": "exam"}]


def test_unknown_table_is_rejected(store):
    with pytest.raises(ValueError):
        store.list_records("users")


def test_no_temporary_files_are_left(tmp_path):
    store = StudyJsonStore(path=str(tmp_path / "study.json"))
    store.insert_record("tags", {"id": "t1", "name": "exam"})

    assert [p.name for p in tmp_path.iterdir()] == ["study.json"]
