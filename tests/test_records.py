import json
import pytest

from app.image_service.models import ImageRecord
from app.storage.records import JSONRecordStore, MemoryRecordStore


def make_record(**overrides):
    values = dict(
        filename="1_abcdef12_cat.png",
        url="https://blob.example.com/cat.png",
        storage={"provider": "blob", "key": "images/cat.png"},
        title="cat",
        tags=["pets"],
        mimetype="image/png",
        size=10,
    )
    values.update(overrides)
    return ImageRecord(**values)


def test_load_missing_document_is_empty(tmp_path):
    store = JSONRecordStore(tmp_path / "images.json")
    assert store.load_all() == []


def test_load_corrupt_document_is_empty(tmp_path):
    path = tmp_path / "images.json"
    path.write_text("{broken", encoding="utf-8")
    assert JSONRecordStore(path).load_all() == []


def test_load_non_list_document_is_empty(tmp_path):
    path = tmp_path / "images.json"
    path.write_text('{"id": "x"}', encoding="utf-8")
    assert JSONRecordStore(path).load_all() == []


def test_load_skips_invalid_entries(tmp_path):
    path = tmp_path / "images.json"
    good = make_record().model_dump(mode="json", by_alias=True)
    path.write_text(json.dumps([good, {"nope": True}]), encoding="utf-8")
    records = JSONRecordStore(path).load_all()
    assert [r.id for r in records] == [good["id"]]


def test_initialize_creates_empty_document(tmp_path):
    store = JSONRecordStore(tmp_path / "nested" / "images.json")
    store.initialize()
    assert json.loads(store.path.read_text(encoding="utf-8")) == []


def test_save_writes_camel_case_and_removes_tmp(tmp_path):
    store = JSONRecordStore(tmp_path / "images.json")
    record = make_record()
    store.save_all([record])

    raw = json.loads(store.path.read_text(encoding="utf-8"))
    assert raw[0]["id"] == record.id
    assert "uploadedAt" in raw[0] and "updatedAt" in raw[0]
    assert not store.tmp_path.exists()


def test_save_load_round_trip_is_stable(tmp_path):
    store = JSONRecordStore(tmp_path / "images.json")
    store.save_all([make_record(), make_record(title="dog", tags=["pets", "dogs"])])
    before = json.loads(store.path.read_text(encoding="utf-8"))

    store.save_all(store.load_all())
    after = json.loads(store.path.read_text(encoding="utf-8"))
    assert after == before


def test_save_failure_is_raised(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    store = JSONRecordStore(blocker / "images.json")
    with pytest.raises(OSError):
        store.save_all([make_record()])


def test_save_failure_removes_tmp_and_keeps_document(tmp_path, mocker):
    store = JSONRecordStore(tmp_path / "images.json")
    store.save_all([make_record()])
    before = store.path.read_text(encoding="utf-8")

    mocker.patch("app.storage.records.os.replace", side_effect=OSError("rename failed"))
    with pytest.raises(OSError):
        store.save_all([make_record(title="dog")])

    assert not store.tmp_path.exists()
    assert store.path.read_text(encoding="utf-8") == before


def test_describe(tmp_path):
    store = JSONRecordStore(tmp_path / "images.json")
    assert store.describe()["exists"] is False
    store.save_all([make_record()])
    info = store.describe()
    assert info["exists"] is True
    assert info["size"] > 0
    assert info["backend"] == "json"


def test_memory_store_copies_records():
    store = MemoryRecordStore()
    record = make_record()
    store.save_all([record])

    loaded = store.load_all()
    loaded[0].title = "changed"
    assert store.load_all()[0].title == "cat"
