from decimal import Decimal

import pytest

from fakes import FakeTable


def _records(store_mod, n):
    return [
        store_mod.UploadRecord.for_object("b", f"file-{i}.txt", "text/plain", i * 10)
        for i in range(n)
    ]


def test_storage_uri_from_bucket_and_name(load):
    store = load("store")
    rec = store.UploadRecord.for_object("b", "my cat.png", "image/png", "2048")
    assert rec.storage_uri == "s3://b/my cat.png"
    assert rec.object_size == 2048


def test_item_uses_fixed_partition_and_uri_sort_key(load):
    store = load("store")
    rec = store.UploadRecord.for_object("b", "cat.png", "image/png", 2048)
    item = store.to_item(rec, "upload-report")
    assert item["pk"] == "upload-report"
    assert item["sk"] == "s3://b/cat.png"
    assert item["object_size"] == Decimal(2048)


def test_empty_storage_uri_is_rejected(load):
    store = load("store")
    with pytest.raises(ValueError):
        store.to_item(store.UploadRecord("", "a", "text/plain", 1), "p")


def test_put_then_query_round_trip(load):
    store = load("store")
    rs = store.RecordStore(FakeTable())
    rec = store.UploadRecord.for_object("b", "cat.png", "image/png", 2048)
    rs.put(rec)

    got = rs.query_all()
    assert got == [rec]
    assert isinstance(got[0].object_size, int)


def test_put_same_uri_overwrites(load):
    store = load("store")
    rs = store.RecordStore(FakeTable())
    rs.put(store.UploadRecord.for_object("b", "a.txt", "text/plain", 1))
    rs.put(store.UploadRecord.for_object("b", "a.txt", "text/plain", 5))
    got = rs.query_all()
    assert len(got) == 1
    assert got[0].object_size == 5


def test_partition_comes_from_env(load, monkeypatch):
    monkeypatch.setenv("RECORD_PARTITION", "nightly")
    store = load("store")
    table = FakeTable()
    store.RecordStore(table).put(store.UploadRecord.for_object("b", "a", "text/plain", 1))
    assert list(table.items) == [("nightly", "s3://b/a")]


def test_query_follows_pagination(load):
    store = load("store")
    rs = store.RecordStore(FakeTable(page_size=2))
    recs = _records(store, 5)
    for r in recs:
        rs.put(r)
    assert rs.query_all() == recs


def test_query_ignores_other_partitions(load):
    store = load("store")
    table = FakeTable()
    table.items[("other", "s3://b/x")] = {"pk": "other", "sk": "s3://b/x", "object_size": Decimal(1)}
    rs = store.RecordStore(table)
    rs.put(store.UploadRecord.for_object("b", "a", "text/plain", 1))
    assert [r.storage_uri for r in rs.query_all()] == ["s3://b/a"]


def test_put_failure_raises_store_error(load):
    store = load("store")
    table = FakeTable()
    table.fail_put = True
    with pytest.raises(store.StoreError):
        store.RecordStore(table).put(store.UploadRecord.for_object("b", "a", "text/plain", 1))


def test_query_failure_raises_store_error(load):
    store = load("store")
    table = FakeTable()
    table.fail_query = True
    with pytest.raises(store.StoreError):
        store.RecordStore(table).query_all()


def test_delete_all_of_query_result_empties_partition(load):
    store = load("store")
    rs = store.RecordStore(FakeTable())
    for r in _records(store, 3):
        rs.put(r)
    assert rs.delete_all(rs.query_all()) == []
    assert rs.query_all() == []


def test_delete_all_continues_past_failures(load):
    store = load("store")
    table = FakeTable()
    rs = store.RecordStore(table)
    recs = _records(store, 3)
    for r in recs:
        rs.put(r)
    table.fail_delete = {recs[0].storage_uri}

    failed = rs.delete_all(recs)

    assert failed == [recs[0]]
    assert table.deleted == [recs[1].storage_uri, recs[2].storage_uri]
    assert rs.query_all() == [recs[0]]
