"""Tests for the JSON storage layer, pagination and deadlines."""

import tempfile

import pytest

from modcore.common.deadline import Deadline, iter_pages
from modcore.common.storage import Storage
from modcore.common.types import Page, normalize_pagination
from modcore.errors import DeadlineExceeded, InvalidArgument


def test_insert_assigns_increasing_ids():
    with tempfile.TemporaryDirectory() as tmpdir:
        table = Storage(tmpdir).table("things")
        assert table.insert({"name": "a"})["id"] == 1
        assert table.insert({"name": "b"})["id"] == 2
        assert table.get(2)["name"] == "b"
        assert table.update(1, {"name": "c"})["name"] == "c"
        assert table.delete(1)
        assert not table.delete(1)
        assert table.count() == 1


def test_transaction_rolls_back_every_touched_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Storage(tmpdir)
        things = storage.table("things")
        events = storage.log("events")
        things.insert({"name": "kept"})

        with pytest.raises(InvalidArgument):
            with storage.transaction():
                things.insert({"name": "lost"})
                storage.table("other").insert({"x": 1})
                events.append({"what": "lost"})
                raise InvalidArgument("boom")

        assert [r["name"] for r in things.all()] == ["kept"]
        assert storage.table("other").all() == []
        assert events.read() == []


def test_nested_transactions_roll_back_together():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Storage(tmpdir)
        things = storage.table("things")
        with pytest.raises(RuntimeError):
            with storage.transaction():
                with storage.transaction():
                    things.insert({"name": "inner"})
                things.insert({"name": "outer"})
                raise RuntimeError("fail")
        assert things.all() == []


def test_corrupt_table_reads_as_empty():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Storage(tmpdir)
        (storage.base_dir / "things.json").write_text("{not json")
        assert storage.table("things").all() == []


def test_generations_only_increase():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Storage(tmpdir)
        assert storage.generation("rules") == 0
        assert storage.bump("rules") == 1
        assert storage.bump("rules") == 2


def test_generations_are_shared_by_storages_on_one_directory():
    with tempfile.TemporaryDirectory() as tmpdir:
        first, second = Storage(tmpdir), Storage(tmpdir)
        first.bump("rules")
        assert second.generation("rules") == 1
        assert second.bump("rules") == 2
        assert first.generation("rules") == 2


def test_rolled_back_transaction_still_advances_generation():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Storage(tmpdir)
        with pytest.raises(RuntimeError):
            with storage.transaction():
                storage.bump("rules")
                raise RuntimeError("fail")
        assert storage.generation("rules") == 2


def test_deleted_ids_are_never_reused():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Storage(tmpdir)
        things = storage.table("things")
        things.insert({"name": "a"})
        second = things.insert({"name": "b"})
        things.delete(second["id"])
        assert things.insert({"name": "c"})["id"] == 3

        # a fresh Storage on the same directory continues the sequence
        assert Storage(tmpdir).table("things").insert({"name": "d"})["id"] == 4


def test_rolled_back_insert_does_not_consume_an_id():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Storage(tmpdir)
        things = storage.table("things")
        things.insert({"name": "a"})
        with pytest.raises(RuntimeError):
            with storage.transaction():
                things.insert({"name": "lost"})
                raise RuntimeError("fail")
        assert things.insert({"name": "b"})["id"] == 2


def test_log_ids_continue_past_existing_entries():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Storage(tmpdir)
        (storage.base_dir / "events.jsonl").write_text('{"id": 5, "what": "old"}\n')
        assert storage.log("events").append({"what": "new"})["id"] == 6


def test_pagination_clamps():
    assert normalize_pagination(None, None) == (1, 20)
    assert normalize_pagination(0, 0) == (1, 20)
    assert normalize_pagination(3, 101) == (3, 20)
    assert normalize_pagination(2, 100) == (2, 100)

    page = Page.slice(list(range(45)), 3, 20)
    assert page.items == list(range(40, 45))
    assert page.to_dict(lambda i: i) == {"items": [40, 41, 42, 43, 44], "total": 45, "page": 3, "pageSize": 20, "pages": 3}


def test_deadline_stops_paged_iteration():
    deadline = Deadline()
    fetched = []

    def fetch(page, size):
        fetched.append(page)
        if page == 2:
            deadline.cancel()
        return Page.slice(list(range(10)), page, size)

    with pytest.raises(DeadlineExceeded):
        list(iter_pages(fetch, page_size=3, deadline=deadline))
    assert fetched == [1, 2]


def test_iter_pages_walks_every_page():
    items = list(iter_pages(lambda page, size: Page.slice(list(range(7)), page, size), page_size=3))
    assert items == list(range(7))


def test_expired_deadline():
    now = [100.0]
    deadline = Deadline(5, clock=lambda: now[0])
    deadline.check()
    now[0] = 106.0
    assert deadline.expired
    assert deadline.remaining() == 0.0
    with pytest.raises(DeadlineExceeded):
        deadline.check()
