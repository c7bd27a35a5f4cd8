"""Tests for the JSON-backed participant store."""

from __future__ import annotations

import json
import logging

import pytest

from reader_store import ReaderStore, RecordNotFound, ValidationError, parse_page


class TestCreate:
    def test_first_participant(self, store, data_file):
        record = store.create("Amina")
        assert record == {"id": 1, "name": "Amina", "currentPage": 1}
        assert json.loads(data_file.read_text(encoding="utf-8")) == [record]

    def test_name_is_trimmed(self, store):
        assert store.create("  Bilal \n")["name"] == "Bilal"

    @pytest.mark.parametrize("name", ["", "   ", None, 42])
    def test_name_required(self, store, name):
        with pytest.raises(ValidationError):
            store.create(name)
        assert len(store) == 0

    def test_id_is_one_past_highest(self, store):
        store.create("A")
        store.create("B")
        store.create("C")
        store.delete(1)
        assert store.create("D")["id"] == 4
        store.delete(4)
        assert store.create("E")["id"] == 4


class TestUpdate:
    def test_sets_page(self, store):
        store.create("A")
        assert store.update(1, 250)["currentPage"] == 250
        assert store.get(1)["currentPage"] == 250

    def test_accepts_numeric_string_and_string_id(self, store):
        store.create("A")
        assert store.update("1", "45")["currentPage"] == 45

    @pytest.mark.parametrize("page", [0, 605, -1, "abc", "", None, True, 12.5])
    def test_rejects_bad_pages(self, store, page):
        store.create("A")
        with pytest.raises(ValidationError):
            store.update(1, page)
        assert store.get(1)["currentPage"] == 1

    def test_unknown_id(self, store):
        with pytest.raises(RecordNotFound):
            store.update(7, 10)

    def test_rename(self, store):
        store.create("A")
        assert store.rename(1, " Khadija ")["name"] == "Khadija"
        with pytest.raises(ValidationError):
            store.rename(1, " ")


class TestDelete:
    def test_returns_removed_record(self, store):
        store.create("A")
        store.create("B")
        removed = store.delete("2")
        assert removed["name"] == "B"
        assert [r["id"] for r in store.list()] == [1]

    def test_unknown_id(self, store):
        with pytest.raises(RecordNotFound):
            store.delete(1)


class TestQueries:
    def test_list_returns_copies(self, store):
        store.create("A")
        store.list()[0]["name"] = "changed"
        store.get(1)["name"] = "changed"
        assert store.get(1)["name"] == "A"

    def test_get_missing(self, store):
        assert store.get(99) is None

    @pytest.mark.parametrize("key", [1, "1", " 1", "01", 1.0])
    def test_id_lookup_accepts_numeric_forms(self, store, key):
        store.create("A")
        assert store.get(key)["name"] == "A"

    @pytest.mark.parametrize("key", ["abc", "1.5", None, True, 1.5])
    def test_id_lookup_rejects_non_integers(self, store, key):
        store.create("A")
        assert store.get(key) is None


class TestPersistence:
    def test_reload_from_disk(self, store, data_file):
        store.create("Maryam")
        store.update(1, 304)
        reloaded = ReaderStore(data_file)
        assert reloaded.list() == [{"id": 1, "name": "Maryam", "currentPage": 304}]

    def test_non_ascii_written_as_is(self, store, data_file):
        store.create("مريم")
        assert "مريم" in data_file.read_text(encoding="utf-8")

    def test_missing_file_starts_empty(self, data_file):
        assert not data_file.exists()
        assert ReaderStore(data_file).list() == []

    def test_malformed_file_is_logged_and_ignored(self, data_file, caplog):
        data_file.write_text("{not json", encoding="utf-8")
        with caplog.at_level(logging.ERROR):
            store = ReaderStore(data_file)
        assert store.list() == []
        assert "Failed to load" in caplog.text

    def test_non_list_file_ignored(self, data_file):
        data_file.write_text('{"id": 1}', encoding="utf-8")
        assert ReaderStore(data_file).list() == []

    def test_bad_entries_skipped(self, data_file):
        data_file.write_text(
            json.dumps([{"id": 1, "name": "A", "currentPage": 3}, "junk", {"name": "no id"}]),
            encoding="utf-8",
        )
        assert [r["id"] for r in ReaderStore(data_file).list()] == [1]

    def test_string_ids_from_file_become_ints(self, data_file):
        data_file.write_text(
            json.dumps([{"id": "1", "name": "A", "currentPage": 5}, {"id": 4.0, "name": "B", "currentPage": 9}]),
            encoding="utf-8",
        )
        store = ReaderStore(data_file)
        assert [r["id"] for r in store.list()] == [1, 4]

        new = store.create("C")
        assert new["id"] == 5
        assert store.get(new["id"])["name"] == "C"
        assert store.get(1)["name"] == "A"

    def test_duplicate_ids_keep_first(self, data_file, caplog):
        data_file.write_text(
            json.dumps([{"id": 2, "name": "A", "currentPage": 5}, {"id": "2", "name": "B", "currentPage": 9}]),
            encoding="utf-8",
        )
        with caplog.at_level(logging.WARNING):
            store = ReaderStore(data_file)
        assert store.list() == [{"id": 2, "name": "A", "currentPage": 5}]
        assert "duplicate id 2" in caplog.text

    def test_save_failure_is_logged_and_state_kept(self, tmp_path, caplog):
        target = tmp_path / "users.json"
        target.mkdir()
        store = ReaderStore(target)
        with caplog.at_level(logging.ERROR):
            record = store.create("A")
        assert record["id"] == 1
        assert len(store) == 1
        assert "Failed to save" in caplog.text
        assert [p.name for p in tmp_path.iterdir()] == ["users.json"]


class TestParsePage:
    @pytest.mark.parametrize("value, expected", [(1, 1), (604, 604), ("7", 7), (" 8 ", 8), (9.0, 9)])
    def test_valid(self, value, expected):
        assert parse_page(value) == expected
