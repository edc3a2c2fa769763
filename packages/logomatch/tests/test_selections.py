"""Tests for persistent selections and key reconciliation."""

import json
from pathlib import Path

import pytest

from logomatch.exceptions import SelectionPersistError
from logomatch.selections import SelectionStore, positional_resolver


@pytest.fixture
def store(tmp_path: Path) -> SelectionStore:
    s = SelectionStore(path=tmp_path / "selections.json")
    s.load()
    return s


def _on_disk(store: SelectionStore) -> dict:
    return json.loads(store.path.read_text())


class TestLoadSave:
    def test_missing_file_starts_empty(self, store):
        assert len(store) == 0
        assert not store.path.exists()

    def test_set_flushes_immediately(self, store):
        store.set("LINCOLNHS.png", ["LINCOLN HIGH"])
        assert _on_disk(store) == {"LINCOLNHS.png": ["LINCOLN HIGH"]}

    def test_reload_round_trip(self, store):
        store.set("a.png", ["A", "B"])
        reloaded = SelectionStore(path=store.path)
        reloaded.load()
        assert reloaded.get("a.png") == ["A", "B"]

    def test_accepts_string_path(self, tmp_path):
        s = SelectionStore(path=str(tmp_path / "s.json"))
        assert isinstance(s.path, Path)

    def test_corrupt_file_is_moved_aside(self, tmp_path):
        path = tmp_path / "selections.json"
        path.write_text("{not json")

        s = SelectionStore(path=path)
        s.load()

        assert len(s) == 0
        assert not path.exists()
        assert len(list(tmp_path.glob("selections.json.corrupt-*"))) == 1

    def test_bad_entries_are_skipped(self, tmp_path):
        path = tmp_path / "selections.json"
        path.write_text(json.dumps({"a.png": ["A", "A", ""], "b.png": "B", "c.png": []}))

        s = SelectionStore(path=path)
        s.load()

        assert s.snapshot() == {"a.png": ["A"]}


class TestSetRemove:
    def test_set_dedupes_keeping_order(self, store):
        assert store.set("k", ["B", "A", "B"]) == ["B", "A"]

    def test_set_is_idempotent(self, store, monkeypatch):
        store.set("k", ["A"])
        calls = []
        monkeypatch.setattr(store, "save", lambda: calls.append(1))

        store.set("k", ["A"])

        assert calls == []
        assert store.get("k") == ["A"]

    def test_set_empty_removes_key(self, store):
        store.set("k", ["A"])
        store.set("k", [])
        assert "k" not in store
        assert _on_disk(store) == {}

    def test_remove_name(self, store):
        store.set("k", ["A", "B"])
        assert store.remove("k", "A") is True
        assert store.get("k") == ["B"]

    def test_remove_last_name_drops_key(self, store):
        store.set("k", ["A"])
        store.remove("k", "A")
        assert "k" not in store

    def test_remove_missing_is_noop(self, store):
        store.set("k", ["A"])
        assert store.remove("k", "Z") is False
        assert store.remove("nope", "A") is False
        assert store.get("k") == ["A"]

    def test_get_returns_copy(self, store):
        store.set("k", ["A"])
        store.get("k").append("B")
        assert store.get("k") == ["A"]


class TestPersistFailure:
    def test_failed_write_keeps_previous_state(self, store, monkeypatch):
        store.set("k", ["A"])

        def boom(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr("logomatch.selections.os.replace", boom)

        with pytest.raises(SelectionPersistError):
            store.set("k", ["B"])

        assert store.get("k") == ["A"]
        assert _on_disk(store) == {"k": ["A"]}
        assert list(store.path.parent.glob("*.tmp")) == []

    def test_failed_remove_rolls_back(self, store, monkeypatch):
        store.set("k", ["A", "B"])

        def boom(*args, **kwargs):
            raise OSError("read-only")

        monkeypatch.setattr("logomatch.selections.os.replace", boom)

        with pytest.raises(SelectionPersistError):
            store.remove("k", "A")

        assert store.get("k") == ["A", "B"]


class TestReconcile:
    def test_positional_keys_fixed_and_dropped(self, store):
        store.selections = {"0": ["A"], "1": ["B"]}

        result = store.reconcile(lambda key: "schoolX" if key == "0" else None)

        assert (result.fixed, result.dropped, result.unchanged) == (1, 1, 0)
        assert store.snapshot() == {"schoolX": ["A"]}
        assert _on_disk(store) == {"schoolX": ["A"]}

    def test_live_keys_unchanged_and_not_rewritten(self, store, monkeypatch):
        store.set("a.png", ["A"])
        calls = []
        monkeypatch.setattr(store, "save", lambda: calls.append(1))

        result = store.reconcile(positional_resolver(["a.png", "b.png"]))

        assert result.unchanged == 1
        assert not result.changed
        assert calls == []

    def test_collisions_merge(self, store):
        store.selections = {"0": ["A"], "a.png": ["B", "A"]}

        store.reconcile(positional_resolver(["a.png"]))

        assert store.get("a.png") == ["A", "B"]

    def test_reconcile_is_idempotent(self, store):
        store.selections = {"0": ["A"], "5": ["B"]}
        resolver = positional_resolver(["a.png", "b.png"])

        store.reconcile(resolver)
        second = store.reconcile(resolver)

        assert store.snapshot() == {"a.png": ["A"]}
        assert (second.fixed, second.dropped) == (0, 0)


class TestPositionalResolver:
    def test_resolves(self):
        resolve = positional_resolver(["a.png", "b.png"])
        assert resolve("a.png") == "a.png"
        assert resolve("1") == "b.png"
        assert resolve("2") is None
        assert resolve("-1") is None
        assert resolve("c.png") is None


class TestPruneExportRestore:
    def test_prune_unknown_names(self, store):
        store.set("a", ["A", "GONE"])
        store.set("b", ["GONE"])

        assert store.prune({"A"}) == 2
        assert store.snapshot() == {"a": ["A"]}

    def test_export_restore(self, store, tmp_path):
        store.set("a", ["A"])
        exported = store.export(tmp_path / "backup.json")
        store.set("a", ["Z"])
        store.set("b", ["B"])

        assert store.restore(exported) == 1
        assert store.snapshot() == {"a": ["A"]}
        assert _on_disk(store) == {"a": ["A"]}
