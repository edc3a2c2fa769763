"""Persistent operator selections: source identifier -> canonical names."""

from __future__ import annotations

import json
import os
import tempfile
import threading
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import structlog

from logomatch.exceptions import SelectionPersistError
from logomatch.types import ReconcileResult

KeyResolver = Callable[[str], "str | None"]


def _dedupe(names: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            out.append(name)
    return out


def positional_resolver(listing: Sequence[str]) -> KeyResolver:
    """Resolver for data keyed by position in ``listing``.

    Keys that already name a live item resolve to themselves. Integer keys
    resolve to the item at that position, anything else to None.
    """
    live = set(listing)

    def resolve(key: str) -> str | None:
        if key in live:
            return key
        try:
            position = int(key)
        except ValueError:
            return None
        if 0 <= position < len(listing):
            return listing[position]
        return None

    return resolve


def write_json_atomic(path: Path, data: object) -> None:
    """Write JSON next to ``path`` and rename over it.

    A failure leaves whatever was at ``path`` before untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


@dataclass
class SelectionStore:
    """Selections keyed by source identifier, flushed to disk on every change.

    The file holds a plain JSON object ``{"<source>": ["<NAME>", ...]}``.
    Older files keyed by list position load unchanged and can be migrated
    with :meth:`reconcile`.
    """

    path: Path
    selections: dict[str, list[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.log = structlog.get_logger()
        if isinstance(self.path, str):
            self.path = Path(self.path)
        self._lock = threading.RLock()

    def load(self) -> None:
        """Load selections from disk."""
        if not self.path.exists():
            self.log.info("selections_file_not_found", path=str(self.path))
            self.selections = {}
            return

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            backup = self.path.with_name(
                f"{self.path.name}.corrupt-{datetime.now(timezone.utc):%Y%m%dT%H%M%S}"
            )
            self.path.replace(backup)
            self.log.error("selections_load_error", error=str(e), moved_to=str(backup))
            self.selections = {}
            return

        self.selections = self._parse(data)
        self.log.info("selections_loaded", count=len(self.selections))

    def _parse(self, data: object) -> dict[str, list[str]]:
        if not isinstance(data, dict):
            self.log.error("selections_bad_shape", type=type(data).__name__)
            return {}
        parsed: dict[str, list[str]] = {}
        for key, names in data.items():
            if not isinstance(names, list):
                self.log.warning("selections_bad_entry", key=key)
                continue
            cleaned = _dedupe(str(n) for n in names if isinstance(n, str) and n)
            if cleaned:
                parsed[str(key)] = cleaned
        return parsed

    def save(self) -> None:
        """Save selections to disk, keeping the previous file on failure."""
        try:
            write_json_atomic(self.path, self.selections)
        except OSError as e:
            self.log.error("selections_save_failed", path=str(self.path), error=str(e))
            raise SelectionPersistError(f"could not save selections to {self.path}: {e}") from e
        self.log.debug("selections_saved", count=len(self.selections))

    def _commit(self, updated: dict[str, list[str]]) -> None:
        previous = self.selections
        self.selections = updated
        try:
            self.save()
        except SelectionPersistError:
            self.selections = previous
            raise

    def set(self, key: str, names: Iterable[str]) -> list[str]:
        """Replace the selection for ``key``. An empty selection removes the key."""
        cleaned = _dedupe(names)
        with self._lock:
            if self.selections.get(key, []) == cleaned:
                return cleaned
            updated = dict(self.selections)
            if cleaned:
                updated[key] = cleaned
            else:
                updated.pop(key, None)
            self._commit(updated)
        self.log.info("selection_set", key=key, names=cleaned)
        return cleaned

    def remove(self, key: str, name: str) -> bool:
        """Drop ``name`` from ``key``'s selection. Missing key or name is a no-op."""
        with self._lock:
            current = self.selections.get(key)
            if not current or name not in current:
                return False
            remaining = [n for n in current if n != name]
            updated = dict(self.selections)
            if remaining:
                updated[key] = remaining
            else:
                del updated[key]
            self._commit(updated)
        self.log.info("selection_removed", key=key, name=name)
        return True

    def reconcile(self, resolver: KeyResolver) -> ReconcileResult:
        """Re-key every stored selection through ``resolver``.

        Keys resolving to a different key are moved (merging with any
        selection already there), keys resolving to None are dropped.
        Nothing is written when no key changes.
        """
        result = ReconcileResult()
        with self._lock:
            updated: dict[str, list[str]] = {}
            for key, names in self.selections.items():
                target = resolver(key)
                if target is None:
                    result.dropped += 1
                    self.log.info("reconcile_drop", key=key, names=names)
                    continue
                if target == key:
                    result.unchanged += 1
                else:
                    result.fixed += 1
                    self.log.debug("reconcile_fix", key=key, target=target)
                updated[target] = _dedupe([*updated.get(target, []), *names])

            if result.changed:
                self._commit(updated)

        self.log.info(
            "reconcile_done",
            fixed=result.fixed,
            dropped=result.dropped,
            unchanged=result.unchanged,
        )
        return result

    def prune(self, known_names: set[str]) -> int:
        """Drop canonical names that are not in the catalog. Returns how many."""
        dropped = 0
        with self._lock:
            updated: dict[str, list[str]] = {}
            for key, names in self.selections.items():
                kept = [n for n in names if n in known_names]
                dropped += len(names) - len(kept)
                if kept:
                    updated[key] = kept
            if dropped:
                self._commit(updated)
        if dropped:
            self.log.warning("selections_pruned", dropped=dropped)
        return dropped

    def get(self, key: str) -> list[str]:
        return list(self.selections.get(key, []))

    def snapshot(self) -> dict[str, list[str]]:
        with self._lock:
            return {k: list(v) for k, v in self.selections.items()}

    def export(self, path: str | Path) -> Path:
        """Write a verbatim copy of the current selections to ``path``."""
        path = Path(path)
        write_json_atomic(path, self.snapshot())
        self.log.info("selections_exported", path=str(path), count=len(self.selections))
        return path

    def restore(self, path: str | Path) -> int:
        """Replace all selections with an exported snapshot."""
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        with self._lock:
            self._commit(self._parse(data))
        self.log.info("selections_restored", path=str(path), count=len(self.selections))
        return len(self.selections)

    def __contains__(self, key: object) -> bool:
        return key in self.selections

    def __len__(self) -> int:
        return len(self.selections)
