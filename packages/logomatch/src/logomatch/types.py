"""Core types for the logomatch catalog resolution system."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal


@dataclass(frozen=True)
class CatalogEntry:
    name: str
    city: str = ""
    state: str = ""
    alias: str | None = None
    website: str | None = None


@dataclass(frozen=True)
class Candidate:
    entry: CatalogEntry
    score: float  # distance: 0.0 is an exact match
    position: int = 0  # catalog position, only used as a tie-breaker
    matched_key: str = "name"


@dataclass
class Choice:
    label: str
    value: str


@dataclass
class DisambiguationRequest:
    id: str
    message: str
    choices: list[Choice] = field(default_factory=list)


@dataclass
class ReconcileResult:
    fixed: int = 0
    dropped: int = 0
    unchanged: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.fixed or self.dropped)


@dataclass(frozen=True)
class CopyOperation:
    source_key: str
    canonical_name: str
    src: Path
    dst: Path


@dataclass
class OperationResult:
    operation: CopyOperation
    ok: bool
    error: str | None = None


@dataclass
class BatchReport:
    results: list[OperationResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[OperationResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[OperationResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed


Severity = Literal["high", "medium", "low", "very_low", "uncertain"]
