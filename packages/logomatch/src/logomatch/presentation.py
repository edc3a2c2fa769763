"""Candidate display helpers and the terminal presenter."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Protocol, TextIO

from logomatch.normalize import start_case
from logomatch.types import Candidate, CatalogEntry, Choice, DisambiguationRequest, Severity

Decisions = Mapping[str, list[str]] | Iterable[tuple[str, list[str]]]


class Presenter(Protocol):
    """Shows disambiguation requests and reports the chosen values.

    May return a mapping of request id to chosen values, or yield
    ``(id, values)`` pairs as each decision is made.
    """

    def present(self, requests: list[DisambiguationRequest]) -> Decisions: ...


def severity(score: float) -> Severity:
    """Coarse confidence band for a distance score (lower is better)."""
    if score < 0.1:
        return "high"
    if score < 0.2:
        return "medium"
    if score < 0.3:
        return "low"
    if score >= 0.75:
        return "very_low"
    return "uncertain"


SEVERITY_COLORS: dict[str, str] = {
    "high": "green",
    "medium": "yellow",
    "low": "orange",
    "very_low": "red",
    "uncertain": "blue",
}


def format_location(entry: CatalogEntry) -> str:
    city = start_case(entry.city)
    return f"{city}, {entry.state}".strip(" ,")


def format_label(candidate: Candidate) -> str:
    return " | ".join(
        [
            start_case(candidate.entry.name),
            format_location(candidate.entry),
            f"{candidate.score:.4f}",
        ]
    )


def build_request(identifier: str, candidates: list[Candidate]) -> DisambiguationRequest:
    choices: list[Choice] = []
    seen: set[str] = set()
    for c in candidates:
        # Duplicate names share one canonical key, so only the best one is offered
        if c.entry.name in seen:
            continue
        seen.add(c.entry.name)
        choices.append(Choice(label=format_label(c), value=c.entry.name))
    return DisambiguationRequest(
        id=identifier,
        message=f"Which school(s) match '{identifier}'?",
        choices=choices,
    )


def parse_selection(text: str, count: int) -> list[int] | None:
    """Parse "1, 3-4" into zero-based indices. None means invalid input."""
    picked: list[int] = []
    for part in text.replace(" ", "").split(","):
        if not part:
            continue
        try:
            if "-" in part:
                lo, hi = (int(x) for x in part.split("-", 1))
                numbers = range(lo, hi + 1)
            else:
                numbers = range(int(part), int(part) + 1)
        except ValueError:
            return None
        for n in numbers:
            if not 1 <= n <= count:
                return None
            if n - 1 not in picked:
                picked.append(n - 1)
    return picked


class TerminalPresenter:
    """Sequential multi-select prompts on a text stream."""

    def __init__(
        self,
        input_fn: Callable[[str], str] | None = None,
        out: TextIO | None = None,
        preselected: Mapping[str, list[str]] | None = None,
    ) -> None:
        self.input_fn = input_fn or input
        self.out = out or sys.stdout
        self.preselected = preselected or {}

    def _print(self, text: str = "") -> None:
        print(text, file=self.out)

    def present(self, requests: list[DisambiguationRequest]) -> Iterator[tuple[str, list[str]]]:
        for number, request in enumerate(requests, start=1):
            self._print(f"\n[{number}/{len(requests)}] {request.message}")
            current = self.preselected.get(request.id, [])
            if current:
                self._print(f"  current: {', '.join(current)}")
            if not request.choices:
                self._print("  (no matching schools, skipped)")
                continue
            for i, choice in enumerate(request.choices, start=1):
                self._print(f"  {i:>3}. {choice.label}")

            while True:
                answer = self.input_fn("Select (e.g. 1,3 or 2-4; blank to skip): ").strip()
                if not answer:
                    break
                picked = parse_selection(answer, len(request.choices))
                if picked is None:
                    self._print(f"  invalid selection {answer!r}")
                    continue
                yield request.id, [request.choices[i].value for i in picked]
                break
