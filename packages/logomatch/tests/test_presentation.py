"""Tests for candidate labels, severity bands and the terminal presenter."""

import io

import pytest

from logomatch.presentation import (
    TerminalPresenter,
    build_request,
    format_label,
    parse_selection,
    severity,
)
from logomatch.types import Candidate, CatalogEntry, Choice, DisambiguationRequest


@pytest.mark.parametrize(
    "score, expected",
    [
        (0.0, "high"),
        (0.0999, "high"),
        (0.1, "medium"),
        (0.2, "low"),
        (0.3, "uncertain"),
        (0.7499, "uncertain"),
        (0.75, "very_low"),
        (1.0, "very_low"),
    ],
)
def test_severity_breakpoints(score, expected):
    assert severity(score) == expected


def test_format_label():
    candidate = Candidate(entry=CatalogEntry("LINCOLN HIGH", "SEATTLE", "WA"), score=0.23809)
    assert format_label(candidate) == "Lincoln High | Seattle, WA | 0.2381"


def test_format_label_without_location():
    candidate = Candidate(entry=CatalogEntry("LINCOLN HIGH"), score=0.0)
    assert format_label(candidate) == "Lincoln High |  | 0.0000"


def test_build_request_dedupes_names():
    candidates = [
        Candidate(entry=CatalogEntry("LINCOLN HIGH", "SEATTLE", "WA"), score=0.0, position=0),
        Candidate(entry=CatalogEntry("LINCOLN HIGH", "TACOMA", "WA"), score=0.0, position=1),
        Candidate(entry=CatalogEntry("ROOSEVELT HIGH", "PORTLAND", "OR"), score=0.4, position=2),
    ]

    request = build_request("LINCOLNHS.png", candidates)

    assert request.id == "LINCOLNHS.png"
    assert request.message == "Which school(s) match 'LINCOLNHS.png'?"
    assert [c.value for c in request.choices] == ["LINCOLN HIGH", "ROOSEVELT HIGH"]
    assert "Seattle" in request.choices[0].label


def test_build_request_empty():
    assert build_request("ZZZZZZ.png", []).choices == []


@pytest.mark.parametrize(
    "text, count, expected",
    [
        ("1", 3, [0]),
        ("1,3", 3, [0, 2]),
        (" 2 - 3 ", 3, [1, 2]),
        ("3,1,3", 3, [2, 0]),
        ("4", 3, None),
        ("0", 3, None),
        ("a", 3, None),
        ("1-", 3, None),
    ],
)
def test_parse_selection(text, count, expected):
    assert parse_selection(text, count) == expected


def _requests() -> list[DisambiguationRequest]:
    return [
        DisambiguationRequest(
            id="a.png",
            message="Which school(s) match 'a.png'?",
            choices=[Choice("A | X, Y | 0.0000", "A"), Choice("B | X, Y | 0.1000", "B")],
        ),
        DisambiguationRequest(id="empty.png", message="Which school(s) match 'empty.png'?"),
        DisambiguationRequest(
            id="c.png",
            message="Which school(s) match 'c.png'?",
            choices=[Choice("C | X, Y | 0.0000", "C")],
        ),
    ]


class TestTerminalPresenter:
    def test_scripted_answers(self):
        answers = iter(["1,2", "1"])
        out = io.StringIO()
        presenter = TerminalPresenter(input_fn=lambda prompt: next(answers), out=out)

        decisions = list(presenter.present(_requests()))

        assert decisions == [("a.png", ["A", "B"]), ("c.png", ["C"])]
        assert "no matching schools" in out.getvalue()
        assert "[1/3] Which school(s) match 'a.png'?" in out.getvalue()

    def test_blank_answer_skips(self):
        answers = iter(["", "1"])
        presenter = TerminalPresenter(input_fn=lambda prompt: next(answers), out=io.StringIO())

        assert list(presenter.present(_requests())) == [("c.png", ["C"])]

    def test_invalid_answer_reprompts(self):
        answers = iter(["9", "2", ""])
        out = io.StringIO()
        presenter = TerminalPresenter(input_fn=lambda prompt: next(answers), out=out)

        assert list(presenter.present(_requests())) == [("a.png", ["B"])]
        assert "invalid selection '9'" in out.getvalue()

    def test_shows_current_selection(self):
        answers = iter(["", ""])
        out = io.StringIO()
        presenter = TerminalPresenter(
            input_fn=lambda prompt: next(answers), out=out, preselected={"a.png": ["A"]}
        )

        list(presenter.present(_requests()))

        assert "current: A" in out.getvalue()
