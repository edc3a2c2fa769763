"""Shared fixtures for logomatch tests."""

import json
from pathlib import Path

import pytest

from logomatch.cache import ResultCache
from logomatch.config import SearchConfig
from logomatch.index import CatalogIndex
from logomatch.matcher import Matcher
from logomatch.types import CatalogEntry

SCHOOLS = [
    {"NAME": "LINCOLN HIGH", "CITY": "SEATTLE", "STATE": "WA", "WEBSITE": "https://www.lincolnhigh.org"},
    {"NAME": "ROOSEVELT HIGH", "CITY": "PORTLAND", "STATE": "OR"},
    {"NAME": "WASHINGTON MIDDLE", "CITY": "OLYMPIA", "STATE": "WA"},
    {
        "NAME": "MASSACHUSETTS INSTITUTE OF TECHNOLOGY",
        "CITY": "CAMBRIDGE",
        "STATE": "MA",
        "ALIAS": "MIT",
        "WEBSITE": "http://web.mit.edu",
    },
]


@pytest.fixture
def entries() -> list[CatalogEntry]:
    return [
        CatalogEntry(
            name=s["NAME"],
            city=s["CITY"],
            state=s["STATE"],
            alias=s.get("ALIAS"),
            website=s.get("WEBSITE"),
        )
        for s in SCHOOLS
    ]


@pytest.fixture
def index(entries: list[CatalogEntry]) -> CatalogIndex:
    return CatalogIndex.build(entries)


@pytest.fixture
def matcher(index: CatalogIndex) -> Matcher:
    return Matcher(index, SearchConfig(debounce_seconds=0.0), ResultCache())


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    path = tmp_path / "schools.json"
    path.write_text(json.dumps(SCHOOLS))
    return path


@pytest.fixture
def sources_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "logos"
    directory.mkdir()
    for name in ["LINCOLNHS.png", "ROOSEVELT.png", "ZZZZZZ.png"]:
        (directory / name).write_bytes(f"image:{name}".encode())
    (directory / "notes.txt").write_text("not a logo")
    return directory
