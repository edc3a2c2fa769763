"""Configuration for the logomatch resolution and rename system."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class SearchConfig:
    keys: tuple[str, ...] = ("name", "website", "alias")
    threshold: float = 0.6  # candidates with a larger distance are dropped
    scorer: str = "WRatio"
    limit: int | None = None
    min_query_length: int = 3
    debounce_seconds: float = 0.5


@dataclass
class CacheConfig:
    max_size: int | None = None  # None keeps every query for the session


@dataclass
class PathsConfig:
    catalog: str = "data/schools.json"
    sources: str = "logos"
    output: str = "output"
    selections: str = "data/selections.json"
    prompts: str = ".logomatch_cache/prompts.json"
    extensions: tuple[str, ...] = (".png",)


@dataclass
class ExecutorConfig:
    max_workers: int | None = None
    reset_output: bool = True


@dataclass
class SessionConfig:
    max_workers: int | None = None


@dataclass
class RenameConfig:
    search: SearchConfig = field(default_factory=SearchConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    executor: ExecutorConfig = field(default_factory=ExecutorConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
