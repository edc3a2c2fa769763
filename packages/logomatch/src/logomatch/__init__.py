"""logomatch - Resolve logo filenames to catalog schools and rename them."""

from logomatch.cache import ResultCache
from logomatch.config import RenameConfig
from logomatch.executor import BatchExecutor
from logomatch.index import CatalogIndex
from logomatch.matcher import Matcher, MatcherStats, search
from logomatch.selections import SelectionStore, positional_resolver
from logomatch.session import PromptCache, ResolutionSession
from logomatch.types import BatchReport, Candidate, CatalogEntry, ReconcileResult

__all__ = [
    "BatchExecutor",
    "BatchReport",
    "Candidate",
    "CatalogEntry",
    "CatalogIndex",
    "Matcher",
    "MatcherStats",
    "PromptCache",
    "ReconcileResult",
    "RenameConfig",
    "ResolutionSession",
    "ResultCache",
    "SelectionStore",
    "positional_resolver",
    "search",
]
