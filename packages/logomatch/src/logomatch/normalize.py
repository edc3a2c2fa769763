"""Query, display and filename normalization."""

from __future__ import annotations

import re
import unicodedata
from pathlib import PurePath

from rapidfuzz.utils import default_process

# Word pattern: acronym runs before a capitalized word, capitalized words,
# bare uppercase runs, lowercase runs, digit runs and runs of other letters
# (scripts without ASCII case, e.g. CJK or Cyrillic)
_WORD_RE = re.compile(
    r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+|[^\W\d_A-Za-z]+"
)
_APOSTROPHES = ("'", "’")
_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://")
_EXT_RE = re.compile(r"\.[A-Za-z0-9]{1,5}")


def normalize_query(text: str) -> str:
    """Canonical cache/search form of a query: trimmed and uppercased."""
    return text.strip().upper()


def derive_query(identifier: str, extensions: tuple[str, ...] | None = None) -> str:
    """Turn a source identifier (a filename) into its query string.

    Only the directory part and a known extension are removed, so names like
    "ST. MARYS" keep their dots.
    """
    path = PurePath(identifier.strip())
    stem = path.name
    suffix = path.suffix
    if extensions is None:
        strip = bool(_EXT_RE.fullmatch(suffix))
    else:
        strip = suffix.lower() in {e.lower() for e in extensions}
    if suffix and strip:
        stem = stem[: -len(suffix)]
    return normalize_query(stem)


def _deburr(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def split_words(text: str) -> list[str]:
    s = _deburr(text)
    for apostrophe in _APOSTROPHES:
        s = s.replace(apostrophe, "")
    return _WORD_RE.findall(s)


def snake_case(text: str) -> str:
    """lower_snake_case form used for output filenames."""
    return "_".join(w.lower() for w in split_words(text))


def start_case(text: str) -> str:
    """Display form: "LINCOLN HIGH" -> "Lincoln High"."""
    return " ".join(w.capitalize() for w in split_words(text.lower()))


def reduce_website(url: str | None) -> str | None:
    """Strip scheme, "www." and any path so a domain compares like a name."""
    if not url:
        return None
    s = _SCHEME_RE.sub("", url.strip().lower())
    s = s.split("/", 1)[0]
    if s.startswith("www."):
        s = s[4:]
    return s or None


def index_text(value: str | None) -> str | None:
    """Processed form stored in the index; None for blank values."""
    if value is None:
        return None
    processed = default_process(value)
    return processed or None
