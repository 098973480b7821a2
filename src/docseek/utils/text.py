"""Text helpers: tokenization, per-document term statistics and previews."""

from __future__ import annotations

import re
from typing import Dict, Iterable, Iterator, List, Tuple

from nltk.stem.snowball import SnowballStemmer

# Maximal runs of Unicode letters and digits; underscore counts as a delimiter.
_WORD_RE = re.compile(r"[^\W_]+")

_STEMMER = SnowballStemmer("english")

SearchData = Tuple[int, Dict[str, int], Dict[str, List[int]]]


def stem(word: str) -> str:
    """Lowercase and stem a single alphanumeric run."""
    return _STEMMER.stem(word.lower())


def iter_tokens(text: str) -> Iterator[str]:
    """Yield normalized tokens from text lazily.

    Any non-alphanumeric character acts as a delimiter. Each run is
    case-folded and reduced with the Snowball English stemmer.
    """
    for match in _WORD_RE.finditer(text):
        token = stem(match.group(0))
        if token:
            yield token


def tokenize(text: str) -> List[str]:
    return list(iter_tokens(text))


def compute_search_data(text: str) -> SearchData:
    """Return ``(count, tf, positions)`` for text in a single pass."""
    count = 0
    tf: Dict[str, int] = {}
    positions: Dict[str, List[int]] = {}
    for offset, token in enumerate(iter_tokens(text)):
        tf[token] = tf.get(token, 0) + 1
        positions.setdefault(token, []).append(offset)
        count += 1
    return count, tf, positions


def find_preview_line(lines: Iterable[str], query: str) -> str:
    """Pick a line to show next to a search hit.

    Prefers the first line containing one of the query words
    (case-insensitive), then the first non-empty line.
    """
    words = [word for word in query.lower().split() if word]
    fallback = ""
    for line in lines:
        stripped = line.strip()
        if not stripped:
            continue
        if not fallback:
            fallback = stripped
        lowered = stripped.lower()
        if any(word in lowered for word in words):
            return stripped
    return fallback


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Collapse whitespace and join lines."""
    return "\n".join(line.strip() for line in lines if line.strip())
