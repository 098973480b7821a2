"""Query interface over the document index."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from docseek.config import MIN_SCORE
from docseek.errors import ExtractionError
from docseek.index.storage import DocumentIndex
from docseek.ingestion.extractors import extract_text
from docseek.utils.text import find_preview_line, tokenize

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SearchResult:
    path: Path
    score: float
    preview: str = ""


def read_preview(path: Path, query: str) -> str:
    try:
        text = extract_text(path)
    except ExtractionError as exc:
        LOGGER.debug("No preview for %s: %s", path, exc)
        return ""
    return find_preview_line(text.splitlines(), query)


class Searcher:
    """High-level API to query the document index."""

    def __init__(self, index: DocumentIndex) -> None:
        self.index = index

    def rank(self, query: str) -> List[tuple[str, float]]:
        """Raw ``(path, score)`` pairs, best first. Blank queries match nothing."""
        if not query.strip():
            return []
        return self.index.search(tokenize(query))

    def search(
        self,
        query: str,
        *,
        top_k: Optional[int] = None,
        min_score: float = MIN_SCORE,
        with_preview: bool = False,
    ) -> List[SearchResult]:
        results: List[SearchResult] = []
        for path, score in self.rank(query):
            if score < min_score:
                continue
            results.append(SearchResult(path=Path(path), score=score))
            if top_k is not None and len(results) >= top_k:
                break

        if with_preview:
            for result in results:
                result.preview = read_preview(result.path, query)
        return results
