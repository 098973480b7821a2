"""Parallel incremental indexing pipeline."""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock
from typing import Callable, List, Optional, Sequence

from docseek.errors import ExtractionError
from docseek.index.storage import DocumentIndex
from docseek.ingestion.extractors import extract_text
from docseek.utils.files import is_hidden, is_supported, iter_file_paths
from docseek.utils.ignore import IgnoreMatcher
from docseek.utils.text import compute_search_data

LOGGER = logging.getLogger(__name__)

INDEXED = "indexed"
CURRENT = "current"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass(slots=True)
class IndexStats:
    indexed: int = 0
    current: int = 0
    skipped: int = 0
    failed: int = 0
    processed_files: List[Path] = field(default_factory=list)
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def increment(self, status: str, path: Path) -> None:
        with self._lock:
            if status == INDEXED:
                self.indexed += 1
                self.processed_files.append(path)
            elif status == CURRENT:
                self.current += 1
            elif status == SKIPPED:
                self.skipped += 1
            else:
                self.failed += 1


class Indexer:
    """Brings a :class:`DocumentIndex` up to date with files on disk.

    Extraction and tokenization run unlocked on a thread pool; the index is
    only touched for the staleness check and the final commit.
    """

    def __init__(
        self,
        index: DocumentIndex,
        ignore: IgnoreMatcher | None = None,
        *,
        workers: Optional[int] = None,
        extractor: Callable[[Path], str] = extract_text,
    ) -> None:
        self.store = index
        self.ignore = ignore if ignore is not None else IgnoreMatcher()
        self.workers = workers
        self.extractor = extractor

    def index_folder(self, root: Path) -> IndexStats:
        """Index every candidate file below ``root``."""
        root = Path(root).resolve()
        self.ignore.init(root)
        return self.index(list(iter_file_paths([root])))

    def index(self, paths: Sequence[Path]) -> IndexStats:
        stats = IndexStats()
        if not paths:
            LOGGER.warning("No files found")
            return stats

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = {executor.submit(self._index_single, Path(path)): Path(path) for path in paths}
            for future in concurrent.futures.as_completed(futures):
                stats.increment(future.result(), futures[future])

        LOGGER.info(
            "Indexed %d files (%d current, %d skipped, %d failed)",
            stats.indexed, stats.current, stats.skipped, stats.failed,
        )
        return stats

    def should_skip(self, path: Path) -> bool:
        return self.ignore.is_ignored(path, False) or is_hidden(path) or not is_supported(path)

    def _index_single(self, path: Path) -> str:
        if self.should_skip(path):
            return SKIPPED

        try:
            mtime = path.stat().st_mtime
        except OSError as exc:
            LOGGER.error("Could not get metadata for %s: %s", path, exc)
            return FAILED

        key = str(path.absolute())
        if not self.store.requires_reindexing(key, mtime):
            return CURRENT

        try:
            text = self.extractor(path)
        except ExtractionError as exc:
            LOGGER.warning("Skipping %s: %s", path, exc)
            return FAILED

        count, tf, positions = compute_search_data(text)
        self.store.add_document(key, mtime, count, tf, positions)
        LOGGER.debug("Indexed %s (%d tokens)", path, count)
        return INDEXED
