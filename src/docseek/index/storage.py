"""In-memory inverted index with tf-idf ranking and JSON snapshots."""

from __future__ import annotations

import json
import logging
import math
import os
import tempfile
import threading
from bisect import bisect_left
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from docseek.errors import IndexCorruptedError, SnapshotError
from docseek.models import Document, IndexSummary

LOGGER = logging.getLogger(__name__)

FULL_COVERAGE_BOOST = 1.5
PARTIAL_COVERAGE_EXPONENT = 2.0
PHRASE_BOOST = 2.0


def compute_tf(token: str, doc: Document) -> float:
    if doc.count == 0:
        return 0.0
    return doc.tf.get(token, 0) / doc.count


def compute_idf(token: str, total_docs: int, df: Mapping[str, int]) -> float:
    if total_docs == 0:
        return 0.0
    return math.log10(total_docs / max(df.get(token, 1), 1))


def _contains(offsets: Sequence[int], target: int) -> bool:
    idx = bisect_left(offsets, target)
    return idx < len(offsets) and offsets[idx] == target


def phrase_in_document(tokens: Sequence[str], doc: Document) -> bool:
    """True when ``tokens`` occur contiguously and in order in ``doc``."""
    if not tokens or any(token not in doc.tf for token in tokens):
        return False
    rest = [doc.positions.get(token, []) for token in tokens[1:]]
    for start in doc.positions.get(tokens[0], []):
        if all(_contains(offsets, start + step) for step, offsets in enumerate(rest, 1)):
            return True
    return False


def score_document(tokens: Sequence[str], distinct: frozenset, doc: Document,
                   total_docs: int, df: Mapping[str, int]) -> float:
    score = sum(compute_tf(token, doc) * compute_idf(token, total_docs, df) for token in tokens)

    if len(distinct) > 1:
        present = sum(1 for token in distinct if token in doc.tf)
        coverage = present / len(distinct)
        if coverage >= 1.0:
            score *= FULL_COVERAGE_BOOST
        else:
            score *= coverage ** PARTIAL_COVERAGE_EXPONENT

    if len(tokens) > 1 and phrase_in_document(tokens, doc):
        score *= PHRASE_BOOST
    return score


class DocumentIndex:
    """Corpus of per-document term statistics guarded by a single lock.

    Every public method acquires the lock itself, so searches never observe a
    half-replaced document. A failure while the corpus is being mutated
    poisons the index; all later calls raise :class:`IndexCorruptedError`.
    """

    def __init__(self) -> None:
        self._docs: Dict[str, Document] = {}
        self._df: Dict[str, int] = {}
        self._lock = threading.Lock()
        self._poisoned = False
        self._save_lock = threading.Lock()

    @contextmanager
    def _reading(self) -> Iterator[None]:
        with self._lock:
            self._check_poisoned()
            yield

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            self._check_poisoned()
            try:
                yield
            except Exception as exc:
                self._poisoned = True
                LOGGER.critical("Index mutation failed, index is no longer usable: %s", exc)
                raise IndexCorruptedError("index mutation was interrupted") from exc

    def _check_poisoned(self) -> None:
        if self._poisoned:
            raise IndexCorruptedError("index was left inconsistent by an earlier failure")

    @property
    def poisoned(self) -> bool:
        return self._poisoned

    def __len__(self) -> int:
        with self._reading():
            return len(self._docs)

    def __contains__(self, path: object) -> bool:
        with self._reading():
            return str(path) in self._docs

    def paths(self) -> List[str]:
        with self._reading():
            return sorted(self._docs)

    def get(self, path: str | Path) -> Optional[Document]:
        with self._reading():
            return self._docs.get(str(path))

    def document_frequency(self, token: str) -> int:
        with self._reading():
            return self._df.get(token, 0)

    def stats(self) -> IndexSummary:
        with self._reading():
            return IndexSummary(
                document_count=len(self._docs),
                token_count=sum(doc.count for doc in self._docs.values()),
                vocabulary_size=len(self._df),
            )

    def requires_reindexing(self, path: str | Path, mtime: float) -> bool:
        with self._reading():
            doc = self._docs.get(str(path))
            return doc is None or doc.last_modified < mtime

    def _unwind(self, path: str) -> bool:
        doc = self._docs.pop(path, None)
        if doc is None:
            return False
        for token in doc.tf:
            remaining = self._df.get(token, 0) - 1
            if remaining > 0:
                self._df[token] = remaining
            else:
                self._df.pop(token, None)
        return True

    def add_document(
        self,
        path: str | Path,
        mtime: float,
        count: int,
        tf: Dict[str, int],
        positions: Dict[str, List[int]],
    ) -> None:
        """Replace any stored statistics for ``path`` with the given ones."""
        key = str(path)
        with self.transaction():
            self._unwind(key)
            self._docs[key] = Document(
                count=count,
                tf=dict(tf),
                last_modified=mtime,
                positions={token: list(offsets) for token, offsets in positions.items()},
            )
            for token in tf:
                self._df[token] = self._df.get(token, 0) + 1

    def remove_document(self, path: str | Path) -> bool:
        with self.transaction():
            return self._unwind(str(path))

    def remove_missing_files(self) -> int:
        """Evict documents whose files no longer exist."""
        with self.transaction():
            missing = [path for path in self._docs if not Path(path).exists()]
            for path in missing:
                self._unwind(path)
        if missing:
            LOGGER.info("Removed %d documents for vanished files", len(missing))
        return len(missing)

    def search(self, query_tokens: Sequence[str]) -> List[Tuple[str, float]]:
        """Rank every document against ``query_tokens``, best first."""
        tokens = list(query_tokens)
        if not tokens:
            return []
        distinct = frozenset(tokens)
        results: List[Tuple[str, float]] = []
        with self._reading():
            total_docs = len(self._docs)
            for path, doc in self._docs.items():
                score = score_document(tokens, distinct, doc, total_docs, self._df)
                if math.isfinite(score):
                    results.append((path, score))
        results.sort(key=lambda item: (-item[1], item[0]))
        return results

    def to_snapshot(self) -> Dict[str, Any]:
        with self._reading():
            return {
                "docs": {path: doc.to_dict() for path, doc in self._docs.items()},
                "df": dict(self._df),
            }

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any]) -> "DocumentIndex":
        """Build an index from snapshot data, using it as-is."""
        index = cls()
        try:
            index._docs = {str(path): Document.from_dict(raw) for path, raw in data["docs"].items()}
            index._df = {str(token): int(freq) for token, freq in data["df"].items()}
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise SnapshotError(f"malformed index snapshot: {exc}") from exc
        return index

    def save(self, snapshot_path: Path) -> None:
        """Write the snapshot atomically: readers see the old file or the new one."""
        snapshot_path = Path(snapshot_path)
        LOGGER.info("Saving %s...", snapshot_path)
        with self._save_lock:
            data = self.to_snapshot()
            fd, tmp_name = tempfile.mkstemp(
                dir=snapshot_path.parent, prefix=f".{snapshot_path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(data, handle, ensure_ascii=False)
                os.replace(tmp_name, snapshot_path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

    @classmethod
    def load(cls, snapshot_path: Path) -> "DocumentIndex":
        snapshot_path = Path(snapshot_path)
        try:
            with snapshot_path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            raise SnapshotError(f"could not read index snapshot {snapshot_path}: {exc}") from exc
        return cls.from_snapshot(data)

    @classmethod
    def load_or_create(cls, snapshot_path: Path) -> "DocumentIndex":
        if Path(snapshot_path).exists():
            return cls.load(snapshot_path)
        return cls()
