"""Tests for Indexer."""

import os
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from docseek.errors import ExtractionError, IndexCorruptedError
from docseek.index.indexer import CURRENT, FAILED, INDEXED, SKIPPED, Indexer, IndexStats
from docseek.index.search import Searcher
from docseek.index.storage import DocumentIndex
from docseek.utils.ignore import IGNORE_FILENAME, IgnoreMatcher


def _bump_mtime(path: Path, seconds: float = 10.0) -> None:
    stat = path.stat()
    os.utime(path, (stat.st_atime, stat.st_mtime + seconds))


@pytest.fixture
def tree(tmp_path):
    """Small folder with indexable, hidden, ignored and unsupported files."""
    root = tmp_path.resolve()
    (root / "a.txt").write_text("alpha beta gamma")
    (root / "docs").mkdir()
    (root / "docs" / "b.md").write_text("# Beta\nbeta delta")
    (root / ".hidden.txt").write_text("hidden words")
    (root / "image.png").write_bytes(b"\x89PNG")
    (root / "secret.txt").write_text("classified")
    (root / IGNORE_FILENAME).write_text("secret.txt\n")
    return root


class TestIndexStats:
    """Test IndexStats tracking."""

    def test_init_defaults(self):
        stats = IndexStats()
        assert stats.indexed == 0
        assert stats.current == 0
        assert stats.skipped == 0
        assert stats.failed == 0
        assert stats.processed_files == []

    def test_increment(self):
        stats = IndexStats()

        stats.increment(INDEXED, Path("/tmp/a.txt"))
        stats.increment(CURRENT, Path("/tmp/b.txt"))
        stats.increment(SKIPPED, Path("/tmp/c.txt"))
        stats.increment(FAILED, Path("/tmp/d.txt"))
        stats.increment("unknown_status", Path("/tmp/e.txt"))

        assert stats.indexed == 1
        assert stats.current == 1
        assert stats.skipped == 1
        assert stats.failed == 2
        assert stats.processed_files == [Path("/tmp/a.txt")]


class TestIndexer:
    """Test the indexing pipeline against real files."""

    def test_index_folder(self, tree):
        index = DocumentIndex()
        stats = Indexer(index, IgnoreMatcher(), workers=2).index_folder(tree)

        assert stats.indexed == 2
        assert stats.skipped == 4
        assert stats.failed == 0
        assert index.paths() == sorted([str(tree / "a.txt"), str(tree / "docs" / "b.md")])
        assert index.document_frequency("beta") == 2
        assert set(stats.processed_files) == {tree / "a.txt", tree / "docs" / "b.md"}

    def test_reindex_unchanged_is_idempotent(self, tree):
        index = DocumentIndex()
        indexer = Indexer(index, IgnoreMatcher())
        indexer.index_folder(tree)
        before = index.to_snapshot()

        stats = indexer.index_folder(tree)

        assert stats.indexed == 0
        assert stats.current == 2
        assert index.to_snapshot() == before

    def test_modified_file_is_reindexed(self, tree):
        index = DocumentIndex()
        indexer = Indexer(index, IgnoreMatcher())
        indexer.index_folder(tree)

        (tree / "a.txt").write_text("omega")
        _bump_mtime(tree / "a.txt")
        stats = indexer.index_folder(tree)

        assert stats.indexed == 1
        assert stats.current == 1
        assert index.get(tree / "a.txt").tf == {"omega": 1}
        assert index.document_frequency("alpha") == 0
        assert index.document_frequency("beta") == 1

    def test_extraction_failure_is_isolated(self, tree):
        (tree / "broken.txt").write_bytes(b"\xff\xfe\xfa")
        index = DocumentIndex()

        stats = Indexer(index, IgnoreMatcher()).index_folder(tree)

        assert stats.failed == 1
        assert stats.indexed == 2
        assert str(tree / "broken.txt") not in index

    def test_undecodable_xml_is_isolated(self, tmp_path):
        root = tmp_path.resolve()
        for number in range(5):
            (root / f"note{number}.txt").write_text(f"note number {number}")
        (root / "bad.xml").write_text('<?xml version="1.0" encoding="bogus"?><a>hi</a>')
        index = DocumentIndex()

        stats = Indexer(index, IgnoreMatcher(), workers=3).index_folder(root)

        assert stats.indexed == 5
        assert stats.failed == 1
        assert str(root / "bad.xml") not in index

    def test_store_does_not_shadow_index_method(self):
        index = DocumentIndex()
        indexer = Indexer(index)

        assert indexer.store is index
        assert indexer.index([]) == IndexStats()

    def test_custom_extractor_failure(self, tree):
        extractor = Mock(side_effect=ExtractionError("corrupt"))
        stats = Indexer(DocumentIndex(), IgnoreMatcher(), extractor=extractor).index_folder(tree)

        assert stats.failed == 2
        assert stats.indexed == 0

    def test_stat_failure_is_isolated(self, tmp_path):
        ghost = tmp_path / "ghost.txt"
        index = DocumentIndex()

        stats = Indexer(index, IgnoreMatcher.from_root(tmp_path)).index([ghost])

        assert stats.failed == 1
        assert len(index) == 0

    def test_index_corruption_propagates(self, tree):
        index = DocumentIndex()
        with patch.object(index, "add_document", side_effect=IndexCorruptedError("boom")):
            with pytest.raises(IndexCorruptedError):
                Indexer(index, IgnoreMatcher()).index_folder(tree)

    def test_empty_file_list(self):
        stats = Indexer(DocumentIndex()).index([])
        assert stats == IndexStats()

    def test_ignore_matcher_initialized_with_root(self, tree):
        ignore = IgnoreMatcher()
        Indexer(DocumentIndex(), ignore).index_folder(tree)

        assert ignore.initialized
        assert ignore.root == tree

    def test_unchanged_files_skip_extraction(self, tree):
        index = DocumentIndex()
        Indexer(index, IgnoreMatcher()).index_folder(tree)

        extractor = Mock(return_value="never used")
        stats = Indexer(index, IgnoreMatcher(), extractor=extractor).index_folder(tree)

        extractor.assert_not_called()
        assert stats.current == 2


class TestEndToEnd:
    """Index real files and search them."""

    def test_quick_fox_ranking(self, tmp_path):
        root = tmp_path.resolve()
        (root / "doc1.txt").write_text("the quick brown fox")
        (root / "doc2.txt").write_text("the lazy dog")
        (root / "doc3.txt").write_text("quick fox quick fox")
        index = DocumentIndex()
        Indexer(index, IgnoreMatcher()).index_folder(root)

        ranked = Searcher(index).rank("quick fox")

        assert [Path(path).name for path, _ in ranked] == ["doc3.txt", "doc1.txt", "doc2.txt"]
        scores = dict((Path(path).name, score) for path, score in ranked)
        assert scores["doc2.txt"] == pytest.approx(0.0)
        assert scores["doc3.txt"] > scores["doc1.txt"] > 0

    def test_snapshot_round_trip_after_indexing(self, tree, tmp_path_factory):
        index = DocumentIndex()
        Indexer(index, IgnoreMatcher()).index_folder(tree)
        snapshot_path = tmp_path_factory.mktemp("snap") / "index.json"
        index.save(snapshot_path)

        loaded = DocumentIndex.load(snapshot_path)

        for query in ("beta", "alpha gamma", "delta beta"):
            assert Searcher(loaded).rank(query) == Searcher(index).rank(query)
        assert Indexer(loaded, IgnoreMatcher()).index_folder(tree).indexed == 0
