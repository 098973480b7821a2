"""Tests for IgnoreMatcher."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from docseek.utils.ignore import IGNORE_FILENAME, IgnoreMatcher


@pytest.fixture
def root(tmp_path: Path) -> Path:
    (tmp_path / IGNORE_FILENAME).write_text("# comment\n*.log\nbuild/\nsecret.txt\n!keep.log\n")
    return tmp_path.resolve()


class TestIsIgnored:
    """Pattern matching against the ignore file."""

    def test_glob_pattern(self, root: Path) -> None:
        matcher = IgnoreMatcher.from_root(root)
        assert matcher.is_ignored(root / "debug.log")
        assert matcher.is_ignored(root / "nested" / "deep" / "trace.log")

    def test_negated_pattern(self, root: Path) -> None:
        matcher = IgnoreMatcher.from_root(root)
        assert not matcher.is_ignored(root / "keep.log")

    def test_directory_pattern(self, root: Path) -> None:
        matcher = IgnoreMatcher.from_root(root)
        assert matcher.is_ignored(root / "build", is_dir=True)
        assert matcher.is_ignored(root / "build" / "output.txt")
        assert not matcher.is_ignored(root / "src" / "build.txt")

    def test_plain_name(self, root: Path) -> None:
        matcher = IgnoreMatcher.from_root(root)
        assert matcher.is_ignored(root / "secret.txt")
        assert not matcher.is_ignored(root / "public.txt")

    def test_path_outside_root(self, root: Path, tmp_path_factory) -> None:
        other = tmp_path_factory.mktemp("elsewhere")
        matcher = IgnoreMatcher.from_root(root)
        assert not matcher.is_ignored(other / "debug.log")

    def test_root_itself_not_ignored(self, root: Path) -> None:
        matcher = IgnoreMatcher.from_root(root)
        assert not matcher.is_ignored(root, is_dir=True)

    def test_missing_ignore_file(self, tmp_path: Path) -> None:
        """Without an ignore file nothing is excluded."""
        matcher = IgnoreMatcher.from_root(tmp_path)
        assert matcher.initialized
        assert not matcher.is_ignored(tmp_path / "debug.log")

    def test_custom_filename(self, tmp_path: Path) -> None:
        (tmp_path / ".myignore").write_text("*.md\n")
        matcher = IgnoreMatcher.from_root(tmp_path, ".myignore")
        assert matcher.is_ignored(tmp_path / "README.md")


class TestInitialization:
    """Lifecycle and failure behaviour."""

    def test_first_init_wins(self, root: Path, tmp_path_factory) -> None:
        other = tmp_path_factory.mktemp("second")
        (other / IGNORE_FILENAME).write_text("*.txt\n")

        matcher = IgnoreMatcher()
        matcher.init(root)
        matcher.init(other)

        assert matcher.root == root
        assert matcher.is_ignored(root / "debug.log")
        assert not matcher.is_ignored(other / "file.txt")

    def test_uninitialized_fails_open(self, tmp_path: Path, caplog) -> None:
        matcher = IgnoreMatcher()
        with caplog.at_level(logging.WARNING, logger="docseek.utils.ignore"):
            assert not matcher.is_ignored(tmp_path / "debug.log")
            assert not matcher.is_ignored(tmp_path / "other.log")

        warnings = [record for record in caplog.records if record.levelno == logging.WARNING]
        assert len(warnings) == 1

    def test_fail_open_warning_once_across_threads(self, tmp_path: Path) -> None:
        matcher = IgnoreMatcher()
        barrier = threading.Barrier(8)

        def check() -> None:
            barrier.wait()
            for _ in range(50):
                matcher.is_ignored(tmp_path / "debug.log")

        with patch("docseek.utils.ignore.LOGGER") as mock_logger:
            threads = [threading.Thread(target=check) for _ in range(8)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        mock_logger.warning.assert_called_once()

    def test_build_failure_fails_open(self, root: Path, caplog) -> None:
        with patch(
            "docseek.utils.ignore.pathspec.GitIgnoreSpec.from_lines",
            side_effect=ValueError("invalid pattern"),
        ):
            with caplog.at_level(logging.WARNING, logger="docseek.utils.ignore"):
                matcher = IgnoreMatcher.from_root(root)

        assert matcher.initialized
        assert not matcher.is_ignored(root / "debug.log")
        assert "Could not parse" in caplog.text
