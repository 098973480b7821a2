"""Ignore-file support for the indexing pipeline.

Patterns are read from a single gitignore-style file at the indexed root and
matched with :mod:`pathspec`. A matcher that was never initialized, or whose
patterns could not be built, ignores nothing.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

import pathspec

LOGGER = logging.getLogger(__name__)

IGNORE_FILENAME = ".docseekignore"


class IgnoreMatcher:
    """Yes/no exclusion decisions for paths below an indexed root."""

    def __init__(self, filename: str = IGNORE_FILENAME) -> None:
        self.filename = filename
        self.root: Path | None = None
        self._spec: pathspec.PathSpec | None = None
        self._initialized = False
        self._warned = False
        self._lock = threading.Lock()

    @classmethod
    def from_root(cls, root: Path, filename: str = IGNORE_FILENAME) -> "IgnoreMatcher":
        matcher = cls(filename)
        matcher.init(root)
        return matcher

    @property
    def initialized(self) -> bool:
        return self._initialized

    def init(self, root: Path) -> None:
        """Build the pattern set from ``root``. Only the first call has an effect."""
        with self._lock:
            if self._initialized:
                return
            self.root = Path(root).resolve()
            self._spec = self._build(self.root / self.filename)
            self._initialized = True

    def _build(self, ignore_file: Path) -> pathspec.PathSpec | None:
        if not ignore_file.is_file():
            return pathspec.GitIgnoreSpec.from_lines([])
        try:
            with ignore_file.open("r", encoding="utf-8") as handle:
                return pathspec.GitIgnoreSpec.from_lines(handle.read().splitlines())
        except (OSError, ValueError) as exc:
            LOGGER.warning("Could not parse %s, ignoring nothing: %s", ignore_file, exc)
            return None

    def is_ignored(self, path: Path, is_dir: bool = False) -> bool:
        spec = self._spec
        if spec is None or self.root is None:
            with self._lock:
                warn = not self._warned
                self._warned = True
            if warn:
                LOGGER.warning("Ignore rules unavailable, no paths will be excluded")
            return False

        try:
            relative = Path(path).resolve().relative_to(self.root)
        except ValueError:
            return False

        candidate = relative.as_posix()
        if candidate == ".":
            return False
        if is_dir:
            candidate += "/"
        return spec.match_file(candidate)
