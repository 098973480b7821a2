"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from docseek.utils.ignore import IGNORE_FILENAME

SNAPSHOT_NAME = ".docseek.json"

# Hits scoring below this are dropped from search results.
MIN_SCORE = 0.001


@dataclass(slots=True)
class AppConfig:
    snapshot_path: Path | None = None
    ignore_filename: str = IGNORE_FILENAME
    workers: int | None = None
    host: str = "127.0.0.1"
    port: int = 6969
    top_k: int = 20
    min_score: float = MIN_SCORE

    def resolve_snapshot_path(self, root: Path) -> Path:
        """Snapshot location: inside ``root`` unless an absolute path was given."""
        if self.snapshot_path is None:
            return Path(root) / SNAPSHOT_NAME
        if Path(self.snapshot_path).is_absolute():
            return Path(self.snapshot_path)
        return Path(root) / self.snapshot_path
