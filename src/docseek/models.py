"""Core docseek data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(slots=True)
class Document:
    """Term statistics for a single indexed file."""

    count: int
    tf: Dict[str, int]
    last_modified: float
    positions: Dict[str, List[int]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "tf": self.tf,
            "last_modified": self.last_modified,
            "positions": self.positions,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        return cls(
            count=int(data["count"]),
            tf={str(token): int(freq) for token, freq in data["tf"].items()},
            last_modified=float(data["last_modified"]),
            positions={
                str(token): [int(offset) for offset in offsets]
                for token, offsets in (data.get("positions") or {}).items()
            },
        )


@dataclass(slots=True)
class IndexSummary:
    """Aggregate numbers describing the corpus."""

    document_count: int
    token_count: int
    vocabulary_size: int
