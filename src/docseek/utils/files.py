"""Utility helpers for working with files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

PLAIN_TEXT_EXTENSIONS = frozenset(
    {
        "txt", "md", "mdx", "rst", "tex",
        "rs", "js", "jsx", "ts", "tsx", "vue", "svelte",
        "py", "go", "java", "kt", "kts", "gradle", "dart",
        "c", "h", "hpp", "hh", "cpp", "cc", "cxx", "cs",
        "rb", "php", "pl", "lua", "nim", "r", "erl", "ex", "exs",
        "html", "htm", "css", "scss", "less",
        "json", "toml", "yaml", "yml", "ini", "cfg", "conf", "properties",
        "sh", "bash", "zsh", "fish", "sql",
    }
)
XML_EXTENSIONS = frozenset({"xml", "xhtml"})
PDF_EXTENSIONS = frozenset({"pdf"})

SUPPORTED_EXTENSIONS = PLAIN_TEXT_EXTENSIONS | XML_EXTENSIONS | PDF_EXTENSIONS


def extension_of(path: Path) -> str:
    """Lowercased extension without the leading dot."""
    return path.suffix[1:].lower()


def is_supported(path: Path) -> bool:
    return extension_of(path) in SUPPORTED_EXTENSIONS


def is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


def iter_file_paths(inputs: Iterable[Path]) -> Iterator[Path]:
    """Yield regular files from input paths, descending into directories."""
    for item in inputs:
        if item.is_dir():
            yield from sorted(child for child in item.rglob("*") if child.is_file())
        elif item.is_file():
            yield item
