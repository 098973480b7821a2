"""Text extraction for the supported file formats.

Plain text and source files are read as UTF-8, XML keeps character data only
and PDFs go through PyMuPDF (fitz). Every failure surfaces as
:class:`~docseek.errors.ExtractionError` so the pipeline can skip the file.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable, Dict, Iterator

import fitz  # PyMuPDF

from docseek.errors import ExtractionError
from docseek.utils.files import PDF_EXTENSIONS, PLAIN_TEXT_EXTENSIONS, XML_EXTENSIONS, extension_of
from docseek.utils.text import normalize_whitespace

LOGGER = logging.getLogger(__name__)


def extract_plain_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ExtractionError(f"could not read {path}: {exc}") from exc


def extract_xml_text(path: Path) -> str:
    """Join the character data of an XML document with spaces."""
    parts = []
    try:
        for _, element in ET.iterparse(path, events=("end",)):
            if element.text and element.text.strip():
                parts.append(element.text.strip())
            if element.tail and element.tail.strip():
                parts.append(element.tail.strip())
    except (OSError, ET.ParseError, LookupError, ValueError) as exc:
        raise ExtractionError(f"could not parse {path}: {exc}") from exc
    return " ".join(parts)


def iter_pdf_pages(path: Path) -> Iterator[str]:
    """Yield the text of a PDF page by page."""
    try:
        doc = fitz.open(path)
    except Exception as exc:
        raise ExtractionError(f"could not open PDF {path}: {exc}") from exc

    try:
        for index in range(len(doc)):
            try:
                text = doc[index].get_text() or ""
            except Exception as exc:
                LOGGER.warning("Failed to read page %s in %s: %s", index, path, exc)
                continue
            normalized = normalize_whitespace(text.splitlines())
            if normalized:
                yield normalized
    finally:
        doc.close()


def extract_pdf_text(path: Path) -> str:
    return " ".join(iter_pdf_pages(path))


_EXTRACTORS: Dict[str, Callable[[Path], str]] = {
    **{ext: extract_plain_text for ext in PLAIN_TEXT_EXTENSIONS},
    **{ext: extract_xml_text for ext in XML_EXTENSIONS},
    **{ext: extract_pdf_text for ext in PDF_EXTENSIONS},
}


def extract_text(path: Path) -> str:
    """Return the textual content of ``path``, dispatching on its extension."""
    extractor = _EXTRACTORS.get(extension_of(path))
    if extractor is None:
        raise ExtractionError(f"unsupported file type: {path}")
    return extractor(path)
