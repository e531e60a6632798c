"""Plain-text extraction for the allow-listed document formats."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol

import docx
import openpyxl
from pptx import Presentation
from PyPDF2 import PdfReader

LOGGER = logging.getLogger(__name__)


class TextExtractor(Protocol):
    """Anything that returns usable text for a file, or ``None``."""

    def extract(self, path: Path, extension: str) -> Optional[str]: ...


def _read_pdf(path: Path) -> str:
    reader = PdfReader(str(path))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def _read_docx(path: Path) -> str:
    document = docx.Document(str(path))
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def _read_xlsx(path: Path) -> str:
    workbook = openpyxl.load_workbook(str(path), read_only=True, data_only=True)
    try:
        lines: list[str] = []
        for sheet in workbook.worksheets:
            for row in sheet.iter_rows(values_only=True):
                lines.append(",".join("" if cell is None else str(cell) for cell in row))
            lines.append("")
        return "\n".join(lines)
    finally:
        workbook.close()


def _read_pptx(path: Path) -> str:
    presentation = Presentation(str(path))
    slides: list[str] = []
    for slide in presentation.slides:
        fragments = [
            shape.text_frame.text.strip()
            for shape in slide.shapes
            if shape.has_text_frame and shape.text_frame.text.strip()
        ]
        slides.append(" ".join(fragments))
    return "\n".join(slides)


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


class ContentExtractor:
    """Return extracted text for supported formats.

    Legacy binary formats (``doc``, ``xls``, ``ppt``) are recognized but yield
    no text, so the summarizer falls back to the file name.
    """

    def __init__(self) -> None:
        self._readers: Dict[str, Callable[[Path], str]] = {
            "pdf": _read_pdf,
            "docx": _read_docx,
            "xlsx": _read_xlsx,
            "pptx": _read_pptx,
            "txt": _read_text,
            "md": _read_text,
            "csv": _read_text,
        }

    def supports(self, extension: str) -> bool:
        return extension.lower().lstrip(".") in self._readers

    def extract(self, path: Path, extension: str) -> Optional[str]:
        """Return the text of ``path`` or ``None`` when nothing usable is found.

        Args:
            path: File to read.
            extension: Extension declared by the index, with or without a dot.

        Returns:
            Optional[str]: Extracted text, or ``None`` for unsupported formats,
            blank documents, and documents that fail to parse.
        """
        reader = self._readers.get(extension.lower().lstrip("."))
        if reader is None:
            LOGGER.debug("No text reader for %s", path.name)
            return None
        try:
            text = reader(path)
        except Exception as exc:  # parsers raise a wide range of format errors
            LOGGER.debug("Extraction failed for %s: %s", path.name, exc)
            return None
        if not text or not text.strip():
            LOGGER.debug("No text extracted from %s", path.name)
            return None
        LOGGER.debug("Extracted %d chars from %s", len(text), path.name)
        return text


__all__ = ["ContentExtractor", "TextExtractor"]
