"""Tests for the per-format content extractor."""

from __future__ import annotations

from pathlib import Path

import docx
import openpyxl
import pytest
from conftest import write_file

from filechat.ingestion import ContentExtractor


@pytest.fixture
def extractor() -> ContentExtractor:
    return ContentExtractor()


def test_plain_text_formats_are_read(extractor: ContentExtractor, tmp_path: Path) -> None:
    notes = write_file(tmp_path / "notes.md", "# Budget\nRent 1200")
    table = write_file(tmp_path / "data.csv", "a,b\n1,2\n")

    assert extractor.extract(notes, "md") == "# Budget\nRent 1200"
    assert extractor.extract(table, ".CSV") == "a,b\n1,2\n"


def test_docx_paragraphs_are_joined(extractor: ContentExtractor, tmp_path: Path) -> None:
    path = tmp_path / "letter.docx"
    document = docx.Document()
    document.add_paragraph("Dear tenant,")
    document.add_paragraph("The rent increases in May.")
    document.save(str(path))

    text = extractor.extract(path, "docx")

    assert text is not None
    assert "Dear tenant," in text
    assert "The rent increases in May." in text


def test_xlsx_rows_are_comma_joined(extractor: ContentExtractor, tmp_path: Path) -> None:
    path = tmp_path / "budget.xlsx"
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.append(["item", "amount"])
    sheet.append(["rent", 1200])
    workbook.save(str(path))

    text = extractor.extract(path, "xlsx")

    assert text is not None
    assert "item,amount" in text
    assert "rent,1200" in text


@pytest.mark.parametrize("extension", ["doc", "xls", "ppt"])
def test_legacy_formats_yield_nothing(
    extractor: ContentExtractor, tmp_path: Path, extension: str
) -> None:
    path = write_file(tmp_path / f"old.{extension}", "binary-ish")

    assert not extractor.supports(extension)
    assert extractor.extract(path, extension) is None


def test_corrupt_document_yields_nothing(extractor: ContentExtractor, tmp_path: Path) -> None:
    path = write_file(tmp_path / "broken.pdf", "this is not a pdf")

    assert extractor.extract(path, "pdf") is None
    assert extractor.extract(write_file(tmp_path / "broken.docx", "nope"), "docx") is None


def test_blank_text_yields_nothing(extractor: ContentExtractor, tmp_path: Path) -> None:
    path = write_file(tmp_path / "empty.txt", "   \n\t")

    assert extractor.extract(path, "txt") is None
