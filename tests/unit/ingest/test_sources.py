"""Tests for document loading and comment stripping."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pypdf

from quarry.ingest.sources import (
    DocumentLoader,
    extract_pdf_text,
    load_document,
    load_documents,
    strip_comment_lines,
)
from quarry.models import Document


def _write_blank_pdf(path: Path, pages: int = 1) -> None:
    writer = pypdf.PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    with path.open("wb") as fh:
        writer.write(fh)


# ------------------------------------------------------------------
# strip_comment_lines
# ------------------------------------------------------------------


def test_strip_comment_lines_removes_hash_lines():
    text = "# Title\nReal content.\n   # indented comment\nMore content."
    assert strip_comment_lines(text) == "Real content.\nMore content."


def test_strip_comment_lines_keeps_inline_hash():
    assert strip_comment_lines("Issue #42 is fixed.") == "Issue #42 is fixed."


def test_strip_comment_lines_custom_prefix():
    assert strip_comment_lines("// note\nkeep", prefix="//") == "keep"


def test_strip_comment_lines_empty_prefix_is_noop():
    assert strip_comment_lines("# keep", prefix="") == "# keep"


# ------------------------------------------------------------------
# load_document / load_documents
# ------------------------------------------------------------------


def test_load_text_document(tmp_path):
    f = tmp_path / "notes.md"
    f.write_text("Some notes.", encoding="utf-8")
    assert load_document(f) == Document(source="notes.md", text="Some notes.")


def test_load_latin1_text_replaces_undecodable_bytes(tmp_path):
    (tmp_path / "good.txt").write_text("Plain menu.", encoding="utf-8")
    (tmp_path / "legacy.txt").write_bytes(b"Caf\xe9 menu")

    docs = load_documents(tmp_path)

    assert [d.source for d in docs] == ["good.txt", "legacy.txt"]
    assert docs[1].text == "Caf\ufffd menu"


def test_load_unsupported_extension_skipped(tmp_path):
    f = tmp_path / "image.png"
    f.write_bytes(b"\x89PNG")
    assert load_document(f) is None


def test_load_documents_missing_path_returns_empty(tmp_path):
    assert load_documents(tmp_path / "nope") == []


def test_load_documents_single_file(tmp_path):
    f = tmp_path / "kb.txt"
    f.write_text("Knowledge.", encoding="utf-8")
    docs = load_documents(f)
    assert [d.source for d in docs] == ["kb.txt"]


def test_load_documents_directory_sorted_and_filtered(tmp_path):
    (tmp_path / "b.txt").write_text("B", encoding="utf-8")
    (tmp_path / "a.md").write_text("A", encoding="utf-8")
    (tmp_path / "skip.bin").write_bytes(b"\x00")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "nested.txt").write_text("nested", encoding="utf-8")

    docs = load_documents(tmp_path)
    assert [d.source for d in docs] == ["a.md", "b.txt"]


# ------------------------------------------------------------------
# PDF
# ------------------------------------------------------------------


def test_blank_pdf_yields_empty_text(tmp_path):
    pdf = tmp_path / "blank.pdf"
    _write_blank_pdf(pdf, pages=2)
    assert extract_pdf_text(pdf) == ""
    assert load_document(pdf) == Document(source="blank.pdf", text="")


def test_pdf_pages_joined_as_paragraphs(tmp_path):
    pages = [MagicMock(), MagicMock(), MagicMock()]
    pages[0].extract_text.return_value = " Page one. "
    pages[1].extract_text.return_value = None
    pages[2].extract_text.return_value = "Page three."
    reader = MagicMock(pages=pages)

    with patch("quarry.ingest.sources.pypdf.PdfReader", return_value=reader):
        text = extract_pdf_text(tmp_path / "doc.pdf")

    assert text == "Page one.\n\nPage three."


def test_corrupt_pdf_skipped(tmp_path):
    bad = tmp_path / "bad.pdf"
    bad.write_bytes(b"this is not a pdf")
    (tmp_path / "good.txt").write_text("Good.", encoding="utf-8")

    docs = load_documents(tmp_path)
    assert [d.source for d in docs] == ["good.txt"]


# ------------------------------------------------------------------
# DocumentLoader
# ------------------------------------------------------------------


def test_document_loader_returns_raw_text(tmp_path):
    (tmp_path / "kb.txt").write_text("# comment\nBody.", encoding="utf-8")
    docs = DocumentLoader(tmp_path)()
    assert docs == [Document(source="kb.txt", text="# comment\nBody.")]
