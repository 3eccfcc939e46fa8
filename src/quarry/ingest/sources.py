"""Document loading: plain text files and PDFs (page text via pypdf).

Source dispatch by extension:
  .txt .text .md .markdown  → read as UTF-8, undecodable bytes replaced
  .pdf                      → pypdf, page by page
  directory                 → its files, sorted by name (not recursive)

The loader never fails on a degenerate corpus: a missing path, an
unsupported file or an unreadable PDF is logged and skipped.
"""

from __future__ import annotations

from pathlib import Path

import pypdf
from loguru import logger
from pypdf.errors import PdfReadError

from quarry.models import Document

_TEXT_EXTS = {".txt", ".text", ".md", ".markdown"}
_PDF_EXTS = {".pdf"}
SUPPORTED_EXTENSIONS = _TEXT_EXTS | _PDF_EXTS


def strip_comment_lines(text: str, prefix: str = "#") -> str:
    """Drop lines whose first non-whitespace characters are *prefix*."""
    if not prefix:
        return text
    return "\n".join(
        line for line in text.split("\n") if not line.strip().startswith(prefix)
    )


def extract_pdf_text(path: Path) -> str:
    """Extract all page text from the PDF at *path*.

    Pages that yield no text (scanned images, etc.) are skipped; the rest
    are joined with a blank line so each page starts a new paragraph.
    """
    reader = pypdf.PdfReader(str(path))
    parts: list[str] = []
    for page in reader.pages:
        stripped = (page.extract_text() or "").strip()
        if stripped:
            parts.append(stripped)
    return "\n\n".join(parts)


def load_document(path: Path) -> Document | None:
    """Load a single file. Returns None for unsupported or unreadable files."""
    ext = path.suffix.lower()
    if ext in _TEXT_EXTS:
        return Document(source=path.name, text=path.read_text(encoding="utf-8", errors="replace"))
    if ext in _PDF_EXTS:
        try:
            text = extract_pdf_text(path)
        except PdfReadError as exc:
            logger.warning("Skipping unreadable PDF {}: {}", path, exc)
            return None
        return Document(source=path.name, text=text)
    logger.debug("Skipping unsupported file type {!r}: {}", ext, path)
    return None


def load_documents(path: Path | str) -> list[Document]:
    """Load every supported document at *path* (a file or a directory)."""
    root = Path(path)
    if not root.exists():
        logger.warning("Document source not found: {}", root)
        return []

    files = sorted(p for p in root.iterdir() if p.is_file()) if root.is_dir() else [root]

    documents: list[Document] = []
    for file in files:
        doc = load_document(file)
        if doc is not None:
            documents.append(doc)

    logger.info("Loaded {} document(s) from {}", len(documents), root)
    return documents


class DocumentLoader:
    """Callable document source for the knowledge base.

    Comment stripping happens in the knowledge base, so the loader returns
    document text exactly as stored.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def __call__(self) -> list[Document]:
        return load_documents(self.path)
