"""Organizational context documents: text extraction and context assembly."""
import io
import re
from pathlib import Path

import structlog

from .errors import DocumentError
from .models import MAX_TEXT_LENGTH, ContextDocument

logger = structlog.get_logger()

MAX_FILE_SIZE = 10 * 1024 * 1024
MAX_CONTEXT_LENGTH = 150_000
TRUNCATION_MARKER = "\n\n[Content truncated due to length...]"
CONTEXT_BANNER = "ORGANIZATIONAL CONTEXT DOCUMENTS:"

SUPPORTED_EXTENSIONS = {
    "txt": "Text Files",
    "md": "Markdown",
    "rtf": "RTF",
    "pdf": "PDF Documents",
    "docx": "Word Documents (.docx)",
}


def _extract_from_pdf(content: bytes) -> str:
    """Extract text from a PDF file."""
    from pypdf import PdfReader

    try:
        reader = PdfReader(io.BytesIO(content))
        text_parts = [page_text for page in reader.pages if (page_text := page.extract_text())]
    except Exception as e:
        logger.error("PDF extraction failed", error=str(e))
        raise DocumentError(f"Failed to extract text from PDF: {e}") from e

    text = "\n\n".join(text_parts)
    logger.info("PDF text extracted", pages=len(reader.pages), chars=len(text))
    return text


def _extract_from_docx(content: bytes) -> str:
    """Extract paragraphs and table rows from a DOCX file."""
    from docx import Document

    try:
        doc = Document(io.BytesIO(content))
    except Exception as e:
        logger.error("DOCX extraction failed", error=str(e))
        raise DocumentError(f"Failed to extract text from Word document: {e}") from e

    text_parts = [para.text for para in doc.paragraphs if para.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                text_parts.append(" | ".join(cells))

    text = "\n\n".join(text_parts)
    logger.info("DOCX text extracted", paragraphs=len(doc.paragraphs), chars=len(text))
    return text


def _extract_from_rtf(content: bytes) -> str:
    """Strip RTF control words and braces."""
    text = content.decode("utf-8", errors="ignore")
    text = re.sub(r"\\[a-z]+\d*\s?", "", text)
    text = re.sub(r"[{}]", "", text)
    return re.sub(r"\s+", " ", text).strip()


def truncate_text(text: str, limit: int = MAX_TEXT_LENGTH) -> str:
    """Cut text so that text plus the truncation marker fits in limit."""
    if len(text) <= limit:
        return text
    return text[: limit - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


def extract_document(content: bytes, file_name: str) -> ContextDocument:
    """Turn an uploaded file into a bounded ContextDocument."""
    ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
    if ext not in SUPPORTED_EXTENSIONS:
        supported = ", ".join(SUPPORTED_EXTENSIONS.values())
        raise DocumentError(f"File type not supported. Supported types: {supported}")
    if len(content) > MAX_FILE_SIZE:
        raise DocumentError(
            f"File size exceeds limit. Maximum size: {MAX_FILE_SIZE // 1024 // 1024}MB"
        )

    if ext == "pdf":
        text = _extract_from_pdf(content)
    elif ext == "docx":
        text = _extract_from_docx(content)
    elif ext == "rtf":
        text = _extract_from_rtf(content)
    else:
        text = content.decode("utf-8", errors="ignore")

    if len(text) > MAX_TEXT_LENGTH:
        logger.warning("Document text truncated", file_name=file_name, chars=len(text))
        text = truncate_text(text)

    return ContextDocument(file_name=file_name, extracted_text=text, size_bytes=len(content))


def load_document(path: Path) -> ContextDocument:
    """Read a document from disk."""
    return extract_document(path.read_bytes(), path.name)


def assemble_context(documents: list[ContextDocument]) -> str:
    """Concatenate documents into one labeled context blob.

    Documents are already bounded individually. A document that would push
    the blob past the total budget is dropped whole.
    """
    if not documents:
        return ""

    blocks = []
    total = 0
    for doc in documents:
        block = f"=== {doc.file_name} ===\n{doc.extracted_text}\n"
        if total + len(block) > MAX_CONTEXT_LENGTH:
            logger.warning(
                "Context budget reached, dropping document",
                file_name=doc.file_name,
                budget=MAX_CONTEXT_LENGTH,
            )
            continue
        blocks.append(block)
        total += len(block)

    if not blocks:
        return ""
    return f"{CONTEXT_BANNER}\n\n" + "\n".join(blocks)


def context_summary(documents: list[ContextDocument]) -> str:
    """Short human-readable listing of the uploaded documents."""
    if not documents:
        return ""
    plural = "s" if len(documents) > 1 else ""
    lines = [f"{len(documents)} document{plural} uploaded for context:"]
    lines.extend(f"• {doc.file_name} ({doc.size_bytes / 1024:.1f}KB)" for doc in documents)
    return "\n".join(lines)
