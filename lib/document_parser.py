"""Resume document parsing: format detection and text extraction."""

import asyncio
import logging
from io import BytesIO
import re
from typing import Iterable, Union

import pdfplumber
from docx import Document


logger = logging.getLogger(__name__)


async def extract_text_from_pdf_stream(
    file_stream: Union[BytesIO, bytes, bytearray, memoryview],
) -> str:
    """Return normalized text from a PDF stream without blocking the event loop."""
    stream = _prepare_stream(file_stream)
    return await asyncio.to_thread(_extract_pdf_text_sync, stream)


async def extract_text_from_docx_stream(
    file_stream: Union[BytesIO, bytes, bytearray, memoryview],
) -> str:
    """Return normalized text from a DOCX stream, including table cells, without blocking the event loop."""
    stream = _prepare_stream(file_stream)
    return await asyncio.to_thread(_extract_docx_text_sync, stream)


def _extract_pdf_text_sync(file_stream: BytesIO) -> str:
    """Sync PDF parsing used behind the async wrapper."""
    chunks: list[str] = []

    with pdfplumber.open(file_stream) as pdf:
        for idx, page in enumerate(pdf.pages, start=1):
            try:
                page_text = page.extract_text() or ""
            except Exception as exc:  # pragma: no cover - pdfplumber internals
                logger.warning("Skipping unreadable PDF page %s: %s", idx, exc)
                continue
            if page_text:
                chunks.append(page_text)

    text = _normalize_text(chunks)
    if not text:
        logger.info("PDF contained no extractable text")
    return text


def _extract_docx_text_sync(file_stream: BytesIO) -> str:
    """Sync DOCX parsing used behind the async wrapper."""
    doc = Document(file_stream)
    text = _normalize_text(_iter_docx_text(doc))
    if not text:
        logger.info("DOCX contained no extractable text")
    return text


def _iter_docx_text(doc: Document) -> Iterable[str]:
    for para in doc.paragraphs:
        if para.text:
            yield para.text

    for table in doc.tables:
        for row in table.rows:
            for cell in row.cells:
                if cell.text:
                    yield cell.text


def _normalize_text(chunks: Iterable[str]) -> str:
    """Trim, collapse whitespace, and join text chunks with stable line breaks."""
    cleaned: list[str] = []
    for chunk in chunks:
        stripped = chunk.strip()
        if stripped:
            cleaned.append(stripped)

    if not cleaned:
        return ""

    text = "\n".join(cleaned)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def _prepare_stream(
    file_stream: Union[BytesIO, bytes, bytearray, memoryview],
) -> BytesIO:
    if isinstance(file_stream, (bytes, bytearray, memoryview)):
        stream = BytesIO(file_stream)
    else:
        stream = file_stream

    if stream.closed:
        raise ValueError("file_stream is closed")

    stream.seek(0)
    return stream


# ==================== Resume uploads ===================== #
PDF_MAGIC = b"%PDF"
ZIP_MAGIC = b"PK\x03\x04"
OLE_MAGIC = bytes.fromhex("D0CF11E0A1B11AE1")
TEXT_SAMPLE_SIZE = 1000
PRINTABLE_RATIO = 0.8


class UnsupportedDocument(ValueError):
    """The upload is not a resume format we can read, or contained no text."""


def detect_file_type(data: bytes) -> str:
    """
    Identify an upload from its leading bytes, ignoring its file name.

    Returns one of ``pdf``, ``docx``, ``doc``, ``txt`` or ``unknown``. Plain
    text is assumed when more than 80% of the first 1000 bytes are printable.
    """
    if not data:
        return "unknown"
    if data.startswith(PDF_MAGIC):
        return "pdf"
    if data.startswith(ZIP_MAGIC):
        return "docx"
    if data.startswith(OLE_MAGIC):
        return "doc"

    sample = data[:TEXT_SAMPLE_SIZE]
    printable = sum(1 for byte in sample if 32 <= byte <= 126 or byte in (9, 10, 13))
    if printable / len(sample) > PRINTABLE_RATIO:
        return "txt"
    return "unknown"


def _decode_text(data: bytes) -> str:
    for encoding in ("utf-8", "utf-16"):
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    return data.decode("latin-1")


async def extract_resume_text(data: bytes) -> tuple[str, str]:
    """
    Detect the format and extract text.

    Returns:
        ``(file_type, text)``

    Raises:
        UnsupportedDocument: unknown format, legacy .doc, unreadable file or
            no extractable text. An empty result is never returned.
    """
    file_type = detect_file_type(data)

    if file_type == "unknown":
        raise UnsupportedDocument("Unsupported file format. Upload a PDF, DOCX or TXT resume")
    if file_type == "doc":
        raise UnsupportedDocument(
            "Legacy .doc files cannot be read. Please save the resume as DOCX or PDF"
        )

    try:
        if file_type == "pdf":
            text = await extract_text_from_pdf_stream(data)
        elif file_type == "docx":
            text = await extract_text_from_docx_stream(data)
        else:
            text = _normalize_text(_decode_text(data).splitlines())
    except UnsupportedDocument:
        raise
    except Exception as exc:
        logger.warning("Failed to extract %s resume text: %s", file_type, exc)
        raise UnsupportedDocument(f"Could not read the {file_type.upper()} file") from exc

    if not text:
        raise UnsupportedDocument(f"No text could be extracted from the {file_type.upper()} file")
    return file_type, text
