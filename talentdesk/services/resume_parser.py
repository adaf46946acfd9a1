"""
Resume text acquisition.

Best-effort extraction from uploaded resume bytes: PyMuPDF first, then a
heuristic scrape of the raw PDF bytes for text objects, emails, phone numbers
and plain words. Plain-text uploads are decoded directly.
"""
import base64
import binascii
import logging
import re
from typing import Optional

import fitz  # pymupdf

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"
MIN_EXTRACTED_CHARS = 50
MAX_SCRAPED_WORDS = 100

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_RE = re.compile(r"\+?[1-9]?[\d\s\-()]{7,15}")
TEXT_OBJECT_RE = re.compile(rb"\(((?:[^()\\]|\\.){2,})\)")
READABLE_RUN_RE = re.compile(r"[a-zA-Z0-9@._\-\s]{2,}")
WORD_RE = re.compile(r"\b[A-Za-z]{2,}\b")
PDF_KEYWORDS = re.compile(
    r"^(obj|endobj|stream|endstream|xref|trailer|startxref|pdf|type|font|page|pages|"
    r"catalog|length|filter|flatedecode|resources|mediabox|contents|parent|kids|count|"
    r"procset|encoding|basefont|subtype|xobject|extgstate|producer|creator)$",
    re.IGNORECASE,
)


class ResumeDecodeError(ValueError):
    """Stored resume is not valid base64."""


def is_pdf(data: bytes) -> bool:
    return data[:4] == PDF_MAGIC


def encode_resume(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_resume(resume_b64: str) -> bytes:
    try:
        return base64.b64decode(resume_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ResumeDecodeError("Stored resume is not valid base64") from e


def extract_pdf_text(data: bytes) -> str:
    """Extract text with PyMuPDF. Returns an empty string for unreadable PDFs."""
    try:
        with fitz.open(stream=data, filetype="pdf") as doc:
            return "".join(page.get_text() for page in doc).strip()
    except Exception as e:
        logger.warning(f"PyMuPDF could not read resume: {e}")
        return ""


def scrape_pdf_bytes(data: bytes) -> str:
    """
    Heuristic text recovery from raw PDF bytes.

    Collects uncompressed text objects, readable ASCII runs, email and phone
    patterns, and plain words that are not PDF structure keywords.
    """
    parts = []

    text_objects = [
        match.decode("latin-1").replace("\\(", "(").replace("\\)", ")")
        for match in TEXT_OBJECT_RE.findall(data)
    ]
    if text_objects:
        parts.append(" ".join(text_objects))

    ascii_text = data.decode("ascii", errors="ignore")
    runs = [run for run in READABLE_RUN_RE.findall(ascii_text) if run.strip()]
    if runs:
        parts.append(" ".join(runs))

    binary_text = data.decode("latin-1")
    emails = EMAIL_RE.findall(binary_text)
    if emails:
        parts.append(" ".join(emails))

    phones = [p.strip() for p in PHONE_RE.findall(binary_text) if re.search(r"\d{3,}", p)]
    if phones:
        parts.append(" ".join(phones))

    words = [
        word for word in WORD_RE.findall(binary_text)
        if 2 < len(word) < 50 and not PDF_KEYWORDS.match(word)
    ]
    if words:
        parts.append(" ".join(words[:MAX_SCRAPED_WORDS]))

    text = " ".join(parts)
    text = re.sub(r"[^\w\s@.+-]", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def scrape_is_usable(text: str) -> bool:
    """A scrape is usable when it found an email or more than a handful of words."""
    if "@" in text:
        return True
    return len([w for w in text.split(" ") if len(w) > 2]) > 5


def extract_resume_text(data: bytes) -> Optional[str]:
    """
    Recover resume text from uploaded bytes.

    Returns:
        Extracted text, or None when nothing usable could be recovered
    """
    if not data:
        return None

    if not is_pdf(data):
        text = data.decode("utf-8", errors="ignore").strip()
        return text or None

    text = extract_pdf_text(data)
    if len(text) >= MIN_EXTRACTED_CHARS:
        logger.debug(f"Resume text extracted with PyMuPDF: {len(text)} chars")
        return text

    scraped = scrape_pdf_bytes(data)
    if scrape_is_usable(scraped):
        logger.info(f"Resume text recovered by byte scraping: {len(scraped)} chars")
        return scraped

    logger.warning("Resume text extraction failed for all methods")
    return None
