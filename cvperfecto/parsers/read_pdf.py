# cvperfecto/parsers/read_pdf.py
import io
import logging
import re
from typing import List

import fitz  # PyMuPDF
from pdfminer.high_level import extract_text as pdfminer_extract_text
from pdfminer.layout import LAParams
from pypdf import PdfReader

logger = logging.getLogger(__name__)

# --- Content stream syntax ---
TEXT_OBJECT = re.compile(rb"BT(.*?)ET", re.DOTALL)
LITERAL_STRING = rb"\((?:[^()\\]|\\.|\((?:[^()\\]|\\.)*\))*\)"
SHOW_TEXT = re.compile(rb"(" + LITERAL_STRING + rb")\s*(?:Tj|'|\")")
SHOW_TEXT_ARRAY = re.compile(rb"\[(.*?)\]\s*TJ", re.DOTALL)
ARRAY_PIECES = re.compile(rb"(" + LITERAL_STRING + rb")")
ARRAY_KERN_GAP = -200  # TJ offsets wider than this read as a word break

ESCAPES = {
    b"n": b"\n",
    b"r": b"\r",
    b"t": b"\t",
    b"b": b"\b",
    b"f": b"\f",
    b"(": b"(",
    b")": b")",
    b"\\": b"\\",
}
ESCAPE_SEQUENCE = re.compile(rb"\\([0-7]{1,3}|.)", re.DOTALL)

NON_PRINTABLE = re.compile(r"[^\x20-\x7E]")
SHORT_WORDS = re.compile(r"\b\w{1,2}\b")
WHITESPACE = re.compile(r"\s+")


def decode_literal_string(raw: bytes) -> str:
    """Decode a PDF literal string body (without the outer parentheses)."""

    def _unescape(match: "re.Match[bytes]") -> bytes:
        token = match.group(1)
        if token[:1].isdigit():
            return bytes([int(token, 8) & 0xFF])
        if token in (b"\n", b"\r"):
            return b""  # line continuation
        return ESCAPES.get(token, token)

    return ESCAPE_SEQUENCE.sub(_unescape, raw).decode("utf-8", errors="replace")


def _text_from_content_stream(stream: bytes) -> List[str]:
    fragments: List[str] = []
    for block in TEXT_OBJECT.findall(stream):
        for literal in SHOW_TEXT.findall(block):
            fragments.append(decode_literal_string(literal[1:-1]))
        for array_body in SHOW_TEXT_ARRAY.findall(block):
            word = ""
            for piece in ARRAY_PIECES.split(array_body):
                piece = piece.strip()
                if not piece:
                    continue
                if piece.startswith(b"("):
                    word += decode_literal_string(piece[1:-1])
                    continue
                for token in piece.split():
                    try:
                        if float(token) < ARRAY_KERN_GAP:
                            word += " "
                    except ValueError:
                        continue
            if word:
                fragments.append(word)
    return fragments


# --- Strategy 1: raw content streams ---
def extract_text_from_content_streams(pdf_bytes: bytes) -> str:
    """
    Read each page's decompressed content stream and collect the operands
    of the text-showing operators inside BT ... ET blocks.
    """
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    fragments: List[str] = []
    try:
        for page_num in range(len(doc)):
            page = doc.load_page(page_num)
            try:
                stream = page.read_contents()
            except Exception as e:
                logger.debug("Could not read content stream of page %d: %s", page_num + 1, e)
                continue
            if stream:
                fragments.extend(_text_from_content_stream(stream))
    finally:
        doc.close()
    return " ".join(fragment for fragment in fragments if fragment.strip()).strip()


# --- Strategy 2: pypdf ---
def extract_text_with_pypdf(pdf_bytes: bytes) -> str:
    reader = PdfReader(io.BytesIO(pdf_bytes))
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n".join(pages).strip()


# --- Strategy 3: pdfminer layout interpreter ---
def extract_text_with_pdfminer(pdf_bytes: bytes) -> str:
    return pdfminer_extract_text(io.BytesIO(pdf_bytes), laparams=LAParams()).strip()


# --- Strategy 4: PyMuPDF text layer ---
def extract_text_from_pdf_fitz_plain(pdf_bytes: bytes) -> str:
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    try:
        full_text_parts = []
        for page_num in range(len(doc)):
            page = doc.load_page(page_num)
            full_text_parts.append(page.get_text("text"))
        return "\n".join(full_text_parts)
    finally:
        doc.close()


# --- Strategy 5: positioned words ---
def extract_text_from_pdf_words(pdf_bytes: bytes) -> str:
    """Last resort: word boxes joined with spaces, one line per page. Blank pages give ""."""
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    try:
        pages = []
        for page in doc:
            words = [word[4] for word in page.get_text("words")]
            if words:
                pages.append(" ".join(words))
        return "\n".join(pages)
    finally:
        doc.close()


# --- Raw buffer fallbacks used when extracted text is unusable ---
METADATA_PATTERNS = [
    re.compile(r"/Title\s*\(([^)]+)\)"),
    re.compile(r"/Author\s*\(([^)]+)\)"),
    re.compile(r"/Subject\s*\(([^)]+)\)"),
    re.compile(r"/Keywords\s*\(([^)]+)\)"),
    re.compile(r"/Creator\s*\(([^)]+)\)"),
]
READABLE_RUNS = [
    re.compile(r"\(([A-Za-z0-9\s@.\-_]+)\)"),
    re.compile(r"\[([A-Za-z0-9\s@.\-_]+)\]"),
    re.compile(r"([A-Za-z]{3,})"),
]


def _clean_raw_text(text: str) -> str:
    text = NON_PRINTABLE.sub(" ", text)
    text = WHITESPACE.sub(" ", text)
    text = SHORT_WORDS.sub("", text)
    return WHITESPACE.sub(" ", text).strip()


def extract_text_from_pdf_metadata(pdf_bytes: bytes) -> str:
    """Document info strings plus readable word runs found in the raw bytes."""
    try:
        raw = pdf_bytes.decode("latin-1")
        parts: List[str] = []
        for pattern in METADATA_PATTERNS:
            parts.extend(match.group(0) for match in pattern.finditer(raw))
        for pattern in READABLE_RUNS:
            parts.extend(
                match.group(0)
                for match in pattern.finditer(raw)
                if len(match.group(0)) > 2
                and "/" not in match.group(0)
                and "\\" not in match.group(0)
            )
        return _clean_raw_text(" ".join(parts))
    except Exception as e:
        logger.warning("Metadata extraction failed: %s", e)
        return ""

