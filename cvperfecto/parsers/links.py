# cvperfecto/parsers/links.py
import io
import logging
from typing import Any, Iterable, List, Optional

from docx import Document as DocxDocument
from docx.table import Table
from pypdf import PdfReader

logger = logging.getLogger(__name__)


def _dedupe(urls: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(url for url in urls if url))


def decode_pdf_uri(value: Any) -> Optional[str]:
    """Turn a /URI value (text, byte or hex string) into a plain str."""
    if value is None:
        return None
    if hasattr(value, "get_object"):
        value = value.get_object()
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8").strip()
        except UnicodeDecodeError:
            return value.decode("latin-1").strip()
    return str(value).strip()


def extract_urls_from_pdf_annotations(pdf_bytes: bytes) -> List[str]:
    """Targets of /Link annotations, in page order."""
    try:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        urls: List[str] = []
        for page in reader.pages:
            annots = page.get("/Annots")
            if annots is None:
                continue
            for ref in annots.get_object():
                annot = ref.get_object()
                if annot.get("/Subtype") != "/Link":
                    continue
                action = annot.get("/A")
                if action is not None:
                    uri = decode_pdf_uri(action.get_object().get("/URI"))
                    if uri:
                        urls.append(uri)
                uri = decode_pdf_uri(annot.get("/URI"))
                if uri:
                    urls.append(uri)
        return _dedupe(urls)
    except Exception as e:
        logger.warning("Could not read PDF link annotations: %s", e)
        return []


def extract_urls_from_docx(docx_bytes: bytes) -> List[str]:
    """Hyperlink targets of body paragraphs and table cells, in document order."""
    try:
        doc = DocxDocument(io.BytesIO(docx_bytes))
        paragraphs = []
        for block in doc.iter_inner_content():
            if isinstance(block, Table):
                for row in block.rows:
                    for cell in row.cells:
                        paragraphs.extend(cell.paragraphs)
            else:
                paragraphs.append(block)
        urls = [
            hyperlink.url
            for paragraph in paragraphs
            for hyperlink in paragraph.hyperlinks
        ]
        return _dedupe(urls)
    except Exception as e:
        logger.warning("Could not read DOCX hyperlinks: %s", e)
        return []


def extract_additional_urls(file_bytes: bytes, extension: str) -> List[str]:
    """
    URLs stored in document structure rather than visible text. Never
    raises; unsupported or unreadable documents give an empty list.
    """
    extension = extension.lower()
    if extension == ".pdf":
        return extract_urls_from_pdf_annotations(file_bytes)
    if extension == ".docx":
        return extract_urls_from_docx(file_bytes)
    return []
