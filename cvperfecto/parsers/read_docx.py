# cvperfecto/parsers/read_docx.py
import io
from typing import List

from docx import Document as DocxDocument
from docx.table import Table

from cvperfecto.exceptions import DocumentParseError


def _table_lines(table: Table) -> List[str]:
    lines = []
    for row in table.rows:
        cells: List[str] = []
        for cell in row.cells:
            text = cell.text.strip()
            # merged cells repeat across the row
            if text and (not cells or cells[-1] != text):
                cells.append(text)
        if cells:
            lines.append("\t".join(cells))
    return lines


def extract_text_from_docx(docx_bytes: bytes) -> str:
    """Plain text of the document body, paragraphs and tables in order."""
    try:
        doc = DocxDocument(io.BytesIO(docx_bytes))
        lines: List[str] = []
        for block in doc.iter_inner_content():
            if isinstance(block, Table):
                lines.extend(_table_lines(block))
            else:
                lines.append(block.text)
        return "\n".join(lines)
    except Exception as e:
        raise DocumentParseError(f"DOCX parsing failed: {str(e)}") from e
