"""Shared fixtures: in-memory fakes for storage and the model, plus document builders."""

import io
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import fitz  # PyMuPDF
import pytest
from docx import Document
from docx.opc.constants import RELATIONSHIP_TYPE
from docx.oxml import OxmlElement
from docx.oxml.ns import qn

from cvperfecto.config import Settings
from cvperfecto.models.resume import ResumeDocument

JOB_DESCRIPTION = (
    "We are hiring a backend engineer with Python, FastAPI and PostgreSQL "
    "experience to build resume tooling."
)

SAMPLE_LATEX = r"""\documentclass{article}
\usepackage{hyperref}
\begin{document}
\begin{center}
\textbf{John Doe} \\
\href{mailto:john@x.com}{john@x.com}
\end{center}
\section{Summary}
Engineer.
\end{document}"""


class InMemoryResumeRepository:
    """Stands in for SupabaseResumeRepository."""

    def __init__(self):
        self.rows: Dict[str, ResumeDocument] = {}
        self.updates: List[Tuple[str, dict]] = []

    def create(self, document: ResumeDocument) -> ResumeDocument:
        if document.id is None:
            document = document.model_copy(update={"id": f"resume-{len(self.rows) + 1}"})
        self.rows[document.id] = document
        return document

    def update(self, resume_id: str, **fields) -> Optional[ResumeDocument]:
        self.updates.append((resume_id, fields))
        current = self.rows.get(resume_id)
        if current is None:
            return None
        updated = current.model_copy(update=fields)
        self.rows[resume_id] = updated
        return updated

    def find_by_id(self, resume_id: str, user_id: Optional[str] = None) -> Optional[ResumeDocument]:
        document = self.rows.get(resume_id)
        if document is None or (user_id is not None and document.user_id != user_id):
            return None
        return document

    def list_for_user(self, user_id: str) -> List[ResumeDocument]:
        documents = [doc for doc in self.rows.values() if doc.user_id == user_id]
        return sorted(documents, key=lambda doc: doc.created_at, reverse=True)


class FakeChatService:
    """Returns canned LaTeX (or raises) and records the prompts it was sent."""

    def __init__(self, reply: Union[str, BaseException, Callable[[str, str], str]] = SAMPLE_LATEX):
        self.reply = reply
        self.calls: List[Tuple[str, str]] = []

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        if isinstance(self.reply, BaseException):
            raise self.reply
        if callable(self.reply):
            return self.reply(system_prompt, user_prompt)
        return self.reply


def build_pdf(lines: Sequence[str] = (), links: Sequence[str] = (), pages: int = 1) -> bytes:
    """PDF with text lines and URI link annotations on the first page, then blank pages."""
    doc = fitz.open()
    page = doc.new_page()
    for _ in range(pages - 1):
        doc.new_page()
    y = 72
    for line in lines:
        page.insert_text((72, y), line, fontsize=11)
        y += 16
    for index, uri in enumerate(links):
        top = 600 + index * 20
        page.insert_link({"kind": fitz.LINK_URI, "from": fitz.Rect(72, top, 300, top + 14), "uri": uri})
    data = doc.tobytes()
    doc.close()
    return data


def add_hyperlink(paragraph, url: str, text: str) -> None:
    r_id = paragraph.part.relate_to(url, RELATIONSHIP_TYPE.HYPERLINK, is_external=True)
    hyperlink = OxmlElement("w:hyperlink")
    hyperlink.set(qn("r:id"), r_id)
    run = OxmlElement("w:r")
    text_element = OxmlElement("w:t")
    text_element.text = text
    run.append(text_element)
    hyperlink.append(run)
    paragraph._p.append(hyperlink)


def build_docx(
    paragraphs: Sequence[str] = (),
    table_rows: Sequence[Sequence[str]] = (),
    links: Sequence[Tuple[str, str]] = (),
) -> bytes:
    """DOCX with paragraphs, an optional table and (url, text) hyperlinks."""
    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    if table_rows:
        table = doc.add_table(rows=len(table_rows), cols=len(table_rows[0]))
        for row_index, row in enumerate(table_rows):
            for col_index, value in enumerate(row):
                table.cell(row_index, col_index).text = value
    if links:
        paragraph = doc.add_paragraph("Links: ")
        for url, text in links:
            add_hyperlink(paragraph, url, text)
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        gemini_api_key="",
        supabase_url="",
        supabase_key="",
        output_dir=str(tmp_path / "output"),
    )


@pytest.fixture
def repository():
    return InMemoryResumeRepository()
