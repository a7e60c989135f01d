"""Tests for the end-to-end resume optimization pipeline."""

import asyncio

import pytest

from conftest import (
    JOB_DESCRIPTION,
    FakeChatService,
    InMemoryResumeRepository,
    build_docx,
    build_pdf,
)
from cvperfecto.exceptions import AllModelsFailedError, ExtractionFailure, ModelNotFoundError
from cvperfecto.models.resume import ExtractionOutcome, ResumeStatus
from cvperfecto.parsers.text_extractor import ExtractionStrategy, TextExtractor
from cvperfecto.services.latex_template import LatexTemplate
from cvperfecto.services.resume_optimizer import ResumeOptimizationService, ResumeUpload

DOCX_TEXT = (
    "John Doe Email: john@x.com https://linkedin.com/in/johndoe "
    "Experience: none Projects: none"
)

MODEL_LATEX = r"""```latex
\documentclass{article}
\usepackage{hyperref}
\begin{document}
\begin{center}
\textbf{John Doe} \\
\href{mailto:wrong@example.com}{Email} $|$ \href{https://www.linkedin.com/in/someoneelse}{LinkedIn}
\end{center}
\section{Experience}
No experience listed.
\section{Projects}
\textbf{Project Name} | Technologies
Description: A project built with modern tools.
\end{document}
```"""


def short_strategies():
    return [
        ExtractionStrategy(name, lambda buffer: "Jane")
        for name in ("content-stream", "pypdf", "pdfminer", "pymupdf")
    ]


@pytest.mark.integration
class TestDocxPipeline:
    """A DOCX resume through extraction, the model and post-processing."""

    def test_placeholder_projects_removed(self, repository, settings):
        chat = FakeChatService(MODEL_LATEX)
        service = ResumeOptimizationService(repository, chat, settings=settings)
        upload = ResumeUpload("john.docx", build_docx([DOCX_TEXT]))

        result = asyncio.run(service.process(upload, JOB_DESCRIPTION, "user-1"))

        assert result.success is True
        resume = result.resume
        assert resume.status is ResumeStatus.COMPLETED
        assert resume.user_id == "user-1"
        assert resume.extracted_text == DOCX_TEXT
        assert resume.extracted_contacts.email == "john@x.com"
        assert resume.extracted_contacts.linkedin == "https://linkedin.com/in/johndoe"

        latex = resume.optimized_latex
        assert latex.startswith("\\documentclass{article}")
        assert "```" not in latex
        assert "\\section{Experience}" in latex
        assert "\\section{Projects}" not in latex
        assert "Project Name" not in latex
        assert "\\href{mailto:john@x.com}{Email}" in latex
        assert "\\href{https://linkedin.com/in/johndoe}{LinkedIn}" in latex
        assert "someoneelse" not in latex

    def test_prompt_carries_resume_and_contacts(self, repository, settings):
        chat = FakeChatService(MODEL_LATEX)
        service = ResumeOptimizationService(repository, chat, settings=settings)
        asyncio.run(
            service.process(ResumeUpload("john.docx", build_docx([DOCX_TEXT])), JOB_DESCRIPTION, "u")
        )

        system_prompt, user_prompt = chat.calls[0]
        assert user_prompt.startswith(f"Resume Content:\n{DOCX_TEXT}\n\nJob Description:\n")
        assert JOB_DESCRIPTION in user_prompt
        assert "Email=john@x.com | LinkedIn=https://linkedin.com/in/johndoe" in user_prompt
        assert "CONTACT-ONLY" not in user_prompt
        assert "ATS" in system_prompt

    def test_template_preamble_applied(self, repository, settings):
        template = LatexTemplate.load()
        service = ResumeOptimizationService(
            repository, FakeChatService(MODEL_LATEX), template=template, settings=settings
        )
        result = asyncio.run(
            service.process(ResumeUpload("john.docx", build_docx([DOCX_TEXT])), JOB_DESCRIPTION, "u")
        )
        assert result.resume.optimized_latex.startswith(template.preamble)


@pytest.mark.integration
class TestPdfPipeline:
    """A PDF whose text layer cannot be read."""

    def test_contact_only_fallback(self, repository, settings):
        """Test that unreadable text falls back to link annotations only."""
        buffer = build_pdf(links=["https://linkedin.com/in/johndoe"])
        extractor = TextExtractor(pdf_strategies=short_strategies())
        service = ResumeOptimizationService(
            repository, FakeChatService(MODEL_LATEX), extractor=extractor, settings=settings
        )

        extraction = asyncio.run(service.extract(ResumeUpload("scan.pdf", buffer)))

        assert extraction.outcome is ExtractionOutcome.EMPTY
        assert extraction.additional_urls == ["https://linkedin.com/in/johndoe"]
        assert extraction.contacts.linkedin == "https://linkedin.com/in/johndoe"
        assert extraction.text == "LinkedIn: https://linkedin.com/in/johndoe"
        assert extraction.contact_only is True

    def test_contact_only_flag_with_many_contacts(self, repository, settings):
        """Test that the fallback is contact-only however long the contact block is."""
        links = [
            "https://www.linkedin.com/in/jane-doe-backend-engineer",
            "https://github.com/jane-doe-backend-engineer",
            "https://leetcode.com/u/jane-doe-backend-engineer",
            "https://jane-doe-backend-engineer.example.dev/portfolio",
        ]
        service = ResumeOptimizationService(
            repository,
            FakeChatService(MODEL_LATEX),
            extractor=TextExtractor(pdf_strategies=short_strategies()),
            settings=settings,
        )

        extraction = asyncio.run(service.extract(ResumeUpload("scan.pdf", build_pdf(links=links))))

        assert extraction.outcome is ExtractionOutcome.EMPTY
        assert len(extraction.text) > settings.contact_only_max_length
        assert extraction.text.splitlines() == [
            f"LinkedIn: {links[0]}",
            f"GitHub: {links[1]}",
            f"LeetCode: {links[2]}",
            f"Website: {links[3]}",
        ]
        assert extraction.contact_only is True

    def test_contact_only_prompt(self, repository, settings):
        buffer = build_pdf(links=["https://linkedin.com/in/johndoe"])
        chat = FakeChatService(MODEL_LATEX)
        service = ResumeOptimizationService(
            repository,
            chat,
            extractor=TextExtractor(pdf_strategies=short_strategies()),
            settings=settings,
        )
        result = asyncio.run(service.process(ResumeUpload("scan.pdf", buffer), JOB_DESCRIPTION, "u"))

        assert result.success is True
        assert "CONTACT-ONLY scenario" in chat.calls[0][1]

    def test_garbled_text_falls_back(self, repository, settings):
        """Test that PDF structure leaking into the text is not sent as the resume."""
        garbage = "/Type /Page /Contents 4 0 R " * 20
        extractor = TextExtractor(pdf_strategies=[ExtractionStrategy("raw", lambda buffer: garbage)])
        service = ResumeOptimizationService(
            repository, FakeChatService(MODEL_LATEX), extractor=extractor, settings=settings
        )

        extraction = asyncio.run(service.extract(ResumeUpload("odd.pdf", b"%PDF-1.4\n%%EOF")))

        assert extraction.outcome is ExtractionOutcome.GARBLED
        assert extraction.text == ""
        assert extraction.contact_only is True

    def test_garbled_text_recovered_from_metadata(self, repository, settings):
        """Test that readable document info replaces garbled strategy output."""
        garbage = "/Type /Page /Contents 4 0 R " * 20
        buffer = (
            b"%PDF-1.4\n1 0 obj << /Title (Jane Smith Backend Engineer Resume) "
            b"/Author (Jane Smith) >> endobj\n%%EOF"
        )
        extractor = TextExtractor(pdf_strategies=[ExtractionStrategy("raw", lambda buffer: garbage)])
        service = ResumeOptimizationService(
            repository, FakeChatService(MODEL_LATEX), extractor=extractor, settings=settings
        )

        extraction = asyncio.run(service.extract(ResumeUpload("odd.pdf", buffer)))

        assert extraction.outcome is ExtractionOutcome.READABLE
        assert "Jane Smith Backend Engineer Resume" in extraction.text


@pytest.mark.integration
class TestFailures:
    """Failure paths and the record's status."""

    def test_model_failure_marks_record_failed(self, repository, settings):
        error = AllModelsFailedError(ModelNotFoundError("gemini-x"))
        service = ResumeOptimizationService(repository, FakeChatService(error), settings=settings)

        result = asyncio.run(
            service.process(ResumeUpload("john.docx", build_docx([DOCX_TEXT])), JOB_DESCRIPTION, "u")
        )

        assert result.success is False
        assert result.error == str(error)
        stored = list(repository.rows.values())[0]
        assert stored.status is ResumeStatus.FAILED
        assert stored.error == str(error)
        assert stored.extracted_text == DOCX_TEXT

    def test_unsupported_format(self, repository, settings):
        service = ResumeOptimizationService(repository, FakeChatService(), settings=settings)
        result = asyncio.run(
            service.process(ResumeUpload("notes.txt", b"hello"), JOB_DESCRIPTION, "u")
        )

        assert result.success is False
        assert "Unsupported file format: .txt" in result.error
        assert list(repository.rows.values())[0].status is ResumeStatus.FAILED

    def test_failure_update_does_not_mask_error(self, settings):
        """Test that a broken store during failure handling keeps the first error."""

        class BrokenFailureUpdate(InMemoryResumeRepository):
            def update(self, resume_id, **fields):
                if fields.get("status") is ResumeStatus.FAILED:
                    raise ConnectionError("store unavailable")
                return super().update(resume_id, **fields)

        service = ResumeOptimizationService(
            BrokenFailureUpdate(), FakeChatService(RuntimeError("model exploded")), settings=settings
        )
        result = asyncio.run(
            service.process(ResumeUpload("john.docx", build_docx([DOCX_TEXT])), JOB_DESCRIPTION, "u")
        )

        assert result.success is False
        assert result.error == "model exploded"

    def test_create_failure(self, settings):
        class BrokenCreate(InMemoryResumeRepository):
            def create(self, document):
                raise ConnectionError("store unavailable")

        service = ResumeOptimizationService(BrokenCreate(), FakeChatService(), settings=settings)
        result = asyncio.run(
            service.process(ResumeUpload("john.docx", build_docx([DOCX_TEXT])), JOB_DESCRIPTION, "u")
        )
        assert result.success is False
        assert result.error == "store unavailable"


@pytest.mark.unit
class TestQueries:
    """Tests for reading stored resumes."""

    def test_user_scoping(self, repository, settings):
        service = ResumeOptimizationService(repository, FakeChatService(), settings=settings)
        for user in ("user-1", "user-1", "user-2"):
            asyncio.run(
                service.process(
                    ResumeUpload("john.docx", build_docx([DOCX_TEXT])), JOB_DESCRIPTION, user
                )
            )

        mine = service.get_user_resumes("user-1")
        assert len(mine) == 2
        assert mine[0].created_at >= mine[1].created_at
        assert service.get_resume_by_id(mine[0].id, "user-1") == mine[0]
        assert service.get_resume_by_id(mine[0].id, "user-2") is None


@pytest.mark.unit
class TestEnsureReadable:
    """Tests for the usable-text check behind the contact-only fallback."""

    def test_outcomes(self, repository, settings):
        service = ResumeOptimizationService(repository, FakeChatService(), settings=settings)

        service.ensure_readable("Jane Smith, Backend Engineer")
        with pytest.raises(ExtractionFailure) as empty:
            service.ensure_readable("   ")
        with pytest.raises(ExtractionFailure) as garbled:
            service.ensure_readable("endstream endobj " * 11)

        assert empty.value.outcome is ExtractionOutcome.EMPTY
        assert garbled.value.outcome is ExtractionOutcome.GARBLED


@pytest.mark.unit
class TestExtractorSettings:
    """Tests for how settings reach the default extraction chain."""

    def test_object_parser_timeout_from_settings(self, repository, settings):
        settings.pdf_object_parser_timeout = 2.5
        settings.text_confidence_threshold = 80
        service = ResumeOptimizationService(repository, FakeChatService(), settings=settings)

        timeouts = {s.name: s.timeout for s in service.extractor.pdf_strategies}
        assert timeouts["pdfminer"] == 2.5
        assert service.extractor.confidence_threshold == 80
