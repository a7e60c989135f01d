# cvperfecto/services/resume_optimizer.py
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from cvperfecto.config import Settings, get_settings
from cvperfecto.exceptions import ExtractionFailure
from cvperfecto.models.resume import (
    ExtractedContacts,
    ExtractionOutcome,
    ExtractionResult,
    ResumeDocument,
    ResumeOptimizationResult,
    ResumeStatus,
)
from cvperfecto.parsers import read_pdf
from cvperfecto.parsers.garbled import is_garbled
from cvperfecto.parsers.links import extract_additional_urls
from cvperfecto.parsers.text_extractor import (
    TextExtractor,
    default_pdf_strategies,
    file_extension,
    is_confident,
)
from cvperfecto.services.contact_extractor import build_fallback_resume_text, extract_contacts
from cvperfecto.services.latex_postprocessor import postprocess_latex, validate_content_fidelity
from cvperfecto.services.latex_template import LatexTemplate
from cvperfecto.services.resume_prompt import (
    build_system_prompt,
    build_user_prompt,
    is_contact_only,
    strip_code_fences,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResumeUpload:
    filename: str
    content: bytes
    content_type: Optional[str] = None


class ResumeOptimizationService:
    """
    Runs one uploaded resume through extraction, the model and LaTeX
    post-processing, keeping the stored record's status in step.

    The record moves processing -> completed, or processing -> failed with
    the error message. The failure update never hides the original error.
    """

    def __init__(
        self,
        repository: Any,
        chat_service: Any,
        template: Optional[LatexTemplate] = None,
        extractor: Optional[TextExtractor] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.repository = repository
        self.chat_service = chat_service
        self.template = template
        self.extractor = extractor or TextExtractor(
            pdf_strategies=default_pdf_strategies(self.settings.pdf_object_parser_timeout),
            confidence_threshold=self.settings.text_confidence_threshold,
        )

    def _is_garbled(self, text: str) -> bool:
        return is_garbled(
            text,
            min_length=self.settings.garbled_min_length,
            min_printable_ratio=self.settings.garbled_printable_ratio,
            max_binary_patterns=self.settings.garbled_max_binary_patterns,
        )

    def ensure_readable(self, text: str) -> None:
        if not text.strip():
            raise ExtractionFailure(ExtractionOutcome.EMPTY)
        if self._is_garbled(text):
            raise ExtractionFailure(ExtractionOutcome.GARBLED)

    async def extract(self, upload: ResumeUpload) -> ExtractionResult:
        extension = file_extension(upload.filename)
        text = await self.extractor.extract(upload.content, extension)
        additional_urls: List[str] = await asyncio.to_thread(
            extract_additional_urls, upload.content, extension
        )

        if text and extension == ".pdf" and self._is_garbled(text):
            logger.warning("Extracted text looks garbled, retrying from PDF metadata")
            metadata_text = await asyncio.to_thread(
                read_pdf.extract_text_from_pdf_metadata, upload.content
            )
            if is_confident(metadata_text, self.settings.text_confidence_threshold):
                text = metadata_text

        contacts = extract_contacts(text, additional_urls)

        try:
            self.ensure_readable(text)
            outcome = ExtractionOutcome.READABLE
            contact_only = is_contact_only(text, self.settings.contact_only_max_length)
        except ExtractionFailure as e:
            logger.warning("%s, falling back to contact information", e)
            outcome = e.outcome
            text = build_fallback_resume_text(contacts)
            contact_only = True

        return ExtractionResult(
            text=text,
            outcome=outcome,
            additional_urls=additional_urls,
            contacts=contacts,
            contact_only=contact_only,
        )

    async def optimize(
        self,
        resume_text: str,
        job_description: str,
        contacts: ExtractedContacts,
        contact_only: bool = False,
    ) -> str:
        system_prompt = build_system_prompt(self.template.source if self.template else None)
        user_prompt = build_user_prompt(resume_text, job_description, contacts, contact_only)
        latex = await self.chat_service.complete(system_prompt, user_prompt)
        return strip_code_fences(latex)

    def postprocess(self, latex: str, original_text: str, contacts: ExtractedContacts) -> str:
        if not validate_content_fidelity(latex, original_text):
            logger.warning("Generated LaTeX may contain content not in the original resume")
        return postprocess_latex(latex, original_text, contacts, self.template)

    def _mark_failed(self, resume_id: str, message: str) -> None:
        try:
            self.repository.update(resume_id, status=ResumeStatus.FAILED, error=message)
        except Exception:
            logger.exception("Could not record failure for resume %s", resume_id)

    async def process(
        self, upload: ResumeUpload, job_description: str, user_id: str
    ) -> ResumeOptimizationResult:
        record: Optional[ResumeDocument] = None
        try:
            record = self.repository.create(
                ResumeDocument(
                    user_id=user_id,
                    original_filename=upload.filename,
                    job_description=job_description,
                    status=ResumeStatus.PROCESSING,
                )
            )
            logger.info("Resume %s created for user %s", record.id, user_id)

            extraction = await self.extract(upload)
            self.repository.update(
                record.id,
                extracted_text=extraction.text,
                extracted_contacts=extraction.contacts,
            )
            logger.info(
                "Resume %s text extracted (%d chars, %s)",
                record.id,
                len(extraction.text),
                extraction.outcome.value,
            )

            latex = await self.optimize(
                extraction.text, job_description, extraction.contacts, extraction.contact_only
            )
            logger.info("Resume %s: model returned %d chars of LaTeX", record.id, len(latex))

            latex = self.postprocess(latex, extraction.text, extraction.contacts)

            updated = self.repository.update(
                record.id, optimized_latex=latex, status=ResumeStatus.COMPLETED, error=None
            )
            resume = updated or self.repository.find_by_id(record.id)
            logger.info("Resume %s completed", record.id)
            return ResumeOptimizationResult(success=True, resume=resume)
        except Exception as e:
            logger.exception("Resume optimization failed")
            message = str(e) or e.__class__.__name__
            if record is not None and record.id:
                self._mark_failed(record.id, message)
            return ResumeOptimizationResult(success=False, error=message)

    def get_user_resumes(self, user_id: str) -> List[ResumeDocument]:
        return self.repository.list_for_user(user_id)

    def get_resume_by_id(self, resume_id: str, user_id: str) -> Optional[ResumeDocument]:
        return self.repository.find_by_id(resume_id, user_id)
