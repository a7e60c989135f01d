# cvperfecto/parsers/text_extractor.py
import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from cvperfecto.constants import PDF_OBJECT_PARSER_TIMEOUT, TEXT_CONFIDENCE_THRESHOLD
from cvperfecto.exceptions import UnsupportedFormatError
from cvperfecto.parsers import read_docx, read_pdf

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionStrategy:
    name: str
    extract: Callable[[bytes], str]
    timeout: Optional[float] = None


def default_pdf_strategies(
    object_parser_timeout: float = PDF_OBJECT_PARSER_TIMEOUT,
) -> List[ExtractionStrategy]:
    return [
        ExtractionStrategy("content-stream", read_pdf.extract_text_from_content_streams),
        ExtractionStrategy("pypdf", read_pdf.extract_text_with_pypdf),
        ExtractionStrategy(
            "pdfminer", read_pdf.extract_text_with_pdfminer, timeout=object_parser_timeout
        ),
        ExtractionStrategy("pymupdf", read_pdf.extract_text_from_pdf_fitz_plain),
        ExtractionStrategy("pymupdf-words", read_pdf.extract_text_from_pdf_words),
    ]


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def is_confident(candidate: Optional[str], threshold: int = TEXT_CONFIDENCE_THRESHOLD) -> bool:
    return bool(candidate) and len(candidate.strip()) > threshold


async def run_strategy(strategy: ExtractionStrategy, buffer: bytes) -> str:
    """Run one strategy off the event loop. Failures come back as ""."""
    try:
        call = asyncio.to_thread(strategy.extract, buffer)
        if strategy.timeout is not None:
            text = await asyncio.wait_for(call, timeout=strategy.timeout)
        else:
            text = await call
        return text or ""
    except asyncio.TimeoutError:
        logger.warning("PDF strategy %s timed out after %ss", strategy.name, strategy.timeout)
    except Exception as e:
        logger.warning("PDF strategy %s failed: %s", strategy.name, e)
    return ""


class TextExtractor:
    """
    Best-effort plain text for an uploaded resume. PDF strategies are tried
    in order and the first candidate above the confidence threshold wins.
    """

    def __init__(
        self,
        pdf_strategies: Optional[Sequence[ExtractionStrategy]] = None,
        confidence_threshold: int = TEXT_CONFIDENCE_THRESHOLD,
    ):
        self.pdf_strategies = list(
            pdf_strategies if pdf_strategies is not None else default_pdf_strategies()
        )
        self.confidence_threshold = confidence_threshold

    async def extract(self, buffer: bytes, extension: str) -> str:
        extension = extension.lower()
        if extension == ".pdf":
            return await self.extract_pdf(buffer)
        if extension == ".docx":
            return await asyncio.to_thread(read_docx.extract_text_from_docx, buffer)
        raise UnsupportedFormatError(extension)

    async def extract_pdf(self, buffer: bytes) -> str:
        logger.info("Starting PDF text extraction (%d bytes)", len(buffer))
        lengths = {}
        for strategy in self.pdf_strategies:
            candidate = await run_strategy(strategy, buffer)
            lengths[strategy.name] = len(candidate)
            if is_confident(candidate, self.confidence_threshold):
                logger.info(
                    "PDF strategy %s succeeded with %d characters", strategy.name, len(candidate)
                )
                return candidate
            logger.info(
                "PDF strategy %s returned %d characters, trying next", strategy.name, len(candidate)
            )

        logger.warning("All PDF extraction strategies failed: %s", lengths)
        return ""


async def extract_resume_text(buffer: bytes, extension: str) -> str:
    return await TextExtractor().extract(buffer, extension)
