from typing import Optional


class ResumeProcessingError(Exception):
    """Base class for failures inside the resume pipeline."""


class UnsupportedFormatError(ResumeProcessingError, ValueError):
    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(
            f"Unsupported file format: {extension or '(none)'}. "
            "Only PDF and DOCX files are supported."
        )


class DocumentParseError(ResumeProcessingError, ValueError):
    """A document with a single extraction path could not be parsed."""


class ExtractionFailure(ResumeProcessingError):
    """No usable resume text; callers degrade to contact-only text."""

    def __init__(self, outcome, message: str = ""):
        self.outcome = outcome
        super().__init__(message or f"Text extraction failed ({outcome.value})")


class AIServiceNotConfiguredError(ResumeProcessingError):
    pass


class ModelNotFoundError(ResumeProcessingError):
    """The requested model does not exist; the next candidate can be tried."""

    def __init__(self, model: str, message: str = ""):
        self.model = model
        super().__init__(message or f"Invalid model: {model}")


class AllModelsFailedError(ResumeProcessingError):
    def __init__(self, last_error: Optional[BaseException] = None):
        self.last_error = last_error
        detail = str(last_error) if last_error else "Unknown error"
        super().__init__(f"All AI models failed. Last error: {detail}")


class InvalidLatexStructureError(ResumeProcessingError, ValueError):
    def __init__(self, message: str = ""):
        super().__init__(
            message or r"Invalid LaTeX content: Missing \documentclass or \end{document}"
        )
