from cvperfecto.models.resume import (
    ExtractedContacts,
    ExtractionOutcome,
    ExtractionResult,
    ResumeDocument,
    ResumeOptimizationResult,
    ResumeStatus,
)
from cvperfecto.models.responses import ApiResponse

__all__ = [
    "ApiResponse",
    "ExtractedContacts",
    "ExtractionOutcome",
    "ExtractionResult",
    "ResumeDocument",
    "ResumeOptimizationResult",
    "ResumeStatus",
]
