from cvperfecto.services.gemini_service import GeminiChatService
from cvperfecto.services.latex_template import LatexTemplate
from cvperfecto.services.resume_optimizer import ResumeOptimizationService, ResumeUpload
from cvperfecto.services.resume_repository import SupabaseResumeRepository

__all__ = [
    "GeminiChatService",
    "LatexTemplate",
    "ResumeOptimizationService",
    "ResumeUpload",
    "SupabaseResumeRepository",
]
