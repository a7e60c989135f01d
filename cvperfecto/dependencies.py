from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from supabase import Client, create_client

from .config import Settings, get_settings
from .exceptions import AIServiceNotConfiguredError
from .services.gemini_service import GeminiChatService
from .services.resume_optimizer import ResumeOptimizationService
from .services.resume_repository import SupabaseResumeRepository

_supabase_client: Optional[Client] = None


def get_supabase_client(settings: Settings = Depends(get_settings)) -> Client:
    global _supabase_client
    if _supabase_client is None:
        if not settings.supabase_url or not settings.supabase_key:
            raise HTTPException(
                status_code=500,
                detail="Supabase URL or Key not configured in .env file",
            )
        try:
            _supabase_client = create_client(settings.supabase_url, settings.supabase_key)
        except Exception as e:
            raise HTTPException(
                status_code=500,
                detail=f"Failed to initialize Supabase client: {str(e)}",
            )
    return _supabase_client


def get_resume_repository(
    client: Client = Depends(get_supabase_client),
    settings: Settings = Depends(get_settings),
) -> SupabaseResumeRepository:
    return SupabaseResumeRepository(client, table=settings.resumes_table)


def get_chat_service(settings: Settings = Depends(get_settings)) -> GeminiChatService:
    try:
        return GeminiChatService.from_settings(settings)
    except AIServiceNotConfiguredError as e:
        raise HTTPException(status_code=500, detail=f"AI service not configured: {str(e)}")


def get_optimization_service(
    request: Request,
    repository: SupabaseResumeRepository = Depends(get_resume_repository),
    chat_service: GeminiChatService = Depends(get_chat_service),
    settings: Settings = Depends(get_settings),
) -> ResumeOptimizationService:
    return ResumeOptimizationService(
        repository=repository,
        chat_service=chat_service,
        template=getattr(request.app.state, "latex_template", None),
        settings=settings,
    )


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity, set by the gateway in front of this service."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


def get_resume_reader(
    repository: SupabaseResumeRepository = Depends(get_resume_repository),
    settings: Settings = Depends(get_settings),
) -> ResumeOptimizationService:
    """Service for read-only endpoints; no AI client is needed to list records."""
    return ResumeOptimizationService(repository=repository, chat_service=None, settings=settings)
