import datetime
import logging
import os
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse, JSONResponse
from starlette.background import BackgroundTask

from cvperfecto.config import Settings, get_settings
from cvperfecto.constants import SUPPORTED_EXTENSIONS, SUPPORTED_MIME_TYPES
from cvperfecto.dependencies import (
    get_current_user_id,
    get_optimization_service,
    get_resume_reader,
)
from cvperfecto.exceptions import InvalidLatexStructureError
from cvperfecto.models.responses import ApiResponse
from cvperfecto.parsers.text_extractor import file_extension
from cvperfecto.services.latex_output import remove_file, write_latex_file
from cvperfecto.services.resume_optimizer import ResumeOptimizationService, ResumeUpload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resume")


def error_response(status_code: int, message: str, errors: Optional[list] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse.fail(message, errors).model_dump(mode="json"),
    )


def is_supported_upload(filename: str) -> bool:
    # the extension picks the parser, so a supported MIME type alone is not enough
    return file_extension(filename) in SUPPORTED_EXTENSIONS


@router.get("/health", response_model=ApiResponse)
async def health_check(settings: Settings = Depends(get_settings)):
    """Service status and configuration flags."""
    return ApiResponse.ok(
        {
            "status": "healthy",
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "services": {
                "directories": {"output": os.path.isdir(settings.output_dir)},
                "gemini": bool(settings.gemini_api_key),
                "supabase": bool(settings.supabase_url and settings.supabase_key),
            },
        }
    )


@router.get("/formats", response_model=ApiResponse)
async def supported_formats(settings: Settings = Depends(get_settings)):
    return ApiResponse.ok(
        {
            "resume": {
                "formats": ["PDF", "DOCX"],
                "mimeTypes": list(SUPPORTED_MIME_TYPES),
                "maxSize": f"{settings.max_upload_bytes // (1024 * 1024)}MB",
            },
            "jobDescription": {
                "formats": ["Text"],
                "minLength": settings.job_description_min_length,
                "maxLength": settings.job_description_max_length,
            },
        }
    )


@router.post("/optimize", response_model=ApiResponse)
async def optimize_resume(
    resume: Optional[UploadFile] = File(None),
    jobDescription: Optional[str] = Form(None),
    user_id: str = Depends(get_current_user_id),
    service: ResumeOptimizationService = Depends(get_optimization_service),
    settings: Settings = Depends(get_settings),
):
    """
    Upload a PDF or DOCX resume with a job description and get back the
    stored record holding the optimized LaTeX.
    """
    if resume is None or not resume.filename:
        return error_response(400, "Resume file is required")

    job_description = (jobDescription or "").strip()
    if not job_description:
        return error_response(400, "Job description is required")
    if not (
        settings.job_description_min_length
        <= len(job_description)
        <= settings.job_description_max_length
    ):
        return error_response(
            400,
            "Validation failed",
            [
                f"Job description must be between {settings.job_description_min_length} "
                f"and {settings.job_description_max_length:,} characters"
            ],
        )

    if not is_supported_upload(resume.filename):
        return error_response(400, "Only PDF and DOCX files are supported")

    content = await resume.read()
    if len(content) > settings.max_upload_bytes:
        return error_response(
            400,
            f"File size too large. Maximum size is "
            f"{settings.max_upload_bytes // (1024 * 1024)}MB",
        )

    logger.info(
        "Processing resume optimization for %s (job description: %d characters)",
        resume.filename,
        len(job_description),
    )
    result = await service.process(
        ResumeUpload(filename=resume.filename, content=content, content_type=resume.content_type),
        job_description,
        user_id,
    )
    if not result.success:
        return error_response(500, result.error or "Resume optimization failed")

    return ApiResponse.ok(
        {
            "message": "Resume optimized successfully",
            "resume": result.resume.model_dump(mode="json") if result.resume else None,
        }
    )


@router.get("/my-resumes", response_model=ApiResponse)
async def get_my_resumes(
    user_id: str = Depends(get_current_user_id),
    service: ResumeOptimizationService = Depends(get_resume_reader),
):
    try:
        resumes = service.get_user_resumes(user_id)
    except Exception:
        logger.exception("Failed to get resumes for user %s", user_id)
        return error_response(500, "Failed to get resumes")
    return ApiResponse.ok([resume.model_dump(mode="json") for resume in resumes])


def _find_resume(service: ResumeOptimizationService, resume_id: str, user_id: str) -> Any:
    try:
        resume = service.get_resume_by_id(resume_id, user_id)
    except Exception:
        logger.exception("Failed to get resume %s", resume_id)
        return error_response(500, "Failed to get resume")
    if resume is None:
        return error_response(404, "Resume not found")
    return resume


@router.get("/{resume_id}", response_model=ApiResponse)
async def get_resume(
    resume_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ResumeOptimizationService = Depends(get_resume_reader),
):
    resume = _find_resume(service, resume_id, user_id)
    if isinstance(resume, JSONResponse):
        return resume
    return ApiResponse.ok(resume.model_dump(mode="json"))


@router.get("/{resume_id}/download")
async def download_resume(
    resume_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ResumeOptimizationService = Depends(get_resume_reader),
    settings: Settings = Depends(get_settings),
):
    """The optimized LaTeX as a .ltx attachment; the file is removed once sent."""
    resume = _find_resume(service, resume_id, user_id)
    if isinstance(resume, JSONResponse):
        return resume
    if not resume.optimized_latex:
        return error_response(400, "Resume optimization not completed")

    try:
        file_path = write_latex_file(resume.optimized_latex, settings.output_dir)
    except InvalidLatexStructureError as e:
        return error_response(500, str(e))

    stem = os.path.splitext(resume.original_filename)[0] or "resume"
    return FileResponse(
        file_path,
        media_type="application/x-latex",
        filename=f"{stem}_optimized.ltx",
        background=BackgroundTask(remove_file, file_path),
    )
