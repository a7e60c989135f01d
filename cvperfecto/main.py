import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cvperfecto import __version__
from cvperfecto.config import get_settings
from cvperfecto.routers import resume
from cvperfecto.services.latex_output import cleanup_old_files
from cvperfecto.services.latex_template import LatexTemplate

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # read once; requests only see the immutable value
    app.state.latex_template = LatexTemplate.load(settings.template_path or None)
    removed = cleanup_old_files(settings.output_dir, settings.output_max_age_hours)
    if removed:
        logger.info("Removed %d stale output files", removed)
    yield


app = FastAPI(
    title=settings.app_name,
    description="FastAPI backend that rewrites resumes into ATS-friendly LaTeX for a job description.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(resume.router, prefix="/api/v1", tags=["Resume Optimization"])


@app.get("/")
async def root():
    return {"message": "CV Perfecto API is running. Use endpoints under /api/v1/"}


# Local development runner
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("cvperfecto.main:app", host="127.0.0.1", port=8000, reload=True)
