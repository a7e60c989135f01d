from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    app_name: str = "CV Perfecto API"
    log_level: str = "INFO"

    # Supabase holds the resume records
    supabase_url: str = ""
    supabase_key: str = ""
    resumes_table: str = "resumes"

    # Gemini, tried in order until one model answers
    gemini_api_key: str = ""
    gemini_models: str = "gemini-2.0-flash,gemini-1.5-pro,gemini-1.5-flash,gemini-1.5-flash-8b"
    gemini_max_output_tokens: int = 4000
    gemini_temperature: float = 0.1
    gemini_top_p: float = 0.8
    gemini_frequency_penalty: float = 0.1

    # Reference LaTeX template whose preamble replaces the model's
    template_path: str = ""
    output_dir: str = "output"
    output_max_age_hours: int = 24

    # Upload limits
    max_upload_bytes: int = 10 * 1024 * 1024
    job_description_min_length: int = 50
    job_description_max_length: int = 10000

    # Extraction heuristics
    text_confidence_threshold: int = 50
    garbled_min_length: int = 100
    garbled_printable_ratio: float = 0.3
    garbled_max_binary_patterns: int = 10
    contact_only_max_length: int = 200
    pdf_object_parser_timeout: float = 10.0

    cors_origins: str = "*"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        case_sensitive = False

    def get_gemini_models(self) -> List[str]:
        """Parse the model fallback list from its comma-separated form"""
        return [name.strip() for name in self.gemini_models.split(",") if name.strip()]

    def get_cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
