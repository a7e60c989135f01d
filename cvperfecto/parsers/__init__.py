from cvperfecto.parsers.garbled import is_garbled
from cvperfecto.parsers.links import extract_additional_urls
from cvperfecto.parsers.text_extractor import (
    ExtractionStrategy,
    TextExtractor,
    extract_resume_text,
    file_extension,
)

__all__ = [
    "ExtractionStrategy",
    "TextExtractor",
    "extract_additional_urls",
    "extract_resume_text",
    "file_extension",
    "is_garbled",
]
