# cvperfecto/models/resume.py
import datetime
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from pydantic import BaseModel, Field


class ResumeStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ExtractionOutcome(str, Enum):
    READABLE = "readable"
    GARBLED = "garbled"
    EMPTY = "empty"


# Label used in prompts and fallback text, in the order they are listed
CONTACT_LABELS = (
    ("email", "Email"),
    ("phone", "Phone"),
    ("linkedin", "LinkedIn"),
    ("github", "GitHub"),
    ("leetcode", "LeetCode"),
    ("website", "Website"),
    ("twitter", "Twitter"),
)


class ExtractedContacts(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None  # digits and a leading "+" only
    linkedin: Optional[str] = None
    github: Optional[str] = None
    leetcode: Optional[str] = None
    website: Optional[str] = None
    twitter: Optional[str] = None

    def non_empty_items(self) -> Iterator[Tuple[str, str]]:
        """Yield (label, value) for every populated field, in display order."""
        for field_name, label in CONTACT_LABELS:
            value = getattr(self, field_name)
            if value:
                yield label, value

    def is_empty(self) -> bool:
        return not any(True for _ in self.non_empty_items())


class ExtractionResult(BaseModel):
    text: str = ""
    outcome: ExtractionOutcome = ExtractionOutcome.EMPTY
    additional_urls: List[str] = []
    contacts: ExtractedContacts = Field(default_factory=ExtractedContacts)
    contact_only: bool = False


class ResumeDocument(BaseModel):
    id: Optional[str] = None
    user_id: str
    original_filename: str
    job_description: str
    extracted_text: str = ""
    extracted_contacts: ExtractedContacts = Field(default_factory=ExtractedContacts)
    optimized_latex: str = ""
    status: ResumeStatus = ResumeStatus.PROCESSING
    error: Optional[str] = None
    created_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )
    updated_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )


class ResumeOptimizationResult(BaseModel):
    success: bool
    resume: Optional[ResumeDocument] = None
    error: Optional[str] = None
