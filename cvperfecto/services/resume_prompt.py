# cvperfecto/services/resume_prompt.py
import re
from typing import Optional

from cvperfecto.constants import CONTACT_ONLY_MAX_LENGTH, TEMPLATE_HINT_CHARS
from cvperfecto.models.resume import ExtractedContacts

CONTACT_KEYWORDS = ("LinkedIn:", "GitHub:", "Phone:")
CONTENT_KEYWORDS = ("experience", "education", "project")


def is_contact_only(resume_text: str, max_length: int = CONTACT_ONLY_MAX_LENGTH) -> bool:
    """True when the text is little more than a contact block."""
    lowered = resume_text.lower()
    return (
        len(resume_text) < max_length
        and any(keyword in resume_text for keyword in CONTACT_KEYWORDS)
        and not any(keyword in lowered for keyword in CONTENT_KEYWORDS)
    )


def build_contact_preservation_note(contacts: ExtractedContacts) -> str:
    parts = [f"{label}={value}" for label, value in contacts.non_empty_items()]
    if not parts:
        return ""
    return (
        "\n\nIMPORTANT: Preserve these original contact links/values EXACTLY as provided. "
        "Do not invent or change them. Use these as href targets in LaTeX, and display text "
        "may be simplified but hrefs must match exactly. "
        f"Original Contacts -> {' | '.join(parts)}"
    )


def build_system_prompt(template_latex: Optional[str] = None) -> str:
    template_hint = ""
    if template_latex:
        template_hint = (
            "\nFollow this LaTeX template structure (use its preamble and sectioning style):\n"
            f"{template_latex[:TEMPLATE_HINT_CHARS]}\n..."
        )

    return f"""You are an expert ATS resume optimizer. I will provide the user's resume and the target job description. Generate a clean, professional LaTeX (.ltx) resume optimized for ATS. Respond with LaTeX only: no explanations, no markdown.{template_hint}

CRITICAL CONTENT RULES:
- ONLY use information that is explicitly present in the provided resume content
- DO NOT add, invent, or hallucinate any projects, experiences, skills, or achievements
- DO NOT add any content that is not directly mentioned in the original resume
- If information is missing from the resume, leave that section empty or omit it entirely
- Focus on reorganizing and reformatting existing content for ATS optimization
- Use the job description only to guide which existing content to emphasize, not to add new content
- READ THE ACTUAL RESUME CONTENT CAREFULLY and extract real details like college names, project names, company names and job titles
- DO NOT use placeholder text like "Project Name", "Company", "Duration"; use the actual information provided

SPECIAL CASE - CONTACT ONLY RESUME:
- If only contact information is provided (like "Phone: ..., LinkedIn: https://..."), text extraction failed
- In this case, create a minimal resume with:
  - Header with contact information using the provided links
  - A note: "Resume content could not be extracted from the uploaded document. Please provide a text-based resume for full optimization."
  - Basic sections left empty or carrying the note above
  - DO NOT generate fake content or placeholders

REQUIREMENTS:
- Use a simple, compilable preamble with hyperref and geometry
- Organize with clear sections (SUMMARY, EDUCATION, TECHNICAL SKILLS, EXPERIENCE, PROJECTS, ACHIEVEMENTS)
- Include a centered header with name and contact \\href links
- Avoid exotic packages and stick to those in the template
- Only include sections that have actual content from the original resume
- If resume content is minimal (only contacts), create a basic structure with appropriate notes about extraction issues"""


def build_user_prompt(
    resume_text: str,
    job_description: str,
    contacts: ExtractedContacts,
    contact_only: bool = False,
) -> str:
    prompt = (
        f"Resume Content:\n{resume_text}\n\n"
        f"Job Description:\n{job_description}"
        f"{build_contact_preservation_note(contacts)}"
    )
    if contact_only:
        prompt += """

CRITICAL: This is a CONTACT-ONLY scenario. Text extraction failed and only contact information was extracted. Create a minimal resume with:
1. Header with contact information
2. A clear note: "Resume content could not be extracted from the uploaded document. Please provide a text-based resume for full optimization."
3. Empty sections or sections with the extraction note
4. DO NOT generate fake content, projects, or experience"""
    return prompt


def strip_code_fences(text: str) -> str:
    """Removes markdown-style ```latex and ``` wrappers from model output."""
    text = re.sub(r"^```(?:latex|tex|ltx)?\s*", "", text.strip())
    text = re.sub(r"\s*```$", "", text.strip())
    return text.strip()
