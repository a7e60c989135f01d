# cvperfecto/services/latex_postprocessor.py
"""
Post-processing applied to model-generated LaTeX before it is stored.

The steps run in a fixed order (hallucinated sections, template preamble,
contact links, pagination) and each is a no-op when its pattern is absent.
"""
import logging
import re
from typing import Callable, Dict, List, Optional

from cvperfecto.models.resume import ExtractedContacts
from cvperfecto.services.latex_template import LatexTemplate, preamble_bounds

logger = logging.getLogger(__name__)

# --- Section extraction from plain resume text ---
_NEXT = r"(?=\n(?:{}|\Z))"
SECTION_PATTERNS: Dict[str, "re.Pattern[str]"] = {
    "projects": re.compile(
        r"(?:projects?|portfolio|work samples?|personal projects?)[:\s]*(.*?)"
        + _NEXT.format("experience|education|skills|achievements|work|employment"),
        re.IGNORECASE | re.DOTALL,
    ),
    "experience": re.compile(
        r"(?:experience|work history|employment|professional experience|work experience|career)"
        r"[:\s]*(.*?)" + _NEXT.format("education|projects|skills|achievements"),
        re.IGNORECASE | re.DOTALL,
    ),
    "education": re.compile(
        r"(?:education|academic|qualifications?|university|college|degree)[:\s]*(.*?)"
        + _NEXT.format("experience|projects|skills|achievements|work"),
        re.IGNORECASE | re.DOTALL,
    ),
    "skills": re.compile(
        r"(?:skills?|technical skills?|competencies|technologies?|programming languages?)"
        r"[:\s]*(.*?)" + _NEXT.format("experience|education|projects|achievements|work"),
        re.IGNORECASE | re.DOTALL,
    ),
    "achievements": re.compile(
        r"(?:achievements?|awards?|honors?|certifications?|certificates?)[:\s]*(.*?)"
        + _NEXT.format("experience|education|projects|skills|work"),
        re.IGNORECASE | re.DOTALL,
    ),
}
PROJECT_SENTENCES = re.compile(r"(?:project|built|developed|created)[^.!?]*[.!?]", re.IGNORECASE)
EXPERIENCE_SENTENCES = re.compile(
    r"(?:worked|experience|employed|job|position)[^.!?]*[.!?]", re.IGNORECASE
)

PLACEHOLDER_PATTERNS = [
    re.compile(r"project name", re.IGNORECASE),
    re.compile(r"company", re.IGNORECASE),
    re.compile(r"duration", re.IGNORECASE),
    re.compile(r"description:", re.IGNORECASE),
    re.compile(r"contribution:", re.IGNORECASE),
    re.compile(r"metrics:", re.IGNORECASE),
    re.compile(r"achievement \d+", re.IGNORECASE),
    re.compile(r"degree, institution", re.IGNORECASE),
]

# LaTeX \section blocks checked against the original text
SECTION_HEADINGS = {
    "projects": r"[Pp]rojects?",
    "experience": r"[Ee]xperience",
    "achievements": r"[Aa]chievements?",
}
SECTION_BLOCK = r"\\section\*?\{{[^}}]*{}[^}}]*\}}.*?(?=\\section\*?\{{|\\end\{{document\}})"

HALLUCINATION_PATTERNS = [
    re.compile(r"developed a \w+ application", re.IGNORECASE),
    re.compile(r"created a \w+ system", re.IGNORECASE),
    re.compile(r"built a \w+ platform", re.IGNORECASE),
    re.compile(r"designed and implemented", re.IGNORECASE),
    re.compile(r"led a team of \d+", re.IGNORECASE),
    re.compile(r"managed \d+ projects", re.IGNORECASE),
    re.compile(r"increased \w+ by \d+%", re.IGNORECASE),
]

# --- Contact hrefs ---
HEADER_LINKS = re.compile(
    r"\\href\{mailto:|\\href\{tel:|linkedin\.com|github\.com|leetcode\.com", re.IGNORECASE
)
BEGIN_DOCUMENT = re.compile(r"\\begin\{document\}\s*", re.IGNORECASE)
HREF = r"\\href\{{{}[^}}]*\}}\{{([^}}]*)\}}"
HOST_HREFS = {
    "linkedin": re.compile(HREF.format(r"https?://(?:www\.)?linkedin\.com"), re.IGNORECASE),
    "github": re.compile(HREF.format(r"https?://(?:www\.)?github\.com"), re.IGNORECASE),
    "leetcode": re.compile(HREF.format(r"https?://(?:www\.)?leetcode\.com"), re.IGNORECASE),
}
GENERIC_HREF = re.compile(r"\\href\{(https?://[^}]*)\}\{([^}]*)\}", re.IGNORECASE)
KNOWN_HOSTS = re.compile(r"linkedin\.com|github\.com|leetcode\.com", re.IGNORECASE)
MAILTO_HREF = re.compile(HREF.format("mailto:"), re.IGNORECASE)
TEL_HREF = re.compile(HREF.format("tel:"), re.IGNORECASE)

# --- Pagination ---
END_DOCUMENT = re.compile(r"\\end\{document\}", re.IGNORECASE)
PAGE_BREAK_AT_END = re.compile(
    r"(\\newpage|\\pagebreak|\\clearpage)\s*(?=\\end\{document\})", re.IGNORECASE
)
VERTICAL_FILL_AT_END = re.compile(
    r"(\\vfill|\\vspace\*?\{[^}]*\})\s*(?=\\end\{document\})", re.IGNORECASE
)


def extract_resume_sections(text: str) -> Dict[str, str]:
    """Best-effort split of plain resume text into major sections."""
    sections: Dict[str, str] = {}
    for name, pattern in SECTION_PATTERNS.items():
        match = pattern.search(text)
        if match:
            sections[name] = match.group(1).strip()

    lowered = text.lower()
    if "projects" not in sections and "project" in lowered:
        mentions = PROJECT_SENTENCES.findall(text)
        if mentions:
            sections["projects"] = " ".join(mentions).strip()
    if "experience" not in sections and ("experience" in lowered or "worked" in lowered):
        mentions = EXPERIENCE_SENTENCES.findall(text)
        if mentions:
            sections["experience"] = " ".join(mentions).strip()

    logger.debug("Sections found in original text: %s", list(sections))
    return sections


def has_placeholder_content(text: str) -> bool:
    return any(pattern.search(text) for pattern in PLACEHOLDER_PATTERNS)


def remove_hallucinated_content(latex: str, original_text: str) -> str:
    """
    Drop \\section blocks the original resume has nothing for, when the
    generated block reads like a template placeholder.
    """
    original_sections = extract_resume_sections(original_text)
    out = latex
    for name, heading in SECTION_HEADINGS.items():
        if original_sections.get(name, "").strip():
            continue
        block = re.compile(SECTION_BLOCK.format(heading), re.IGNORECASE | re.DOTALL)

        def _drop_placeholder(match: "re.Match[str]", name: str = name) -> str:
            if has_placeholder_content(match.group(0)):
                logger.info("Removing %s section due to placeholder text", name)
                return ""
            return match.group(0)

        out = block.sub(_drop_placeholder, out)
    return out


def validate_content_fidelity(latex: str, original_text: str) -> bool:
    """False when the output looks like it gained content the original lacks."""
    original_sections = extract_resume_sections(original_text)
    generated_sections = extract_resume_sections(latex)
    for name in ("projects", "experience"):
        generated = generated_sections.get(name, "").strip()
        if not original_sections.get(name, "").strip() and len(generated) > 100:
            logger.warning("Potential hallucination in %s section: content added where none existed", name)
            return False

    for pattern in HALLUCINATION_PATTERNS:
        if pattern.search(latex) and not pattern.search(original_text):
            logger.warning("Potential hallucination: generated phrase %r", pattern.pattern)
            return False
    return True


def apply_template_preamble(latex: str, template: Optional[LatexTemplate]) -> str:
    """Swap the generated preamble for the template's."""
    if template is None:
        return latex
    template_preamble = template.preamble
    if not template_preamble:
        return latex
    bounds = preamble_bounds(latex)
    if bounds is None:
        return latex
    start, begin = bounds
    return latex[:start] + template_preamble + latex[begin:]


def build_contact_header(contacts: ExtractedContacts) -> str:
    parts: List[str] = []
    if contacts.phone:
        parts.append(f"\\href{{tel:{contacts.phone}}}{{{contacts.phone}}}")
    if contacts.email:
        parts.append(f"\\href{{mailto:{contacts.email}}}{{{contacts.email}}}")
    if contacts.linkedin:
        parts.append(f"\\href{{{contacts.linkedin}}}{{LinkedIn}}")
    if contacts.github:
        parts.append(f"\\href{{{contacts.github}}}{{GitHub}}")
    if contacts.leetcode:
        parts.append(f"\\href{{{contacts.leetcode}}}{{LeetCode}}")
    if contacts.website:
        parts.append(f"\\href{{{contacts.website}}}{{Website}}")
    if not parts:
        return ""
    return "\n\\begin{center}\n" + " $|$ ".join(parts) + "\n\\end{center}\n"


def _href_replacer(target: str, fallback_display: str) -> Callable[["re.Match[str]"], str]:
    def _replace(match: "re.Match[str]") -> str:
        display = match.group(1) or fallback_display
        return f"\\href{{{target}}}{{{display}}}"

    return _replace


def enforce_contact_links(latex: str, contacts: ExtractedContacts) -> str:
    """Put the exact extracted contact values back into the LaTeX hrefs."""
    out = latex

    if not HEADER_LINKS.search(out):
        header = build_contact_header(contacts)
        if header:
            out = BEGIN_DOCUMENT.sub(lambda m: m.group(0) + header, out, count=1)

    for field_name, pattern in HOST_HREFS.items():
        value = getattr(contacts, field_name)
        if value:
            out = pattern.sub(_href_replacer(value, value), out, count=1)

    if contacts.website:
        for match in GENERIC_HREF.finditer(out):
            if KNOWN_HOSTS.search(match.group(1)):
                continue
            display = match.group(2) or contacts.website
            replacement = f"\\href{{{contacts.website}}}{{{display}}}"
            out = out[: match.start()] + replacement + out[match.end():]
            break

    if contacts.email:
        out = MAILTO_HREF.sub(
            _href_replacer(f"mailto:{contacts.email}", contacts.email), out, count=1
        )
    if contacts.phone:
        out = TEL_HREF.sub(_href_replacer(f"tel:{contacts.phone}", contacts.phone), out, count=1)

    return out


def sanitize_latex_for_pagination(latex: str) -> str:
    """Strip trailing layout commands that push the resume onto an extra page."""
    out = re.sub(r"\n{3,}", "\n\n", latex)
    out = PAGE_BREAK_AT_END.sub("", out)
    out = VERTICAL_FILL_AT_END.sub("", out)

    parts = END_DOCUMENT.split(out)
    if len(parts) > 2:
        out = "\\end{document}".join(parts[:2])

    return re.sub(
        r"\s+(\\end\{document\})", lambda m: "\n" + m.group(1), out, count=1, flags=re.IGNORECASE
    )


def postprocess_latex(
    latex: str,
    original_text: str,
    contacts: ExtractedContacts,
    template: Optional[LatexTemplate] = None,
) -> str:
    out = remove_hallucinated_content(latex, original_text)
    if has_placeholder_content(out):
        logger.warning("Model output still contains placeholder-like text")
    out = apply_template_preamble(out, template)
    out = enforce_contact_links(out, contacts)
    return sanitize_latex_for_pagination(out)
