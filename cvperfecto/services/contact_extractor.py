# cvperfecto/services/contact_extractor.py
import re
from typing import Iterable, List, Optional, Sequence

from cvperfecto.models.resume import ExtractedContacts

EMAIL_PATTERN = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)
PHONE_PATTERN = re.compile(r"\+?\d[\d\s().-]{7,}\d")
URL_PATTERN = re.compile(
    r"https?://[\w.-]+(?:/[\w\-._~:/?#\[\]@!$&'()*+,;=%]*)?", re.IGNORECASE
)

# Host-specific fields and the URL shape that claims them
PROFILE_HOSTS = {
    "linkedin": re.compile(r"linkedin\.com/in/", re.IGNORECASE),
    "github": re.compile(r"github\.com/", re.IGNORECASE),
    "leetcode": re.compile(r"leetcode\.com/", re.IGNORECASE),
    "twitter": re.compile(r"twitter\.com/", re.IGNORECASE),
}
SPECIAL_HOSTS = [
    re.compile(r"linkedin\.com", re.IGNORECASE),
    re.compile(r"github\.com", re.IGNORECASE),
    re.compile(r"leetcode\.com", re.IGNORECASE),
    re.compile(r"twitter\.com", re.IGNORECASE),
]
WEB_SCHEME = re.compile(r"https?://", re.IGNORECASE)
TRAILING_PUNCTUATION = re.compile(r"\)?\.?$")


def normalize_url(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    return TRAILING_PUNCTUATION.sub("", url)


def normalize_phone(raw: str) -> str:
    return re.sub(r"[^\d+]", "", raw)


def find_urls(text: str) -> List[str]:
    return [match.group(0).strip() for match in URL_PATTERN.finditer(text)]


def _first_matching(urls: Sequence[str], pattern: "re.Pattern[str]") -> Optional[str]:
    return next((url for url in urls if pattern.search(url)), None)


def extract_contacts(text: str, extra_urls: Iterable[str] = ()) -> ExtractedContacts:
    """
    Pull email, phone and profile links out of resume text. URLs found in the
    text come before ``extra_urls``; within each field the first match wins.
    """
    normalized = re.sub(r"\s+", " ", text or "").strip()
    contacts = ExtractedContacts()

    email_match = EMAIL_PATTERN.search(normalized)
    if email_match:
        contacts.email = email_match.group(0)

    phone_match = PHONE_PATTERN.search(normalized)
    if phone_match:
        contacts.phone = normalize_phone(phone_match.group(0))

    urls = find_urls(normalized) + [url.strip() for url in extra_urls if url and url.strip()]

    for field_name, pattern in PROFILE_HOSTS.items():
        setattr(contacts, field_name, normalize_url(_first_matching(urls, pattern)))

    if not contacts.website:
        # mailto:/tel: targets from document structure are not websites
        other = next(
            (
                url
                for url in urls
                if WEB_SCHEME.match(url) and not any(host.search(url) for host in SPECIAL_HOSTS)
            ),
            None,
        )
        contacts.website = normalize_url(other)

    return contacts


def build_fallback_resume_text(contacts: ExtractedContacts) -> str:
    """Synthetic resume text for documents where only contacts survived."""
    return "\n".join(
        f"{label}: {value}" for label, value in contacts.non_empty_items() if label != "Twitter"
    )
