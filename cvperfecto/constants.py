# Extraction heuristics. Defaults for the matching Settings fields; the
# values are empirical and kept as-is.
TEXT_CONFIDENCE_THRESHOLD = 50

GARBLED_MIN_LENGTH = 100
GARBLED_PRINTABLE_RATIO = 0.3
GARBLED_MAX_BINARY_PATTERNS = 10

CONTACT_ONLY_MAX_LENGTH = 200

PDF_OBJECT_PARSER_TIMEOUT = 10.0

SUPPORTED_EXTENSIONS = (".pdf", ".docx")
SUPPORTED_MIME_TYPES = (
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)

TEMPLATE_HINT_CHARS = 1200
