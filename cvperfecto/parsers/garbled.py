# cvperfecto/parsers/garbled.py
import logging
import re

from cvperfecto.constants import (
    GARBLED_MAX_BINARY_PATTERNS,
    GARBLED_MIN_LENGTH,
    GARBLED_PRINTABLE_RATIO,
)

logger = logging.getLogger(__name__)

NON_PRINTABLE = re.compile(r"[^\x20-\x7E]")

# PDF object syntax that leaks into text when a parser reads raw structure
BINARY_PATTERNS = [
    re.compile(r"endstream endobj"),
    re.compile(r"/Filter /FlateDecode"),
    re.compile(r"/Length \d+"),
    re.compile(r"/Type /[A-Za-z]+"),
    re.compile(r"/Contents \d+ 0 R"),
]


def printable_ratio(text: str) -> float:
    if not text:
        return 0.0
    printable = len(NON_PRINTABLE.sub("", text))
    return printable / len(text)


def count_binary_patterns(text: str) -> int:
    return sum(len(pattern.findall(text)) for pattern in BINARY_PATTERNS)


def is_garbled(
    text: str,
    min_length: int = GARBLED_MIN_LENGTH,
    min_printable_ratio: float = GARBLED_PRINTABLE_RATIO,
    max_binary_patterns: int = GARBLED_MAX_BINARY_PATTERNS,
) -> bool:
    """
    Heuristically decide whether extracted text is PDF structure or binary
    data rather than readable content. Short input is never garbled.
    """
    if not text or len(text) < min_length:
        return False

    ratio = printable_ratio(text)
    pattern_count = count_binary_patterns(text)
    garbled = ratio < min_printable_ratio or pattern_count > max_binary_patterns

    logger.debug(
        "Text analysis: length=%d printable_ratio=%.3f binary_patterns=%d garbled=%s",
        len(text),
        ratio,
        pattern_count,
        garbled,
    )
    return garbled
