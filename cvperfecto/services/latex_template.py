# cvperfecto/services/latex_template.py
import logging
import os
import re
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    "templates",
    "resume_template.tex",
)

DOCUMENTCLASS = "\\documentclass"
BEGIN_DOCUMENT = "\\begin{document}"

# `export const template = `...`;` with no LaTeX ahead of the literal
JS_TEMPLATE_LITERAL = re.compile(r"^[^`\\]*=\s*`(.*)`[^`]*$", re.DOTALL)


def preamble_bounds(latex: str) -> Optional[tuple]:
    """(start, end) of the preamble, or None unless both markers appear in order."""
    start = latex.find(DOCUMENTCLASS)
    begin = latex.find(BEGIN_DOCUMENT)
    if start == -1 or begin == -1 or begin <= start:
        return None
    return start, begin


@dataclass(frozen=True)
class LatexTemplate:
    """Reference resume template, loaded once before requests are served."""

    source: str

    @property
    def preamble(self) -> Optional[str]:
        bounds = preamble_bounds(self.source)
        if bounds is None:
            return None
        return self.source[bounds[0]:bounds[1]]

    @classmethod
    def from_text(cls, raw: str) -> "LatexTemplate":
        match = JS_TEMPLATE_LITERAL.match(raw)
        if match:
            raw = match.group(1)
        return cls(source=raw)

    @classmethod
    def load(cls, path: Optional[str] = None) -> Optional["LatexTemplate"]:
        path = path or DEFAULT_TEMPLATE_PATH
        try:
            with open(path, "r", encoding="utf-8") as handle:
                template = cls.from_text(handle.read())
        except OSError as e:
            logger.warning("Failed to load LaTeX template from %s: %s", path, e)
            return None
        logger.info("Loaded LaTeX template from %s", path)
        return template
