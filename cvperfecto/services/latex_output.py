# cvperfecto/services/latex_output.py
import logging
import os
import time

from cvperfecto.exceptions import InvalidLatexStructureError

logger = logging.getLogger(__name__)


def validate_latex_structure(latex: str) -> None:
    if "\\documentclass" not in latex or "\\end{document}" not in latex:
        raise InvalidLatexStructureError()


def write_latex_file(latex: str, output_dir: str) -> str:
    """Write a validated .ltx file and return its path."""
    validate_latex_structure(latex)
    os.makedirs(output_dir, exist_ok=True)
    file_path = os.path.join(output_dir, f"resume_optimized_{int(time.time() * 1000)}.ltx")
    with open(file_path, "w", encoding="utf-8") as handle:
        handle.write(latex)
    return file_path


def remove_file(file_path: str) -> None:
    try:
        os.remove(file_path)
        logger.info("Cleaned up file: %s", file_path)
    except OSError as e:
        logger.warning("Failed to clean up file %s: %s", file_path, e)


def cleanup_old_files(directory: str, max_age_hours: int = 24) -> int:
    """Delete files older than ``max_age_hours``. Returns how many were removed."""
    if not os.path.isdir(directory):
        return 0
    cutoff = time.time() - max_age_hours * 60 * 60
    removed = 0
    for name in os.listdir(directory):
        file_path = os.path.join(directory, name)
        try:
            if os.path.isfile(file_path) and os.path.getmtime(file_path) < cutoff:
                os.remove(file_path)
                removed += 1
                logger.info("Deleted old file: %s", name)
        except OSError as e:
            logger.warning("Failed to clean up %s: %s", file_path, e)
    return removed
