"""Unit tests for the LaTeX template and .ltx file output."""

import os
import time

import pytest

from cvperfecto.exceptions import InvalidLatexStructureError
from cvperfecto.services.latex_output import (
    cleanup_old_files,
    remove_file,
    validate_latex_structure,
    write_latex_file,
)
from cvperfecto.services.latex_template import LatexTemplate, preamble_bounds

VALID = "\\documentclass{article}\n\\begin{document}\nBody\n\\end{document}\n"


@pytest.mark.unit
class TestLatexTemplate:
    """Tests for LatexTemplate."""

    def test_bundled_template_loads(self):
        template = LatexTemplate.load()

        assert template is not None
        assert template.preamble.startswith("\\documentclass")
        assert "\\begin{document}" not in template.preamble
        assert "hyperref" in template.preamble

    def test_missing_file(self, tmp_path):
        assert LatexTemplate.load(str(tmp_path / "missing.tex")) is None

    def test_backtick_wrapper_stripped(self):
        template = LatexTemplate.from_text("export const t = `" + VALID + "`;\n")
        assert template.source == VALID

    def test_latex_quotes_kept(self, tmp_path):
        """Test that ``quoted'' text in a plain .tex template is left alone."""
        source = (
            "\\documentclass{article}\n"
            "\\newcommand{\\q}{``quoted''}\n"
            "\\usepackage{hyperref}\n"
            "\\begin{document}\nSay `hi' and ``bye''.\n\\end{document}\n"
        )
        path = tmp_path / "quoted.tex"
        path.write_text(source, encoding="utf-8")

        template = LatexTemplate.load(str(path))

        assert template.source == source
        assert template.preamble == source[: source.index("\\begin{document}")]

    def test_preamble_bounds(self):
        assert preamble_bounds(VALID) == (0, VALID.index("\\begin{document}"))
        assert preamble_bounds("\\begin{document}\\documentclass{x}") is None
        assert LatexTemplate("no markers").preamble is None


@pytest.mark.unit
class TestLatexOutput:
    """Tests for writing and cleaning up .ltx files."""

    def test_validate_structure(self):
        validate_latex_structure(VALID)
        with pytest.raises(InvalidLatexStructureError, match="documentclass"):
            validate_latex_structure("\\begin{document}\\end{document}")

    def test_write_and_remove(self, tmp_path):
        output_dir = str(tmp_path / "output")
        path = write_latex_file(VALID, output_dir)

        assert os.path.basename(path).startswith("resume_optimized_")
        assert path.endswith(".ltx")
        with open(path, encoding="utf-8") as handle:
            assert handle.read() == VALID

        remove_file(path)
        assert not os.path.exists(path)
        remove_file(path)  # already gone, only logged

    def test_invalid_latex_not_written(self, tmp_path):
        with pytest.raises(InvalidLatexStructureError):
            write_latex_file("Body", str(tmp_path))
        assert os.listdir(tmp_path) == []

    def test_cleanup_old_files(self, tmp_path):
        stale = tmp_path / "stale.ltx"
        fresh = tmp_path / "fresh.ltx"
        stale.write_text(VALID)
        fresh.write_text(VALID)
        two_days_ago = time.time() - 48 * 60 * 60
        os.utime(stale, (two_days_ago, two_days_ago))

        assert cleanup_old_files(str(tmp_path), max_age_hours=24) == 1
        assert sorted(os.listdir(tmp_path)) == ["fresh.ltx"]

    def test_cleanup_missing_directory(self, tmp_path):
        assert cleanup_old_files(str(tmp_path / "nope")) == 0
