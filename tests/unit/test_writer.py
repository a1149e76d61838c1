"""
Unit Tests for Output Writer
============================
"""

import io
from unittest.mock import patch

import pytest

from spec2html.core.errors import WriteFailure
from spec2html.core.output.writer import resolve_destination, write_output


class TestWriteOutput:
    """Test destination handling."""

    @pytest.mark.parametrize("destination", [None, ""])
    def test_empty_destination_discards(self, workdir, destination):
        """No destination means nothing is written anywhere."""
        stream = io.StringIO()
        write_output(destination, "<p>x</p>", stdout=stream)
        assert stream.getvalue() == ""
        assert list(workdir.iterdir()) == []

    def test_stdout_is_verbatim(self):
        """The stdout destination gets the HTML with nothing added."""
        stream = io.StringIO()
        html = "<!DOCTYPE html>\n<html><body>é</body></html>"
        write_output("stdout", html, stdout=stream)
        assert stream.getvalue() == html

    def test_stdout_defaults_to_sys_stdout(self, capsys):
        """Without a stream the process stdout is used."""
        write_output("stdout", "<p>out</p>")
        captured = capsys.readouterr()
        assert captured.out == "<p>out</p>"
        assert captured.err == ""

    def test_writes_utf8_file(self, workdir):
        """Relative destinations are written under the working directory."""
        write_output("out.html", "<p>café</p>")
        assert (workdir / "out.html").read_bytes() == "<p>café</p>".encode("utf-8")

    def test_overwrites_existing_file(self, workdir):
        """Existing files are replaced."""
        target = workdir / "out.html"
        target.write_text("old content that is longer", encoding="utf-8")
        write_output("out.html", "new")
        assert target.read_text(encoding="utf-8") == "new"

    def test_absolute_destination(self, tmp_path):
        """Absolute destinations are used as given."""
        target = tmp_path / "abs.html"
        write_output(str(target), "<p></p>")
        assert target.read_text(encoding="utf-8") == "<p></p>"

    def test_missing_directory_fails(self, workdir):
        """Unwritable paths raise WriteFailure."""
        with pytest.raises(WriteFailure) as exc_info:
            write_output("missing/dir/out.html", "<p></p>")
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_stream_errors_become_write_failure(self):
        """Broken stdout streams raise WriteFailure."""
        stream = io.StringIO()
        with patch.object(stream, "write", side_effect=BrokenPipeError("closed")):
            with pytest.raises(WriteFailure, match="stdout"):
                write_output("stdout", "<p></p>", stdout=stream)

    def test_unencodable_stdout_becomes_write_failure(self):
        """A stdout that cannot encode the document raises WriteFailure."""
        stream = io.TextIOWrapper(io.BytesIO(), encoding="ascii")
        with pytest.raises(WriteFailure, match="stdout") as exc_info:
            write_output("stdout", "<p>café</p>", stdout=stream)
        assert isinstance(exc_info.value.__cause__, UnicodeEncodeError)


class TestResolveDestination:
    """Test path resolution."""

    def test_relative_resolves_against_cwd(self, workdir):
        assert resolve_destination("a/b.html") == (workdir / "a" / "b.html").resolve()

    def test_absolute_unchanged(self, tmp_path):
        target = tmp_path / "x.html"
        assert resolve_destination(str(target)) == target
