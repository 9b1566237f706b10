import pytest

from mimequery.core.services.error_codes import ErrorCode, MimeQueryError
from mimequery.core.services.line_scan import (
    first_line_starting_with,
    line_containing,
    physical_lines,
    read_text_file,
    value_after,
)


def test_line_containing_bounds_the_physical_line():
    text = "[S]\nkey=one\nneedle=two\nlast=three"
    found = line_containing(text, "needle")
    assert text[found.line_start : found.line_end] == "needle=two"
    assert found.match == text.index("needle")


def test_line_containing_last_line_without_newline():
    text = "a\nb=needle"
    found = line_containing(text, "needle")
    assert found.line_end == len(text)
    assert text[found.line_start : found.line_end] == "b=needle"


def test_line_containing_requires_section():
    assert line_containing("x=needle", "needle", after_section="[S]") is None
    assert line_containing("[S]\nx=needle", "needle", after_section="[S]") is not None


def test_line_containing_missing_needle():
    assert line_containing("[S]\nx=y", "needle") is None


def test_value_after_respects_bounds():
    text = "abc\nkey=value\nother=x"
    start = text.index("key")
    end = text.index("\n", start)
    assert value_after(text, start, end) == "value"
    assert value_after("novalue\nx=y", 0, 7) is None


def test_first_line_starting_with():
    text = "TryExec=foo\nExec=bar\nExec=baz"
    assert first_line_starting_with(text, "Exec") == "Exec=bar"
    assert first_line_starting_with(text, "Icon") is None


@pytest.mark.parametrize("separator", ["\x0b", "\x0c", "\x1c", "\x85", "\u2028", "\u2029"])
def test_first_line_starting_with_breaks_only_on_newline(separator):
    text = f"[Desktop Entry]\nName=x{separator}Exec=/tmp/evil\nExec=/usr/bin/real\n"
    assert first_line_starting_with(text, "Exec") == "Exec=/usr/bin/real"


def test_physical_lines_strip_one_carriage_return():
    assert list(physical_lines("a\r\nb\r\r\nc\x0cd")) == ["a", "b\r", "c\x0cd"]


def test_read_text_file(tmp_path):
    path = tmp_path / "f"
    path.write_text("héllo", encoding="utf-8")
    assert read_text_file(path) == "héllo"


def test_read_text_file_invalid_utf8(tmp_path):
    path = tmp_path / "bad"
    path.write_bytes(b"[Default Applications]\n\xff\xfe")
    with pytest.raises(MimeQueryError) as exc_info:
        read_text_file(path)
    assert exc_info.value.code == ErrorCode.INVALID_ENCODING
    assert exc_info.value.details["path"] == str(path)


def test_read_text_file_io_failure(tmp_path):
    # A directory exists but cannot be read as a file.
    with pytest.raises(MimeQueryError) as exc_info:
        read_text_file(tmp_path)
    assert exc_info.value.code == ErrorCode.IO_FAILURE
