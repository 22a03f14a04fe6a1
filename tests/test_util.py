import struct

import pytest

from devtree.util import (
    COMMON_OPTIONS,
    FatalError,
    UsageOption,
    decode_type,
    fdt_total_size,
    format_data,
    format_usage,
    get_escape_char,
    is_printable_string,
    join_path,
    read_fdt,
    version_string,
    write_fdt,
)


def _blob(totalsize, extra=b""):
    header = struct.pack(">II", 0xD00DFEED, totalsize)
    body = header + bytes(range(totalsize - len(header)))
    return body + extra


@pytest.mark.parametrize(
    "path,name,expected",
    [("a", "b", "a/b"), ("a/", "b", "a/b"), ("", "b", "/b")],
)
def test_join_path(path, name, expected):
    assert join_path(path, name) == expected


@pytest.mark.parametrize("data", [b"hello\0", b"ab\0cd\0"])
def test_printable_strings(data):
    assert is_printable_string(data) is True


@pytest.mark.parametrize("data", [b"", b"abc", b"a\0\0", b"\0", b"\x01\0"])
def test_not_printable_strings(data):
    assert is_printable_string(data) is False


def test_escape_simple():
    assert get_escape_char("n", 0) == ("\n", 1)
    assert get_escape_char("xt", 1) == ("\t", 2)


def test_escape_default_passes_through():
    assert get_escape_char("q", 0) == ("q", 1)
    assert get_escape_char('"', 0) == ('"', 1)


def test_escape_octal():
    assert get_escape_char("101", 0) == ("A", 3)
    assert get_escape_char("12z", 0) == ("\n", 2)
    assert get_escape_char("0", 0) == ("\0", 1)


def test_escape_hex():
    assert get_escape_char("x41", 0) == ("A", 3)
    assert get_escape_char("x4", 0) == ("\x04", 2)


def test_escape_hex_without_digits():
    with pytest.raises(FatalError):
        get_escape_char("xg", 0)


@pytest.mark.parametrize(
    "fmt,expected",
    [
        ("s", ("s", -1)),
        ("x", ("x", -1)),
        ("hhx", ("x", 1)),
        ("bi", ("i", 1)),
        ("hu", ("u", 2)),
        ("lx", ("x", 4)),
        ("hs", ("s", -1)),
    ],
)
def test_decode_type(fmt, expected):
    assert decode_type(fmt) == expected


@pytest.mark.parametrize("fmt", ["", "q", "xx", "h", "hhh", "lq"])
def test_decode_type_errors(fmt):
    with pytest.raises(ValueError):
        decode_type(fmt)


def test_format_data_empty():
    assert format_data(b"") == ""


def test_format_data_strings():
    assert format_data(b"ab\0cd\0") == ' = "ab", "cd"'


def test_format_data_cells():
    assert format_data(b"\0\0\0\x01\0\0\0\x02") == " = <0x00000001 0x00000002>"


def test_format_data_bytes():
    assert format_data(b"\x01\x02\x03") == " = [01 02 03]"


def test_total_size_reads_header():
    blob = _blob(24)
    assert fdt_total_size(blob) == 24


def test_total_size_short_blob():
    with pytest.raises(ValueError):
        fdt_total_size(b"\xd0\x0d")


def test_write_then_read_round_trip(tmp_path):
    blob = _blob(24, extra=b"trailing")
    target = tmp_path / "out.dtb"
    write_fdt(str(target), blob)
    data = read_fdt(str(target))
    assert data == blob[:24]
    assert fdt_total_size(data) == len(data)


def test_write_rejects_truncated_blob(tmp_path):
    blob = _blob(24)[:16]
    with pytest.raises(ValueError):
        write_fdt(str(tmp_path / "x.dtb"), blob)


def test_read_missing_file(tmp_path):
    with pytest.raises(OSError):
        read_fdt(str(tmp_path / "missing.dtb"))


def test_version_string():
    assert version_string() == "Version: DTC 1.4.4"


def test_usage_layout():
    options = (UsageOption("type", "Type of data", "t", True),) + COMMON_OPTIONS
    text = format_usage("tool <file>", "t:hV", options)
    assert text.startswith("Usage: tool <file>\n\nOptions: -[t:hV]\n")
    assert "  -h, --help" in text
    assert "--type <arg>" in text
    assert "Error:" not in text
    lines = text.splitlines()[3:]
    columns = {line.index(opt.help) for line, opt in zip(lines, options)}
    assert len(columns) == 1


def test_usage_without_short_option():
    options = (UsageOption("long-only", "Only long"),)
    text = format_usage("tool", "", options)
    assert text.splitlines()[3].startswith("      --long-only")


def test_usage_error_message():
    text = format_usage("tool", "hV", COMMON_OPTIONS, "unknown option")
    assert text.endswith("\nError: unknown option\n")