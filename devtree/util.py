"""Shared helpers: path joining, escapes, blob I/O, type decoding and usage text."""

from __future__ import annotations

import struct
import sys
from dataclasses import dataclass

DTC_VERSION = "DTC 1.4.4"

COMMON_SHORT_OPTS = "hV"

TYPE_USAGE = (
    "<type>\ts=string, i=int, u=unsigned, x=hex\n"
    "\tOptional modifier prefix:\n"
    "\t\thh or b=byte, h=2 byte, l=4 byte (default)"
)

_ARG_PLACEHOLDER = "<arg>"
_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "t": "\t",
    "n": "\n",
    "v": "\v",
    "f": "\f",
    "r": "\r",
}
_OCT_DIGITS = "01234567"
_HEX_DIGITS = "0123456789abcdefABCDEF"
_HEADER_TOTALSIZE = struct.Struct(">I")


class FatalError(Exception):
    """An unrecoverable error; the message describes what went wrong."""


@dataclass(frozen=True)
class UsageOption:
    """One long option as shown in a usage message."""

    name: str
    help: str
    short: str | None = None
    has_arg: bool = False


COMMON_OPTIONS = (
    UsageOption("help", "Print this help and exit", "h"),
    UsageOption("version", "Print version and exit", "V"),
)


def join_path(path: str, name: str) -> str:
    """Join a directory and a file name with exactly one slash between them."""
    if path.endswith("/"):
        return path + name
    return f"{path}/{name}"


def _is_print(byte: int) -> bool:
    return 0x20 <= byte <= 0x7E


def is_printable_string(data: bytes) -> bool:
    """Tell whether data is one or more non-empty printable NUL-terminated strings."""
    if not data or data[-1] != 0:
        return False
    return all(
        segment and all(_is_print(b) for b in segment)
        for segment in data[:-1].split(b"\0")
    )


def _digit_prefix(text: str, digits: str) -> str:
    end = 0
    while end < len(text) and text[end] in digits:
        end += 1
    return text[:end]


def get_escape_char(s: str, i: int) -> tuple[str, int]:
    """Decode the escape sequence whose first character (after the backslash)
    is at index i of s.

    Returns the decoded character and the index just past the sequence.
    """
    if i >= len(s):
        return "\0", i + 1
    c = s[i]
    if c in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[c], i + 1
    if c in _OCT_DIGITS:
        digits = _digit_prefix(s[i:i + 3], _OCT_DIGITS)
        return chr(int(digits, 8) & 0xFF), i + len(digits)
    if c == "x":
        digits = _digit_prefix(s[i + 1:i + 3], _HEX_DIGITS)
        if not digits:
            raise FatalError("\\x used with no following hex digits")
        return chr(int(digits, 16)), i + 1 + len(digits)
    return c, i + 1


def read_fdt(filename: str) -> bytes:
    """Read a whole blob from a file, or from standard input when filename is "-"."""
    if filename == "-":
        return sys.stdin.buffer.read()
    with open(filename, "rb") as f:
        return f.read()


def fdt_total_size(blob: bytes) -> int:
    """Return the totalsize field of a flattened device tree header."""
    if len(blob) < 8:
        raise ValueError("blob too short to hold a device tree header")
    return _HEADER_TOTALSIZE.unpack_from(blob, 4)[0]


def write_fdt(filename: str, blob: bytes) -> None:
    """Write the blob (totalsize bytes of it) to a file, or to stdout for "-"."""
    size = fdt_total_size(blob)
    if len(blob) < size:
        raise ValueError(
            f"blob holds {len(blob)} bytes but its header claims {size}"
        )
    payload = bytes(blob[:size])
    if filename == "-":
        sys.stdout.buffer.write(payload)
        sys.stdout.buffer.flush()
        return
    with open(filename, "wb") as f:
        f.write(payload)


def decode_type(fmt: str) -> tuple[str, int]:
    """Decode a type string such as "s", "x", "hx", "hhu" or "bi".

    Returns (type character, byte size); the size is -1 for strings and
    when no size qualifier is given. Raises ValueError on a bad format.
    """
    if not fmt:
        raise ValueError("empty type format")
    i = 0
    qualifier = ""
    if fmt[0] in "hlLb":
        qualifier = fmt[0]
        i = 1
        if i < len(fmt) and fmt[i] == qualifier:
            if fmt[i] == "h":
                qualifier = "b"
            i += 1
    if i >= len(fmt) or fmt[i] not in "iuxs":
        raise ValueError(f"invalid type format {fmt!r}")
    kind = fmt[i]
    size = -1
    if kind != "s":
        size = {"b": 1, "h": 2, "l": 4}.get(qualifier, -1)
    if i + 1 != len(fmt):
        raise ValueError(f"invalid type format {fmt!r}")
    return kind, size


def format_data(data: bytes) -> str:
    """Render property data as strings, cells or bytes; empty data gives ""."""
    if not data:
        return ""
    if is_printable_string(data):
        strings = data[:-1].split(b"\0")
        return " = " + ", ".join(f'"{s.decode("ascii")}"' for s in strings)
    if len(data) % 4 == 0:
        cells = struct.unpack(f">{len(data) // 4}I", data)
        return " = <" + " ".join(f"0x{cell:08x}" for cell in cells) + ">"
    return " = [" + " ".join(f"{b:02x}" for b in data) + "]"


def version_string() -> str:
    """Return the version line shown by the tools."""
    return f"Version: {DTC_VERSION}"


def format_usage(synopsis, short_opts, options, errmsg=None) -> str:
    """Build a usage message listing the given options, aligned in columns."""
    arg_len = len(_ARG_PLACEHOLDER) + 1
    optlen = max(
        (
            len(opt.name) + 1 + (arg_len if opt.has_arg else 0)
            for opt in options
        ),
        default=0,
    )
    lines = [f"Usage: {synopsis}\n\nOptions: -[{short_opts}]\n"]
    for opt in options:
        prefix = "      " if opt.short is None else f"  -{opt.short}, "
        if opt.has_arg:
            pad = " " * (optlen - len(opt.name) - arg_len)
            flag = f"--{opt.name} {_ARG_PLACEHOLDER}{pad}"
        else:
            flag = f"--{opt.name:<{optlen}}"
        lines.append(f"{prefix}{flag}{opt.help}\n")
    if errmsg:
        lines.append(f"\nError: {errmsg}\n")
    return "".join(lines)