# devtree

`devtree` holds building blocks for device tree tooling. Device trees are
the hierarchical hardware descriptions that boot loaders and kernels use.
The package tracks where text came from in source files, and it finds
include files along a search path. It also reads and writes flattened
device tree blobs, decodes escapes and type specifiers, and formats
property values and usage text.

## Modules

### `devtree.srcpos`

- `SourceStack` is the stack of source files being read.
  - `SourceStack(depfile=None)` takes an optional text stream. When one is
    given, every file opened is written to it as ` <name>`.
  - `add_search_path(dirname)` appends a directory to the include search
    path.
  - `relative_open(fname)` opens a file and returns `(stream, fullname)`.
    It looks first in the directory of the current file, then in each
    search path in turn. `"-"` means standard input, named `<stdin>`.
  - `push(fname)` opens a file, makes it the current `SourceFile` and
    returns it. More than 100 nested files raise `FatalError`.
  - `pop()` closes the current file. It returns whether an enclosing file
    is still open.
  - `update(text)` advances the current line and column over `text` and
    returns the `SourcePosition` that the text covers. A newline starts a
    new line at column 1. A tab rounds the column up to a multiple of
    eight.
  - `set_line(name, line)` renames the current file and sets its line
    number, as a line marker does.
- `SourceFile` is an open file together with its directory and its current
  line and column.
- `SourcePosition` is a span of source text; the default value is the
  empty position. `str()` gives forms such as `file.dts:3.1-7` or
  `file.dts:2.4-5.1`. `format_error(prefix, message)` returns
  `"<prefix>: <position> <message>"`.

### `devtree.util`

- `join_path(path, name)` joins a directory and a file name with exactly
  one slash between them.
- `is_printable_string(data)` checks whether bytes are one or more
  non-empty, printable, NUL-terminated strings.
- `get_escape_char(s, i)` decodes the escape that starts at index `i`,
  just after the backslash. It handles `\a \b \t \n \v \f \r`, octal with
  up to three digits and `\x` with up to two hex digits. It returns
  `(char, next_index)`.
- `decode_type(fmt)` parses type specifiers such as `s`, `x`, `hx`, `hhu`
  or `bi` and returns `(type, size)`. The size is -1 for strings and when
  no qualifier is given. A bad format raises `ValueError`.
- `format_data(data)` renders a property value as quoted strings, as
  `<0x...>` cells or as `[..]` bytes, whichever fits.
- `read_fdt(filename)` and `write_fdt(filename, blob)` read and write
  blobs, with `-` standing for stdin and stdout. `write_fdt` writes
  exactly the number of bytes that the header's totalsize field gives,
  and `fdt_total_size(blob)` reads that field.
- `format_usage(synopsis, short_opts, options, errmsg=None)` builds an
  aligned option listing from `UsageOption` entries. `COMMON_OPTIONS`
  holds the standard `--help` and `--version` entries, and
  `version_string()` returns the version line.
- Fatal conditions raise `FatalError`.

## Example

```python
from devtree.srcpos import SourcePosition
from devtree.util import decode_type, format_data, is_printable_string, join_path

print(join_path("boards", "base.dts"))         # boards/base.dts
print(is_printable_string(b"okay\0"))          # True
print(decode_type("hhx"))                      # ('x', 1)
print(format_data(b"\x00\x00\x00\x01"))        # " = <0x00000001>"
print(SourcePosition(3, 1, 3, 7).format_error("Error", "bad token"))
# Error: <no-file>:3.1-7 bad token
```

## What this package does not do

This package has no in-memory tree of nodes and properties. It does not
parse device tree source text and does not compile source to blobs or
blobs back to source. It does not print a tree as source. It provides no
command-line tools: the usage and version helpers only build text for a
program to print.

## Testing

Install the package with its `test` extra, then run `pytest` from the
project root.