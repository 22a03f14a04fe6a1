"""Source file tracking: include search, nesting and line/column positions."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import BinaryIO, TextIO

from devtree.util import FatalError, join_path

MAX_SRCFILE_DEPTH = 100
TAB_SIZE = 8
STDIN_NAME = "<stdin>"


def _dirname(path: str) -> str | None:
    """Return everything before the last slash, or None when there is none."""
    head, slash, _ = path.rpartition("/")
    return head if slash else None


def _align(value: int, boundary: int) -> int:
    return (value + boundary - 1) & ~(boundary - 1)


@dataclass
class SourceFile:
    """An open source file together with the reader's current line and column."""

    name: str
    stream: BinaryIO
    dir: str | None = None
    lineno: int = 1
    colno: int = 1
    prev: SourceFile | None = field(default=None, repr=False)


@dataclass(frozen=True)
class SourcePosition:
    """A span of source text; the default value is the empty position."""

    first_line: int = 0
    first_column: int = 0
    last_line: int = 0
    last_column: int = 0
    file: SourceFile | None = None

    def __str__(self) -> str:
        fname = "<no-file>"
        if self.file is not None and self.file.name:
            fname = self.file.name
        if self.first_line != self.last_line:
            return (
                f"{fname}:{self.first_line}.{self.first_column}"
                f"-{self.last_line}.{self.last_column}"
            )
        if self.first_column != self.last_column:
            return (
                f"{fname}:{self.first_line}.{self.first_column}"
                f"-{self.last_column}"
            )
        return f"{fname}:{self.first_line}.{self.first_column}"

    def format_error(self, prefix: str, message: str) -> str:
        """Return an error line naming this position."""
        return f"{prefix}: {self} {message}"


class SourceStack:
    """The stack of source files being read, with an include search path."""

    def __init__(self, depfile: TextIO | None = None) -> None:
        self.search_paths: list[str] = []
        self.current: SourceFile | None = None
        self.depfile = depfile
        self._depth = 0

    def add_search_path(self, dirname: str) -> None:
        """Append a directory to the list searched for relative file names."""
        self.search_paths.append(dirname)

    @staticmethod
    def _try_open(dirname: str | None, fname: str) -> tuple[BinaryIO, str]:
        if dirname is None or fname.startswith("/"):
            fullname = fname
        else:
            fullname = join_path(dirname, fname)
        return open(fullname, "rb"), fullname

    def _open_on_path(self, fname: str) -> tuple[BinaryIO, str]:
        cur_dir = self.current.dir if self.current is not None else None
        candidates = [cur_dir, *self.search_paths]
        last_error: OSError | None = None
        for dirname in candidates:
            try:
                return self._try_open(dirname, fname)
            except OSError as exc:
                last_error = exc
        reason = os.strerror(last_error.errno) if last_error and last_error.errno else str(last_error)
        raise FatalError(f'Couldn\'t open "{fname}": {reason}')

    def relative_open(self, fname: str) -> tuple[BinaryIO, str]:
        """Open a file, searching the current file's directory and then the
        search path; "-" means standard input.

        Returns the open binary stream and the name it was found under.
        """
        if fname == "-":
            stream, fullname = sys.stdin.buffer, STDIN_NAME
        else:
            stream, fullname = self._open_on_path(fname)
        if self.depfile is not None:
            self.depfile.write(f" {fullname}")
        return stream, fullname

    def push(self, fname: str) -> SourceFile:
        """Open a file and make it the current one."""
        if self._depth >= MAX_SRCFILE_DEPTH:
            raise FatalError("Includes nested too deeply")
        stream, fullname = self.relative_open(fname)
        self._depth += 1
        srcfile = SourceFile(
            name=fullname,
            stream=stream,
            dir=_dirname(fullname),
            prev=self.current,
        )
        self.current = srcfile
        return srcfile

    def pop(self) -> bool:
        """Close the current file; return whether an enclosing file remains."""
        srcfile = self.current
        if srcfile is None:
            raise FatalError("No source file to close")
        self.current = srcfile.prev
        self._depth -= 1
        if srcfile.stream is not sys.stdin.buffer:
            try:
                srcfile.stream.close()
            except OSError as exc:
                raise FatalError(
                    f'Error closing "{srcfile.name}": {exc.strerror or exc}'
                ) from exc
        return self.current is not None

    def _require_current(self) -> SourceFile:
        if self.current is None:
            raise FatalError("No source file is open")
        return self.current

    def update(self, text: str) -> SourcePosition:
        """Advance over text in the current file and return the span it covers."""
        srcfile = self._require_current()
        first_line, first_column = srcfile.lineno, srcfile.colno
        for ch in text:
            if ch == "\n":
                srcfile.lineno += 1
                srcfile.colno = 1
            elif ch == "\t":
                srcfile.colno = _align(srcfile.colno, TAB_SIZE)
            else:
                srcfile.colno += 1
        return SourcePosition(
            first_line,
            first_column,
            srcfile.lineno,
            srcfile.colno,
            srcfile,
        )

    def set_line(self, name: str, line: int) -> None:
        """Rename the current file and set its line number, as a line marker does."""
        srcfile = self._require_current()
        srcfile.name = name
        srcfile.lineno = line