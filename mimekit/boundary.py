"""Reading the parts of a multipart body, one boundary-delimited section at a time."""

from __future__ import annotations

from typing import BinaryIO

_CR = 0x0D
_LF = 0x0A
_CHUNK = 4096

# Whitespace as understood when deciding whether a delimiter line has ended.
_SPACE_BYTES = frozenset(b" \t\n\v\f\r\x85\xa0")

# Blank-line prefixes: a boundary is never looked for right before these.
_EARLY_WHITESPACE = (b"\n\n", b"\n\r", b"\r\n\r", b"\r\n\n")


class NoBoundaryTerminatorError(ValueError):
    """The expected boundary delimiter or terminator was not found after a part."""


class _Source:
    """A byte stream that can be peeked without consuming it.

    Seekable streams are peeked by reading and seeking back, so the stream position
    always reflects exactly what has been consumed. Other streams are buffered here.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        try:
            self._seekable = bool(stream.seekable())
        except AttributeError:
            self._seekable = False
        self._pending = bytearray()

    def _read(self, size: int) -> bytes:
        return self._stream.read(size) or b""

    def peek(self, size: int) -> bytes:
        if self._seekable:
            position = self._stream.tell()
            data = self._read(size)
            self._stream.seek(position)
            return data
        while len(self._pending) < size:
            chunk = self._read(size - len(self._pending))
            if not chunk:
                break
            self._pending += chunk
        return bytes(self._pending[:size])

    def read_byte(self) -> bytes:
        if self._pending:
            byte = bytes(self._pending[:1])
            del self._pending[:1]
            return byte
        return self._read(1)

    def read_line(self) -> bytes:
        if not self._pending:
            return self._stream.readline() or b""
        end = self._pending.find(b"\n")
        if end >= 0:
            line = bytes(self._pending[: end + 1])
            del self._pending[: end + 1]
            return line
        line = bytes(self._pending) + (self._stream.readline() or b"")
        self._pending.clear()
        return line


class BoundaryReader:
    """Reads the content of successive parts of a multipart body.

    Call :meth:`next` to move over a boundary to the next part, then :meth:`read`
    until it returns ``b""`` to get that part's content.
    """

    def __init__(self, stream: BinaryIO, boundary: str) -> None:
        full = b"\n--" + boundary.encode("utf-8", "surrogateescape") + b"--"
        self._source = _Source(stream)
        self._nl_prefix = full[:-2]
        self._prefix = full[1:-2]
        self._final = full[1:]
        self._buffer = bytearray()
        self.finished = False
        self.parts_read = 0
        self.at_part_start = False
        # Set when the input ended without the boundary being found.
        self.unbounded = False

    def _take(self, size: int) -> bytes:
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        if self.at_part_start and data:
            self.at_part_start = False
        return data

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes of the current part; ``b""`` marks its end.

        A negative size reads the rest of the part.
        """
        if size is None or size < 0:
            collected = bytearray()
            while chunk := self.read(_CHUNK):
                collected += chunk
            return bytes(collected)
        if size == 0:
            return b""
        if len(self._buffer) >= size:
            return self._take(size)

        for _ in range(size):
            head = self._source.peek(1)
            if head:
                padding = 1
                check = False
                if head[0] == _CR:
                    padding = 2
                    check = True
                elif head[0] == _LF:
                    check = True
                elif self.at_part_start:
                    # A delimiter may follow immediately at the very start of a part.
                    padding = 0
                    check = True

                if check:
                    wanted = len(self._nl_prefix) + padding + 1
                    peek = self._source.peek(wanted)
                    if len(peek) < wanted:
                        self.unbounded = True
                    elif not peek.startswith(_EARLY_WHITESPACE):
                        window = peek[padding:]
                        if self.is_delimiter(window) or self.is_terminator(window):
                            return self._take(size)

            byte = self._source.read_byte()
            if not byte:
                break
            self._buffer += byte

        return self._take(size)

    def next(self) -> bool:
        """Move over the boundary to the next part; return False when no parts remain.

        Raises EOFError if the input ends before a boundary is found, and
        NoBoundaryTerminatorError if something other than a boundary follows a part.
        """
        if self.finished:
            return False
        if self.parts_read > 0:
            # Drain what is left of the current part.
            while self.read(_CHUNK):
                pass
        while True:
            line = self._source.read_line()
            at_eof = not line.endswith(b"\n")
            if line[:1] in (b"\r", b"\n"):
                continue
            if self.is_terminator(line):
                self.finished = True
                return False
            if not at_eof and self.is_delimiter(line):
                self.parts_read += 1
                self.at_part_start = True
                return True
            if at_eof:
                raise EOFError("EOF")
            if self.parts_read == 0:
                # Preamble before the first delimiter.
                continue
            self.finished = True
            prefix = self._prefix.decode("utf-8", "surrogateescape")
            got = line.decode("utf-8", "surrogateescape")
            raise NoBoundaryTerminatorError(
                f"expected boundary not present: expecting boundary {prefix!r}, got {got!r}"
            )

    def is_delimiter(self, buf: bytes) -> bool:
        """True for ``--BOUNDARY`` followed by whitespace, but not ``--BOUNDARY--``."""
        index = buf.find(self._prefix)
        if index < 0:
            return False
        rest = buf[index + len(self._prefix) :]
        return bool(rest) and rest[0] in _SPACE_BYTES

    def is_terminator(self, buf: bytes) -> bool:
        """True if the buffer holds the closing ``--BOUNDARY--``."""
        return self._final in buf