"""MIME header storage, tolerant header parsing and RFC 2047 helpers."""

from __future__ import annotations

import base64
import codecs
import re
import string
from collections.abc import Iterable, Iterator, Mapping
from typing import BinaryIO, Union

from .errors import MALFORMED_HEADER, MimeError

# Content dispositions
CD_ATTACHMENT = "attachment"
CD_INLINE = "inline"

# Content types
CT_APP_PREFIX = "application/"
CT_APP_OCTET_STREAM = "application/octet-stream"
CT_MULTIPART_ALTERNATIVE = "multipart/alternative"
CT_MULTIPART_MIXED = "multipart/mixed"
CT_MULTIPART_PREFIX = "multipart/"
CT_MULTIPART_RELATED = "multipart/related"
CT_TEXT_PREFIX = "text/"
CT_TEXT_PLAIN = "text/plain"
CT_TEXT_HTML = "text/html"

# Transfer encodings
CTE_7BIT = "7bit"
CTE_8BIT = "8bit"
CTE_BASE64 = "base64"
CTE_BINARY = "binary"
CTE_QUOTED_PRINTABLE = "quoted-printable"

# Header names
HN_CONTENT_DISPOSITION = "Content-Disposition"
HN_CONTENT_ENCODING = "Content-Transfer-Encoding"
HN_CONTENT_ID = "Content-ID"
HN_CONTENT_TYPE = "Content-Type"
HN_MIME_VERSION = "MIME-Version"

# Header parameters
HP_BOUNDARY = "boundary"
HP_CHARSET = "charset"
HP_FILE = "file"
HP_FILENAME = "filename"
HP_NAME = "name"
HP_MOD_DATE = "modification-date"

UTF8 = "utf-8"

ADDRESS_HEADERS = frozenset(
    {
        "bcc",
        "cc",
        "delivered-to",
        "from",
        "reply-to",
        "to",
        "sender",
        "resent-bcc",
        "resent-cc",
        "resent-from",
        "resent-reply-to",
        "resent-to",
        "resent-sender",
    }
)

_TOKEN_CHARS = frozenset(string.ascii_letters + string.digits + "!#$%&'*+-.^_`|~")
_WS = b" \t\r\n"
_WS_RE = re.compile(rb"[ \t\r\n]")
_LWSP_SPLIT = re.compile(r"[ \t\r\n]+")
_MAX_ENCODED_WORD_LEN = 75

HeaderItems = Union["Header", Mapping[str, Union[str, Iterable[str]]], Iterable[tuple]]


def canonical_key(name: str) -> str:
    """Return the canonical form of a header name, e.g. ``content-type`` -> ``Content-Type``.

    Names holding characters that are not valid in a header token are returned unchanged.
    """
    if any(ch not in _TOKEN_CHARS for ch in name):
        return name
    chars = []
    upper = True
    for ch in name:
        if upper and "a" <= ch <= "z":
            ch = ch.upper()
        elif not upper and "A" <= ch <= "Z":
            ch = ch.lower()
        chars.append(ch)
        upper = ch == "-"
    return "".join(chars)


class Header:
    """An ordered, case-insensitive, multi-valued collection of header fields."""

    def __init__(self, items: HeaderItems | None = None) -> None:
        self._fields: dict[str, list[str]] = {}
        if items is None:
            return
        if isinstance(items, Header):
            pairs: Iterable[tuple] = [(k, v) for k in items for v in items.get_all(k)]
        elif isinstance(items, Mapping):
            pairs = [
                (k, v)
                for k, values in items.items()
                for v in ([values] if isinstance(values, str) else values)
            ]
        else:
            pairs = items
        for name, value in pairs:
            self.add(name, value)

    def get(self, name: str) -> str:
        """First value of the named field, or an empty string."""
        values = self._fields.get(canonical_key(name))
        return values[0] if values else ""

    def get_all(self, name: str) -> list[str]:
        """All values of the named field, in order."""
        return list(self._fields.get(canonical_key(name), ()))

    def add(self, name: str, value: str) -> None:
        """Append a value to the named field."""
        self._fields.setdefault(canonical_key(name), []).append(value)

    def set(self, name: str, value: str) -> None:
        """Replace every value of the named field with one value."""
        self._fields[canonical_key(name)] = [value]

    def delete(self, name: str) -> None:
        """Remove the named field, if present."""
        self._fields.pop(canonical_key(name), None)

    def keys(self) -> list[str]:
        """The canonical field names present."""
        return list(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and canonical_key(name) in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._fields))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Header):
            return NotImplemented
        return self._fields == other._fields

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Header({self._fields!r})"


def _text(raw: bytes | bytearray) -> str:
    return bytes(raw).decode("utf-8", "surrogateescape")


def _chomp(raw: bytes) -> bytes:
    if raw.endswith(b"\r\n"):
        return raw[:-2]
    if raw.endswith(b"\n"):
        return raw[:-1]
    return raw


def read_header(stream: BinaryIO) -> tuple[Header, list[MimeError]]:
    """Read a block of mail headers from a binary stream, up to and including the blank line.

    Malformed lines are repaired or skipped where possible and reported in the returned
    list of problems. Raises ValueError if the block cannot be parsed at all.
    """
    problems: list[MimeError] = []
    lines: list[bytearray] = []

    def extend(chunk: bytes) -> None:
        if lines:
            lines[-1] += chunk
        else:
            lines.append(bytearray(chunk))

    while True:
        raw = stream.readline()
        if not raw:
            break
        line = _chomp(raw)
        first_colon = line.find(b":")
        space = _WS_RE.search(line)
        if space is not None and space.start() == 0:
            # Indented continuation of the previous field.
            extend(b" " + line.strip(_WS))
            continue
        if first_colon == 0:
            problems.append(
                MimeError.error(
                    MALFORMED_HEADER, f"Header line {_text(line)!r} started with a colon"
                )
            )
            continue
        if first_colon > 0:
            if b" :" in line[: first_colon + 1]:
                line = line.replace(b" :", b":", 1)
            lines.append(bytearray(line.strip(_WS)))
        elif line:
            # A continuation that was not indented: repair it.
            extend(b" " + line)
            problems.append(
                MimeError.warning(
                    MALFORMED_HEADER, f"Continued line {_text(line)!r} was not indented"
                )
            )
        else:
            break

    return _parse_fields(lines), problems


def _parse_fields(lines: list[bytearray]) -> Header:
    header = Header()
    for index, line in enumerate(lines):
        if index == 0 and line[:1] in (b" ", b"\t"):
            raise ValueError(f"malformed MIME header initial line: {_text(line)}")
        colon = line.index(b":")
        key = _text(line[:colon])
        header.add(key, _text(line[colon + 1 :].strip(_WS)))
    return header


def _q_decode(text: str) -> bytes:
    out = bytearray()
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "_":
            out.append(0x20)
        elif ch == "=":
            if i + 2 >= len(text) + 0 and i + 2 > len(text) - 1:
                raise ValueError("invalid encoded-word")
            try:
                out.append(int(text[i + 1 : i + 3], 16))
            except ValueError:
                raise ValueError("invalid encoded-word") from None
            if not all(c in string.hexdigits for c in text[i + 1 : i + 3]):
                raise ValueError("invalid encoded-word")
            i += 2
        elif " " <= ch <= "~" or ch in "\r\n\t":
            out.append(ord(ch))
        else:
            raise ValueError("invalid encoded-word")
        i += 1
    return bytes(out)


def _decode_word_text(encoding: str, text: str) -> bytes:
    if encoding in "Bb":
        return base64.b64decode(text.replace("\r", "").replace("\n", "").encode("ascii"), validate=True)
    if encoding in "Qq":
        return _q_decode(text)
    raise ValueError("invalid RFC 2047 encoding")


def _convert(charset: str, content: bytes) -> str:
    codec = codecs.lookup(charset)
    if codec.name == "utf-8":
        return content.decode("utf-8", "surrogateescape")
    return content.decode(codec.name, "replace")


def _decode_words(value: str) -> str:
    first = value.find("=?")
    out = [value[:first]]
    rest = value[first:]
    between_words = False
    while True:
        start = rest.find("=?")
        if start < 0:
            break
        cur = start + 2
        mark = rest.find("?", cur)
        if mark < 0:
            break
        charset = rest[cur:mark]
        cur = mark + 1
        if len(rest) < cur + 4:
            break
        encoding = rest[cur]
        cur += 1
        if rest[cur] != "?":
            break
        cur += 1
        close = rest.find("?=", cur)
        if close < 0:
            break
        try:
            content = _decode_word_text(encoding, rest[cur:close])
        except ValueError:
            between_words = False
            out.append(rest[: start + 2])
            rest = rest[start + 2 :]
            continue
        before = rest[:start]
        if before and (not between_words or before.strip(" \t\r\n")):
            out.append(before)
        out.append(_convert(charset, content))
        rest = rest[close + 2 :]
        between_words = True
    out.append(rest)
    return "".join(out)


def _decode_ext_header(value: str) -> str:
    """Decode RFC 2047 encoded-words; the input is returned as-is if it cannot be decoded."""
    if "=?" not in value:
        return value
    try:
        return _decode_words(value)
    except LookupError:
        return value


def _needs_encoding(value: str) -> bool:
    return any((ord(ch) < 0x20 or ord(ch) > 0x7E) and ch != "\t" for ch in value)


def _b_encode(value: str, charset: str = "UTF-8") -> str:
    """Encode a value as RFC 2047 base64 encoded-words, splitting long UTF-8 content."""
    if not _needs_encoding(value):
        return value
    raw = value.encode("utf-8", "surrogateescape")
    opening = f"=?{charset}?b?"
    max_content = _MAX_ENCODED_WORD_LEN - len(charset) - len("=??b?") - len("?=")
    encoded_len = (len(raw) + 2) // 3 * 4
    if charset.lower() != "utf-8" or encoded_len <= max_content:
        chunks = [raw]
    else:
        max_raw = max_content // 4 * 3
        chunks = []
        current = bytearray()
        for ch in value:
            piece = ch.encode("utf-8", "surrogateescape")
            if len(current) + len(piece) > max_raw:
                chunks.append(bytes(current))
                current = bytearray()
            current += piece
        chunks.append(bytes(current))
    return " ".join(
        f"{opening}{base64.b64encode(chunk).decode('ascii')}?=" for chunk in chunks
    )


def quoted_display_name(value: str) -> str:
    """Insert a space after a leading quoted display name so it stands apart from the address."""
    if not value.startswith('"'):
        return value
    idx = value.rfind('"')
    return f"{value[: idx + 1]} {value[idx + 1 :]}"


def decode_to_utf8_base64_header(value: str) -> str:
    """Decode the encoded-words of a header and re-encode them as UTF-8 base64 words."""
    if "=?" not in value:
        return value
    tokens = [t for t in _LWSP_SPLIT.split(quoted_display_name(value)) if t]
    output = []
    for token in tokens:
        if len(token) > 4 and "=?" in token:
            prefix = suffix = ""
            if token.startswith("("):
                prefix, token = "(", token[1:]
            if token.endswith(")"):
                suffix, token = ")", token[:-1]
            output.append(prefix + _b_encode(_decode_ext_header(token)) + suffix)
        else:
            output.append(token)
    return " ".join(output)