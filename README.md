# mimekit

Building blocks for reading MIME e-mail, built to cope with messages that do
not quite follow the RFCs.

## Installation

```
pip install mimekit
```

## What is in it

- `mimekit.header`
  - `read_header(stream)` reads a block of message or part headers from a
    binary stream, up to and including the blank line that ends it, and
    returns a `(Header, problems)` pair. Indented continuation lines are
    joined, unindented continuations are repaired (a warning), a space before
    the first colon is removed, and a line starting with a colon is skipped
    (a severe error). Each problem is a `MimeError`. A block that cannot be
    parsed at all raises `ValueError`.
  - `Header` is an ordered, case-insensitive, multi-valued collection of
    fields with `get`, `get_all`, `add`, `set`, `delete` and `keys`; it
    supports `len()`, `in` and iteration over field names. It can be built
    from another `Header`, a mapping of names to a value or list of values,
    or an iterable of `(name, value)` pairs.
  - `canonical_key(name)` gives the canonical spelling of a header name,
    e.g. `content-type` becomes `Content-Type`.
  - `decode_to_utf8_base64_header(value)` decodes the RFC 2047 encoded words
    of a header value and re-encodes each as UTF-8 base64 words, keeping
    surrounding parentheses, so that address parsers can handle them.
    `quoted_display_name(value)` inserts a space after a leading quoted
    display name.
  - Constants for common content types, dispositions, transfer encodings,
    header names and parameters, and `ADDRESS_HEADERS`.
- `mimekit.errors`: `MimeError`, a frozen record of a parse problem with a
  `name`, a `detail` and a `severe` flag. `MimeError.warning(name, detail)`
  and `MimeError.error(name, detail)` build non-severe and severe problems;
  `str()` gives `[W] name: detail` or `[E] name: detail`. The module also
  holds the problem names, such as `MALFORMED_HEADER` and `MISSING_BOUNDARY`.
- `mimekit.encoding`: `select_transfer_encoding(content, quote_line_breaks)`
  chooses a `TransferEncoding` (`SEVEN_BIT`, `QUOTED_PRINTABLE` or `BASE64`)
  for some bytes. Base64 is chosen once 20 percent or more of the bytes are
  not printable ASCII (tab excepted); CR and LF count only when
  `quote_line_breaks` is true.
- `mimekit.addresses`: `ensure_comma_delimited_addresses(value)` adds the
  commas missing between addresses in a malformed address list, and
  `is_address_header(name)` says whether a header field carries addresses.
- `mimekit.detect`: rules working on a `Header` —
  `detect_multipart_message`, `detect_attachment_header`,
  `detect_text_header` and `detect_binary_body` — that tell multipart
  messages, attachments, text bodies and binary-only bodies apart.
- `mimekit.boundary`: `BoundaryReader(stream, boundary)` walks the parts of
  a multipart body. `next()` moves over the boundary to the next part and
  returns `False` once the closing boundary is reached; it raises `EOFError`
  if the input ends first and `NoBoundaryTerminatorError` if something other
  than a boundary follows a part. `read(size)` returns up to `size` bytes of
  the current part, `b""` at its end; `read(-1)` returns the rest of the part.
  `is_delimiter` and `is_terminator` test a buffer for the boundary lines.

## Example

```python
import io

from mimekit.boundary import BoundaryReader
from mimekit.header import read_header

raw = (
    b"Content-Type: multipart/mixed; boundary=STOP\r\n"
    b"\r\n"
    b"--STOP\r\npart one\r\n--STOP\r\npart two\r\n--STOP--\r\n"
)
stream = io.BufferedReader(io.BytesIO(raw))
header, problems = read_header(stream)
print(header.get("content-type"))   # multipart/mixed; boundary=STOP

reader = BoundaryReader(stream, "STOP")
while reader.next():
    print(reader.read(-1))           # b'part one', then b'part two'
```

## What it does not do

mimekit provides the pieces, not a whole mail library. It does not parse a
complete message into a tree of parts, decode base64 or quoted-printable
content, convert character sets of bodies, sort parts into text, HTML,
inlines and attachments, compose or encode outgoing messages, or send mail.
It has no command-line tools.

## Running the tests

```
pip install -e ".[test]"
pytest
```