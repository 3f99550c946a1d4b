"""Choice of content transfer encoding for MIME content."""

from __future__ import annotations

import enum

# Percentage of non-ASCII bytes tolerated before base64 is chosen over quoted-printable.
B64_PERCENT = 20


class TransferEncoding(enum.Enum):
    """Content transfer encodings, valued by their header names."""

    SEVEN_BIT = "7bit"
    QUOTED_PRINTABLE = "quoted-printable"
    BASE64 = "base64"


def select_transfer_encoding(content: bytes, quote_line_breaks: bool) -> TransferEncoding:
    """Pick 7bit, quoted-printable or base64 from the share of non-printable bytes.

    CR and LF count as non-printable only when ``quote_line_breaks`` is true.
    """
    if not content:
        return TransferEncoding.SEVEN_BIT
    threshold = B64_PERCENT * len(content) // 100
    count = 0
    for byte in content:
        if (byte < 0x20 or byte > 0x7E) and byte != 0x09:
            if not quote_line_breaks and byte in (0x0D, 0x0A):
                continue
            count += 1
            if count >= threshold:
                return TransferEncoding.BASE64
    if count == 0:
        return TransferEncoding.SEVEN_BIT
    return TransferEncoding.QUOTED_PRINTABLE