"""Classification of messages and parts from their headers."""

from __future__ import annotations

import string

from .header import (
    CD_ATTACHMENT,
    CD_INLINE,
    CT_MULTIPART_PREFIX,
    CT_TEXT_HTML,
    CT_TEXT_PLAIN,
    HN_CONTENT_DISPOSITION,
    HN_CONTENT_TYPE,
    Header,
)

_TOKEN_CHARS = frozenset(string.ascii_letters + string.digits + "!#$%&'*+-.^_`|~")


def _is_token(text: str) -> bool:
    return bool(text) and all(ch in _TOKEN_CHARS for ch in text)


def _parse_media_type(value: str) -> tuple[str, dict[str, str]]:
    """Split a Content-Type or Content-Disposition value into its lower-cased type and params.

    Malformed parameters are skipped. Raises ValueError if the type itself is invalid.
    """
    main, _, rest = value.partition(";")
    mtype = main.strip().lower()
    major, slash, minor = mtype.partition("/")
    if not _is_token(major) or (slash and not _is_token(minor)):
        raise ValueError(f"invalid media type: {value!r}")

    params: dict[str, str] = {}
    for piece in rest.split(";"):
        key, eq, val = piece.partition("=")
        key = key.strip().lower()
        if not eq or not _is_token(key):
            continue
        val = val.strip()
        if len(val) >= 2 and val[0] == val[-1] == '"':
            val = val[1:-1].replace('\\"', '"').replace("\\\\", "\\")
        params.setdefault(key, val)
    return mtype, params


def _media_type(value: str) -> str:
    try:
        return _parse_media_type(value)[0]
    except ValueError:
        return ""


def detect_multipart_message(header: Header) -> bool:
    """True if the Content-Type header names a multipart type."""
    try:
        mtype, _ = _parse_media_type(header.get(HN_CONTENT_TYPE))
    except ValueError:
        return False
    return mtype.startswith(CT_MULTIPART_PREFIX)


def detect_attachment_header(header: Header) -> bool:
    """True if the headers describe an attachment.

    That is a Content-Disposition of attachment, or of inline with at least one
    parameter, or a Content-Type of attachment.
    """
    try:
        mtype, params = _parse_media_type(header.get(HN_CONTENT_DISPOSITION))
    except ValueError:
        mtype, params = "", {}
    if mtype == CD_ATTACHMENT or (mtype == CD_INLINE and params):
        return True
    return _media_type(header.get(HN_CONTENT_TYPE)) == CD_ATTACHMENT


def detect_text_header(header: Header, empty_content_type_is_text: bool) -> bool:
    """True if the headers define a text/plain or text/html part.

    A missing Content-Type counts as text when ``empty_content_type_is_text`` is true.
    """
    ctype = header.get(HN_CONTENT_TYPE)
    if ctype == "" and empty_content_type_is_text:
        return True
    return _media_type(ctype) in (CT_TEXT_PLAIN, CT_TEXT_HTML)


def detect_binary_body(header: Header) -> bool:
    """True if the headers of a single-part message define a binary body."""
    if detect_text_header(header, True):
        # A text part counts only when it is explicitly an attachment.
        return _media_type(header.get(HN_CONTENT_DISPOSITION)) == CD_ATTACHMENT

    if detect_attachment_header(header):
        return True
    return _media_type(header.get(HN_CONTENT_TYPE)) not in (CT_TEXT_PLAIN, CT_TEXT_HTML)