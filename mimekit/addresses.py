"""Helpers for address-bearing header fields."""

from __future__ import annotations

from .header import ADDRESS_HEADERS


def is_address_header(name: str) -> bool:
    """True if the named header field holds e-mail addresses."""
    return name.lower() in ADDRESS_HEADERS


def ensure_comma_delimited_addresses(value: str) -> str:
    """Insert the commas missing between addresses of an address list.

    Whitespace is normalised to single spaces first. A space that follows the domain
    of an address becomes a comma and a space; the text after a group-closing ``;``
    is dropped.
    """
    text = " ".join(value.split())

    in_quotes = False
    in_domain = False
    escaped = False
    out: list[str] = []
    for ch in text:
        if escaped:
            escaped = False
            out.append(ch)
            continue
        if ch == '"':
            in_quotes = not in_quotes
            out.append(ch)
            continue
        if in_quotes:
            if ch == "\\":
                escaped = True
                out.append(ch)
                continue
        else:
            if ch == "@":
                in_domain = True
                out.append(ch)
                continue
            if in_domain:
                if ch == ";":
                    out.append(ch)
                    break
                if ch == ",":
                    in_domain = False
                    out.append(ch)
                    continue
                if ch == " ":
                    in_domain = False
                    out.append(", ")
                    continue
        out.append(ch)
    return "".join(out)