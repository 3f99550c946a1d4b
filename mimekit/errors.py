"""Problems noticed while parsing a MIME message."""

from __future__ import annotations

from dataclasses import dataclass

MALFORMED_BASE64 = "Malformed Base64"
MALFORMED_HEADER = "Malformed Header"
MISSING_BOUNDARY = "Missing Boundary"
MISSING_CONTENT_TYPE = "Missing Content-Type"
CHARSET_CONVERSION = "Character Set Conversion"
CONTENT_ENCODING = "Content Encoding"
PLAIN_TEXT_FROM_HTML = "Plain Text from HTML"
CHARSET_DECLARATION = "Character Set Declaration Mismatch"
MISSING_RECIPIENT = "no recipients (to, cc, bcc) set"


@dataclass(frozen=True)
class MimeError:
    """A parse problem: its kind, detail, and whether content was lost."""

    name: str
    detail: str = ""
    severe: bool = False

    def __str__(self) -> str:
        level = "E" if self.severe else "W"
        return f"[{level}] {self.name}: {self.detail}"

    @classmethod
    def warning(cls, name: str, detail: str) -> MimeError:
        """A problem that parsing worked around without losing content."""
        return cls(name, detail, severe=False)

    @classmethod
    def error(cls, name: str, detail: str) -> MimeError:
        """A problem that caused part of the message to be lost."""
        return cls(name, detail, severe=True)