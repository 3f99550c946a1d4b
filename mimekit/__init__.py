"""Tolerant MIME header parsing, multipart boundary reading and transfer-encoding helpers."""

__version__ = "0.1.0"

__all__ = ["addresses", "boundary", "detect", "encoding", "errors", "header"]