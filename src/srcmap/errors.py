from __future__ import annotations


class SrcmapError(Exception):
    """Base exception for srcmap."""


class FormatError(SrcmapError, ValueError):
    """Raised when a source map (or a piece of one) is malformed."""
