"""Exceptions raised around the masking core.

The scan itself is total over strings; these cover configuration, upload
policy and misbehaving custom maskers.
"""

from __future__ import annotations


class LogMaskError(Exception):
    """Base class for logmask errors."""


class ConfigError(LogMaskError):
    """Invalid configuration value."""


class UploadRejected(LogMaskError):
    """An upload was refused before reaching the scanner."""


class FileTooLarge(UploadRejected):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"file is {size} bytes, limit is {limit} bytes")
        self.size = size
        self.limit = limit


class UnsupportedFileType(UploadRejected):
    def __init__(self, filename: str, allowed: tuple[str, ...]) -> None:
        super().__init__(
            f"{filename!r} is not one of: {', '.join(allowed)}"
        )
        self.filename = filename
        self.allowed = allowed


class LineCountChanged(LogMaskError):
    """A custom masker added or removed lines."""


class UnreadableFile(UploadRejected):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot read {path}: {reason}")
        self.path = path
