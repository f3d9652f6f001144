"""Upload policy and file helpers used in front of the scanner."""

from __future__ import annotations
import hashlib
from dataclasses import dataclass

from .errors import FileTooLarge, UnsupportedFileType

MAX_UPLOAD_BYTES = 5 * 1024 * 1024
ALLOWED_EXTENSIONS: tuple[str, ...] = (".log", ".txt", ".json")


@dataclass(frozen=True)
class UploadPolicy:
    """Size and extension limits applied before a file is masked."""
    max_bytes: int = MAX_UPLOAD_BYTES
    allowed_extensions: tuple[str, ...] = ALLOWED_EXTENSIONS

    def check(self, filename: str | None, size: int) -> None:
        """Raise UploadRejected if the file may not be scanned."""
        if size > self.max_bytes:
            raise FileTooLarge(size, self.max_bytes)
        if filename is not None and not filename.lower().endswith(self.allowed_extensions):
            raise UnsupportedFileType(filename, self.allowed_extensions)


def content_hash(text: str) -> str:
    """SHA-256 of the original (pre-mask) content, for duplicate detection."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def masked_filename(filename: str) -> str:
    """``app.2024.log`` -> ``app.2024_masked.log``."""
    stem, dot, _ = filename.rpartition(".")
    return f"{stem if dot else filename}_masked.log"
