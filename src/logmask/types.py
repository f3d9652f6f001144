"""Core types."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import NamedTuple


class Hit(NamedTuple):
    """A candidate span inside a single line."""
    start: int
    end: int
    value: str
    key: str | None = None   # field name for key/value shapes


@dataclass(frozen=True, slots=True)
class RedactionRecord:
    """One value replaced during a scan."""
    original: str
    masked: str
    line_number: int       # 1-based
    category: str = ""     # e.g. "EMAIL", "SECRET_FIELD"
    approximate: bool = False  # produced by the diff ledger, not a matcher

    @property
    def key(self) -> tuple[int, str]:
        # Approximate records don't know their original value.
        if self.approximate:
            return (self.line_number, self.masked)
        return (self.line_number, self.original)

    def to_dict(self) -> dict:
        out = {
            "original": self.original,
            "masked": self.masked,
            "lineNumber": self.line_number,
            "category": self.category,
        }
        if self.approximate:
            out["approximate"] = True
        return out


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Result of masking a log."""
    masked_text: str
    redactions: tuple[RedactionRecord, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "maskedLog": self.masked_text,
            "redactions": [r.to_dict() for r in self.redactions],
        }
