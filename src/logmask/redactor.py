"""Redactor — the main API.  Line-by-line, rule-by-rule masking.

Usage:
    from logmask import Redactor

    redactor = Redactor()        # reusable, thread-safe after init

    result = redactor.scan('email: "alice@example.com"')
    print(result.masked_text)    # 'email: "[REDACTED_EMAIL]"'
    print(result.redactions[0])  # RedactionRecord(original='alice@example.com', ...)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable

from .errors import LineCountChanged
from .ledger import build_ledger, ledger_from_diff
from .patterns import (
    DEFAULT_ALLOW_KEYS,
    DEFAULT_SECRET_KEYS,
    DEFAULT_USERNAME_KEYS,
    PatternRegistry,
    Rule,
    build_registry,
    resolve_mask,
)
from .types import RedactionRecord, ScanResult


@dataclass
class RedactorConfig:
    """Configuration for the Redactor."""
    # Mask every quoted value unless its key is allow-listed
    strict_values: bool = False
    allow_keys: set[str] = field(default_factory=lambda: set(DEFAULT_ALLOW_KEYS))
    # Entity categories to always skip (e.g. don't redact timestamps)
    skip_categories: set[str] = field(default_factory=set)
    # Allow-list: values that should NEVER be redacted
    allow_list: set[str] = field(default_factory=set)
    secret_keys: tuple[str, ...] = DEFAULT_SECRET_KEYS
    username_keys: tuple[str, ...] = DEFAULT_USERNAME_KEYS
    secret_placeholder: str = "[REDACTED_SECRET]"
    username_placeholder: str = "[REDACTED_USER]"
    card_policy: str = "always"       # "always" | "payment_context"
    use_presidio: bool = False        # enable the NER name layer
    language: str = "en"
    score_threshold: float = 0.35     # minimum confidence for Presidio
    # Whole-text maskers run after the rule pass; recorded via diff
    custom_maskers: list[Callable[[str], str]] = field(default_factory=list)


class Redactor:
    """Rule-pipeline log masker.

    Each line is passed through the registry in order; every replacement
    produces a RedactionRecord, and the records are deduplicated into the
    ledger returned with the masked text.
    """

    def __init__(
        self,
        config: RedactorConfig | None = None,
        registry: PatternRegistry | None = None,
    ) -> None:
        self.config = config or RedactorConfig()
        self.registry = registry or build_registry(self.config)

    def scan(self, text: str) -> ScanResult:
        """Mask a log and return the masked text with its redaction ledger."""
        records: list[RedactionRecord] = []
        lines = text.split("\n")
        masked = "\n".join(
            self._mask_line(line, number, records)
            for number, line in enumerate(lines, start=1)
        )

        ledger = build_ledger(records)

        if self.config.custom_maskers:
            before = masked
            for masker in self.config.custom_maskers:
                masked = masker(masked)
            expected, got = before.count("\n") + 1, masked.count("\n") + 1
            if expected != got:
                raise LineCountChanged(
                    f"custom masker changed line count from {expected} to {got}"
                )
            ledger = build_ledger(ledger + ledger_from_diff(before, masked))

        return ScanResult(masked_text=masked, redactions=tuple(ledger))

    def _mask_line(self, line: str, number: int, records: list[RedactionRecord]) -> str:
        if not line:
            return line
        for rule in self.registry.rules:
            line = self._apply(rule, line, number, records)
        return line

    def _apply(
        self,
        rule: Rule,
        line: str,
        number: int,
        records: list[RedactionRecord],
    ) -> str:
        """Replace every hit of one rule in the current state of the line."""
        parts: list[str] = []
        cursor = 0
        for hit in rule.find(line):
            if not hit.value or self.registry.is_mask_token(hit.value):
                continue
            if self.registry.is_exempt(hit.value):
                continue
            replacement = resolve_mask(rule.mask, hit)
            if replacement is None:
                continue
            parts.append(line[cursor:hit.start])
            parts.append(replacement)
            cursor = hit.end
            records.append(RedactionRecord(
                original=hit.value,
                masked=replacement,
                line_number=number,
                category=rule.category.value,
            ))
        if not parts:
            return line
        parts.append(line[cursor:])
        return "".join(parts)


_default: Redactor | None = None


def scan(text: str, config: RedactorConfig | None = None) -> ScanResult:
    """Mask ``text`` with a shared default Redactor (or a one-off configured one)."""
    global _default
    if config is not None:
        return Redactor(config).scan(text)
    if _default is None:
        _default = Redactor()
    return _default.scan(text)
