"""Redaction ledger — dedupe and order the records of one scan.

Two ways to get a ledger:

- ``build_ledger`` takes the per-match records emitted by the scanner.
- ``ledger_from_diff`` reconstructs an approximate ledger from the
  original and masked text, for maskers that only hand back a transformed
  string (mask-then-diff).
"""

from __future__ import annotations
from itertools import zip_longest
from typing import Iterable

from .patterns import MASK_TOKEN_RE
from .types import RedactionRecord

APPROXIMATE_ORIGINAL = "<unknown>"


def build_ledger(records: Iterable[RedactionRecord]) -> list[RedactionRecord]:
    """Collapse records sharing ``(line_number, original)``; first one wins, order kept."""
    seen: set[tuple[int, str]] = set()
    ledger: list[RedactionRecord] = []
    for record in records:
        if record.key in seen:
            continue
        seen.add(record.key)
        ledger.append(record)
    return ledger


def _token_category(token: str) -> str:
    return token[len("[REDACTED_"):-1]


def ledger_from_diff(original_text: str, masked_text: str) -> list[RedactionRecord]:
    """Approximate ledger from a before/after pair.

    One record per distinct mask token introduced by the masking, at the
    first changed line that carries it.  A changed line with no recognisable
    token is recorded whole.  Never empty when the texts differ.
    """
    if original_text == masked_text:
        return []

    records: list[RedactionRecord] = []
    seen_tokens: set[str] = set()
    pairs = zip_longest(original_text.split("\n"), masked_text.split("\n"), fillvalue="")

    for number, (before, after) in enumerate(pairs, start=1):
        if before == after:
            continue
        tokens = [t for t in MASK_TOKEN_RE.findall(after) if t not in before]
        if not tokens:
            records.append(RedactionRecord(
                original=before,
                masked=after,
                line_number=number,
                category="UNKNOWN",
                approximate=True,
            ))
            continue
        for token in tokens:
            if token in seen_tokens:
                continue
            seen_tokens.add(token)
            records.append(RedactionRecord(
                original=APPROXIMATE_ORIGINAL,
                masked=token,
                line_number=number,
                category=_token_category(token),
                approximate=True,
            ))

    return build_ledger(records)
