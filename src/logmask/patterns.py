"""Pattern registry — the ordered catalog of detectors applied to every line.

Rules run as a sequential pipeline over the evolving line: a span replaced
by an earlier rule is never seen by a later one, so registry order is the
tie-break for overlapping matches.  Mask tokens use a reserved bracketed
vocabulary (``[REDACTED_EMAIL]``) that no rule matches.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterator, Protocol, Union

from .types import Hit

if TYPE_CHECKING:
    from .redactor import RedactorConfig


class Category(str, Enum):
    EMAIL = "EMAIL"
    IP_ADDRESS = "IP_ADDRESS"
    URL = "URL"
    FILE_PATH = "FILE_PATH"
    API_KEY = "API_KEY"
    TIMESTAMP = "TIMESTAMP"
    SSN = "SSN"
    PHONE = "PHONE"
    CREDIT_CARD = "CREDIT_CARD"
    ADDRESS = "ADDRESS"
    SECRET_FIELD = "SECRET_FIELD"
    USERNAME_FIELD = "USERNAME_FIELD"
    GENERIC_QUOTED_VALUE = "GENERIC_QUOTED_VALUE"
    PERSON_NAME = "PERSON_NAME"


MASK_TOKEN_RE = re.compile(r"\[REDACTED_[A-Z_]+\]")


def mask_token(name: str) -> str:
    return f"[REDACTED_{name}]"


# ── Mask strategies ──────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class FixedMask:
    """Replace the whole match with a literal token."""
    token: str


@dataclass(frozen=True, slots=True)
class FieldPreservingMask:
    """Keep the captured key, replace only the value."""
    placeholder: str


@dataclass(frozen=True, slots=True)
class ConditionalMask:
    """Field-preserving, except for keys on the allowlist."""
    allowlist: frozenset[str]
    fallback_token: str


MaskStrategy = Union[FixedMask, FieldPreservingMask, ConditionalMask]


def resolve_mask(mask: MaskStrategy, hit: Hit) -> str | None:
    """Return the replacement for a hit, or None if it is exempt."""
    if isinstance(mask, FixedMask):
        return mask.token
    if isinstance(mask, FieldPreservingMask):
        return mask.placeholder
    if isinstance(mask, ConditionalMask):
        if hit.key is not None and hit.key.lower() in mask.allowlist:
            return None
        return mask.fallback_token
    raise TypeError(f"unknown mask strategy: {mask!r}")


# ── Rules ────────────────────────────────────────────────────────────

class Rule(Protocol):
    category: Category
    mask: MaskStrategy

    def find(self, line: str) -> Iterator[Hit]: ...


@dataclass(frozen=True, slots=True)
class PatternRule:
    """A regex detector.

    If the pattern has a ``value`` group only that group is replaced and the
    rest of the match (the key) is copied through.  A ``name`` group, when
    present, is reported as the hit's key.
    """
    category: Category
    pattern: re.Pattern
    mask: MaskStrategy
    context: re.Pattern | None = None   # line must contain this to apply

    def find(self, line: str) -> Iterator[Hit]:
        if self.context is not None and not self.context.search(line):
            return
        groups = self.pattern.groupindex
        for m in self.pattern.finditer(line):
            if "value" in groups:
                start, end = m.span("value")
            else:
                start, end = m.span()
            key = m.group("name") if "name" in groups else None
            yield Hit(start, end, line[start:end], key)


# ── Regex catalog ────────────────────────────────────────────────────

TIMESTAMP_RE = re.compile(
    r"\b\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+\-]\d{2}:?\d{2})?"
)

URL_RE = re.compile(r"\bhttps?://[^\s,\"'<>\[\]]+")

EMAIL_RE = re.compile(
    r"\b[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}\b"
)

_OCTET = r"(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)"
_HEX = r"[0-9A-Fa-f]{1,4}"

IP_RE = re.compile(
    # A "]" before the address closes a mask token and blocks like a word
    # character, so a value glued to a later-masked neighbour stays glued.
    # IPv4: a trailing dot is sentence punctuation, a dot plus digit is not
    rf"(?<![\w.\]]){_OCTET}(?:\.{_OCTET}){{3}}(?!\.?\d)(?!\w)"
    # IPv6: full form, then "::"-compressed forms; never the tail of a
    # dash-joined digit group such as an SSN or phone number
    rf"|(?<![\w:\]\-])(?:"
    rf"(?:{_HEX}:){{7}}{_HEX}"
    rf"|(?:{_HEX}:){{1,7}}:(?:{_HEX}(?::{_HEX}){{0,5}})?"
    rf"|::(?:{_HEX}:){{0,6}}{_HEX}"
    rf")(?![\w:])"
)

_PATH_CHARS = r"[\w.@~+%=$\-]"
FILE_PATH_RE = re.compile(
    rf"(?<![\w/.~:\]\-])(?:/{_PATH_CHARS}+)+/?"
    rf"|(?<!\w)[A-Za-z]:\\(?:{_PATH_CHARS}+\\?)*"
)

API_KEY_RE = re.compile(
    r"\b(?:sk|pk|ak|rk)_(?:(?:live|test)_)?[A-Za-z0-9]{20,}\b"
    r"|\b[A-Za-z0-9]{32,}\b"
)

CREDIT_CARD_RE = re.compile(
    r"(?<![\w\-])(?:"
    r"\d{13,16}"
    r"|\d{4}([ \-])\d{4}\1\d{4}\1\d{1,4}"     # 4-4-4-4 (and 4-4-4-1..3)
    r"|\d{4}([ \-])\d{6}\2\d{4,5}"            # Amex 4-6-5
    r")(?![\w\-])"
)

PAYMENT_CONTEXT_RE = re.compile(
    r"card|credit|debit|payment|\bpan\b|\bcc\b|visa|mastercard|amex",
    re.IGNORECASE,
)

SSN_RE = re.compile(r"(?<![\w\-])\d{3}-\d{2}-\d{4}(?![\w\-])")

PHONE_RE = re.compile(
    r"(?<![\w+\-\]])(?:"
    r"\+\d{1,3}(?:[ .\-]?\(?\d{1,4}\)?){1,2}[ .\-]?\d{3,4}[ .\-]?\d{3,4}"
    r"|(?:\(\d{3}\)[ .\-]?|\d{3}[ .\-]?)\d{3}[ .\-]?\d{4}"
    r"|\d{3}-\d{4}"
    r")(?![\w\-])"
)

_STREET_SUFFIXES = (
    "Street", "St", "Avenue", "Ave", "Road", "Rd", "Boulevard", "Blvd",
    "Lane", "Ln", "Drive", "Dr", "Court", "Ct", "Way", "Place", "Pl",
    "Terrace", "Parkway", "Pkwy", "Circle", "Cir", "Highway", "Hwy",
)
ADDRESS_RE = re.compile(
    r"\b\d{1,5}(?: [A-Z][a-z]+){1,4} (?:" + "|".join(_STREET_SUFFIXES) + r")\b"
)

GENERIC_QUOTED_RE = re.compile(
    r"(?<![\w\-])(?P<key>[\"']?(?P<name>[A-Za-z_][\w.\-]*)[\"']?\s*[:=]\s*)"
    r"\"(?P<value>[^\"]+)\""
)

DEFAULT_SECRET_KEYS: tuple[str, ...] = (
    "password", "passwd", "pwd", "secret", "token", "api_key", "apikey",
    "access_key", "private_key", "pin", "cvv",
)
DEFAULT_USERNAME_KEYS: tuple[str, ...] = ("user", "username", "user_name")
DEFAULT_ALLOW_KEYS: frozenset[str] = frozenset({
    "currency", "country", "state", "payment_method",
    "level", "severity", "status", "method", "event", "service",
})


def field_pattern(keys: tuple[str, ...] | list[str]) -> re.Pattern:
    """Compile a ``key: value`` / ``"key": "value"`` / ``key=value`` matcher.

    Keys match exactly or with a ``prefix_`` / ``prefix-`` (``db_password``).
    Quoted values run to the matching quote; bare values stop at whitespace,
    quotes, commas, semicolons, ampersands and brackets.
    """
    names = "|".join(re.escape(k) for k in sorted(keys, key=len, reverse=True))
    return re.compile(
        r"(?<![\w\-])(?P<key>[\"']?(?P<name>(?:[\w\-]*[_\-])?(?:" + names + r"))"
        r"[\"']?\s*[:=]\s*)"
        r"(?P<q>[\"'])?"
        r"(?P<value>(?(q)(?:(?!(?P=q)).)+|[^\s\"',;&\[\]{}]+))"
        r"(?(q)(?P=q))",
        re.IGNORECASE,
    )


# ── Registry ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PatternRegistry:
    """Immutable, ordered set of rules plus the vocabulary they produce."""
    rules: tuple[Rule, ...]
    placeholders: frozenset[str] = frozenset()
    allow_values: frozenset[str] = frozenset()

    def is_mask_token(self, value: str) -> bool:
        return value in self.placeholders or MASK_TOKEN_RE.fullmatch(value) is not None

    def is_exempt(self, value: str) -> bool:
        return value in self.allow_values

    @property
    def categories(self) -> list[Category]:
        return [r.category for r in self.rules]


def build_registry(config: RedactorConfig) -> PatternRegistry:
    """Build the rule pipeline for a config, in evaluation order."""
    card_context = PAYMENT_CONTEXT_RE if config.card_policy == "payment_context" else None

    rules: list[Rule] = [
        PatternRule(Category.SECRET_FIELD, field_pattern(config.secret_keys),
                    FieldPreservingMask(config.secret_placeholder)),
        PatternRule(Category.USERNAME_FIELD, field_pattern(config.username_keys),
                    FieldPreservingMask(config.username_placeholder)),
        PatternRule(Category.TIMESTAMP, TIMESTAMP_RE, FixedMask(mask_token("TIMESTAMP"))),
        PatternRule(Category.URL, URL_RE, FixedMask(mask_token("URL"))),
        PatternRule(Category.EMAIL, EMAIL_RE, FixedMask(mask_token("EMAIL"))),
        PatternRule(Category.IP_ADDRESS, IP_RE, FixedMask(mask_token("IP"))),
        PatternRule(Category.FILE_PATH, FILE_PATH_RE, FixedMask(mask_token("PATH"))),
        PatternRule(Category.API_KEY, API_KEY_RE, FixedMask(mask_token("API_KEY"))),
        PatternRule(Category.CREDIT_CARD, CREDIT_CARD_RE,
                    FixedMask(mask_token("CREDIT_CARD")), context=card_context),
        PatternRule(Category.SSN, SSN_RE, FixedMask(mask_token("SSN"))),
        PatternRule(Category.PHONE, PHONE_RE, FixedMask(mask_token("PHONE"))),
        PatternRule(Category.ADDRESS, ADDRESS_RE, FixedMask(mask_token("ADDRESS"))),
    ]

    if config.strict_values:
        rules.append(PatternRule(
            Category.GENERIC_QUOTED_VALUE, GENERIC_QUOTED_RE,
            ConditionalMask(frozenset(k.lower() for k in config.allow_keys),
                            mask_token("VALUE")),
        ))

    if config.use_presidio:
        from .presidio_layer import PersonNameRule
        rules.append(PersonNameRule(
            language=config.language,
            score_threshold=config.score_threshold,
        ))

    skip = {Category(c) for c in config.skip_categories}
    rules = [r for r in rules if r.category not in skip]

    return PatternRegistry(
        rules=tuple(rules),
        placeholders=frozenset({config.secret_placeholder, config.username_placeholder}),
        allow_values=frozenset(config.allow_list),
    )
