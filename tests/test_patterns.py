"""Tests for the pattern registry and mask strategies."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import dataclasses
import re

import pytest

from logmask import RedactorConfig
from logmask.patterns import (
    Category,
    ConditionalMask,
    FieldPreservingMask,
    FixedMask,
    PatternRule,
    build_registry,
    field_pattern,
    resolve_mask,
    EMAIL_RE,
    SSN_RE,
)
from logmask.types import Hit


# ── Registry order ───────────────────────────────────────────────────

def test_default_order():
    registry = build_registry(RedactorConfig())
    assert registry.categories == [
        Category.SECRET_FIELD,
        Category.USERNAME_FIELD,
        Category.TIMESTAMP,
        Category.URL,
        Category.EMAIL,
        Category.IP_ADDRESS,
        Category.FILE_PATH,
        Category.API_KEY,
        Category.CREDIT_CARD,
        Category.SSN,
        Category.PHONE,
        Category.ADDRESS,
    ]


def test_strict_mode_appends_generic_rule():
    registry = build_registry(RedactorConfig(strict_values=True))
    assert registry.categories[-1] == Category.GENERIC_QUOTED_VALUE
    assert isinstance(registry.rules[-1].mask, ConditionalMask)


def test_skip_categories_removes_rules():
    registry = build_registry(RedactorConfig(skip_categories={"EMAIL", "PHONE"}))
    assert Category.EMAIL not in registry.categories
    assert Category.PHONE not in registry.categories
    assert Category.SSN in registry.categories


def test_registry_is_immutable():
    registry = build_registry(RedactorConfig())
    assert isinstance(registry.rules, tuple)
    with pytest.raises(dataclasses.FrozenInstanceError):
        registry.rules = ()


def test_mask_token_recognition():
    registry = build_registry(RedactorConfig(secret_placeholder="xxxxxx"))
    assert registry.is_mask_token("[REDACTED_EMAIL]")
    assert registry.is_mask_token("xxxxxx")
    assert not registry.is_mask_token("[REDACTED_EMAIL] extra")
    assert not registry.is_mask_token("alice")


# ── Mask strategies ──────────────────────────────────────────────────

def test_resolve_fixed_and_field_masks():
    hit = Hit(0, 5, "alice", "user")
    assert resolve_mask(FixedMask("[REDACTED_X]"), hit) == "[REDACTED_X]"
    assert resolve_mask(FieldPreservingMask("***"), hit) == "***"


def test_resolve_conditional_mask_allowlist():
    mask = ConditionalMask(frozenset({"currency"}), "[REDACTED_VALUE]")
    assert resolve_mask(mask, Hit(0, 3, "USD", "Currency")) is None
    assert resolve_mask(mask, Hit(0, 3, "Bob", "customer")) == "[REDACTED_VALUE]"


def test_resolve_unknown_strategy():
    with pytest.raises(TypeError):
        resolve_mask(object(), Hit(0, 1, "x"))


# ── Rules ────────────────────────────────────────────────────────────

def test_pattern_rule_whole_match():
    rule = PatternRule(Category.EMAIL, EMAIL_RE, FixedMask("[REDACTED_EMAIL]"))
    hits = list(rule.find("to a@b.co and c@d.io"))
    assert [h.value for h in hits] == ["a@b.co", "c@d.io"]
    assert hits[0].key is None


def test_field_rule_reports_value_span_and_key():
    rule = PatternRule(Category.SECRET_FIELD, field_pattern(["password"]), FieldPreservingMask("*"))
    line = 'x "db_password": "s3cret" y'
    [hit] = list(rule.find(line))
    assert hit.value == "s3cret"
    assert hit.key == "db_password"
    assert line[hit.start:hit.end] == "s3cret"


@pytest.mark.parametrize("line,value", [
    ("password=hunter2", "hunter2"),
    ("password: 'two words'", "two words"),
    ('PASSWORD = "x"', "x"),
    ("token=abc&user=bob", "abc"),
    ("api-token: abc123,", "abc123"),
])
def test_field_pattern_values(line, value):
    [m] = list(field_pattern(["password", "token"]).finditer(line))
    assert m.group("value") == value


@pytest.mark.parametrize("line", [
    "password=",
    'password: ""',
    "password: [REDACTED_SECRET]",
    "tokens: 5",
    "spin: 3",
])
def test_field_pattern_non_matches(line):
    assert list(field_pattern(["password", "token", "pin"]).finditer(line)) == []


def test_context_gate():
    rule = PatternRule(Category.SSN, SSN_RE, FixedMask("[REDACTED_SSN]"), context=re.compile("ssn"))
    assert list(rule.find("id 123-45-6789")) == []
    assert [h.value for h in rule.find("ssn 123-45-6789")] == ["123-45-6789"]
