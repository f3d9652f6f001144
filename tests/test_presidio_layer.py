"""Tests for the optional name layer — Presidio is stubbed out."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from types import SimpleNamespace

from logmask import Category, Redactor, RedactorConfig
from logmask import presidio_layer
from logmask.types import Hit


class _FakeEngine:
    def __init__(self, spans):
        self.spans = spans

    def analyze(self, text, language, entities, score_threshold):
        return [SimpleNamespace(start=s, end=e) for s, e in self.spans(text)]


def _names(text):
    for name in ("Tawfeeq", "REDACTED"):
        i = text.find(name)
        if i != -1:
            yield i, i + len(name)


def test_scan_presidio_skips_mask_tokens(monkeypatch):
    monkeypatch.setattr(presidio_layer, "_get_engine", lambda language="en": _FakeEngine(_names))
    hits = presidio_layer.scan_presidio("Tawfeeq from [REDACTED_IP]")
    assert hits == [Hit(0, 7, "Tawfeeq")]


def test_scan_presidio_drops_overlaps(monkeypatch):
    engine = _FakeEngine(lambda text: [(0, 10), (4, 8), (11, 14)])
    monkeypatch.setattr(presidio_layer, "_get_engine", lambda language="en": engine)
    hits = presidio_layer.scan_presidio("Mary Jones Bob")
    assert [(h.start, h.end) for h in hits] == [(0, 10), (11, 14)]


def test_name_rule_runs_last(monkeypatch):
    monkeypatch.setattr(presidio_layer, "_get_engine", lambda language="en": _FakeEngine(_names))
    redactor = Redactor(RedactorConfig(use_presidio=True))
    assert redactor.registry.categories[-1] == Category.PERSON_NAME

    result = redactor.scan("ticket opened by Tawfeeq at 10.0.0.5")
    assert result.masked_text == "ticket opened by [REDACTED_NAME] at [REDACTED_IP]"
    assert result.redactions[-1].category == "PERSON_NAME"
    assert result.redactions[-1].original == "Tawfeeq"


def test_name_rule_skips_blank_lines(monkeypatch):
    def boom(language="en"):
        raise AssertionError("engine should not be loaded for blank lines")
    monkeypatch.setattr(presidio_layer, "_get_engine", boom)
    redactor = Redactor(RedactorConfig(use_presidio=True))
    assert redactor.scan("\n   \n").masked_text == "\n   \n"
