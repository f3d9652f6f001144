"""Optional NER layer — Presidio-based detection of personal names.

Names have no fixed shape, so regex can't catch them.  This layer runs
last in the pipeline, after every structured rule, and uses spaCy under
the hood.  Off unless ``RedactorConfig.use_presidio`` is set.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator

from .patterns import MASK_TOKEN_RE, Category, FixedMask, mask_token
from .types import Hit

if TYPE_CHECKING:
    from presidio_analyzer import AnalyzerEngine

# Lazy singleton: spaCy is not loaded until first use
_engine: AnalyzerEngine | None = None
_engine_lang: str = ""


def _get_engine(language: str = "en") -> AnalyzerEngine:
    """Lazy-init the Presidio analyzer engine."""
    global _engine, _engine_lang
    if _engine is None or _engine_lang != language:
        from presidio_analyzer import AnalyzerEngine
        from presidio_analyzer.nlp_engine import NlpEngineProvider

        provider = NlpEngineProvider(nlp_configuration={
            "nlp_engine_name": "spacy",
            "models": [{"lang_code": language, "model_name": f"{language}_core_web_sm"}],
        })
        nlp_engine = provider.create_engine()
        _engine = AnalyzerEngine(nlp_engine=nlp_engine, supported_languages=[language])
        _engine_lang = language
    return _engine


def scan_presidio(
    line: str,
    *,
    language: str = "en",
    entities: list[str] | None = None,
    score_threshold: float = 0.35,
) -> list[Hit]:
    """Run Presidio over one line and return non-overlapping hits.

    Spans touching an existing mask token are dropped so the layer never
    re-redacts its own vocabulary.
    """
    engine = _get_engine(language)
    results = engine.analyze(
        text=line,
        language=language,
        entities=entities or ["PERSON"],
        score_threshold=score_threshold,
    )

    masked = [m.span() for m in MASK_TOKEN_RE.finditer(line)]
    hits: list[Hit] = []
    for r in sorted(results, key=lambda r: (r.start, -(r.end - r.start))):
        if any(r.start < e and r.end > s for s, e in masked):
            continue
        if hits and r.start < hits[-1].end:
            continue
        hits.append(Hit(r.start, r.end, line[r.start:r.end]))
    return hits


@dataclass(frozen=True, slots=True)
class PersonNameRule:
    """Registry rule wrapping :func:`scan_presidio` for PERSON entities."""
    language: str = "en"
    score_threshold: float = 0.35
    category: Category = Category.PERSON_NAME
    mask: FixedMask = field(default_factory=lambda: FixedMask(mask_token("NAME")))

    def find(self, line: str) -> Iterator[Hit]:
        if not line.strip():
            return iter(())
        return iter(scan_presidio(
            line,
            language=self.language,
            score_threshold=self.score_threshold,
        ))
