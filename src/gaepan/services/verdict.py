"""Reconcile a generated judgment's text with its numeric fault ratio.

The generated text can disagree with its own ratio, so the dispositive label is
taken from the text when it is unambiguous and from the ratio otherwise. The
detailed rationale outranks the short verdict line.

Everything here is pure: no I/O, deterministic for identical inputs.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Literal

Conclusion = Literal["guilty", "not_guilty", "undetermined"]

GUILTY: Conclusion = "guilty"
NOT_GUILTY: Conclusion = "not_guilty"
UNDETERMINED: Conclusion = "undetermined"

LABEL_GUILTY = "유죄"
LABEL_NOT_GUILTY = "무죄"
LABEL_RESERVED = "판결 유보"

_RATIO_MIDPOINT = 50


@dataclass(frozen=True)
class MarkerTable:
    """Phrasings recognised in judgment text.

    The rationale uses a stricter guilty marker (``유죄.``) because reasoning prose
    often mentions guilt hypothetically before concluding otherwise.
    """

    not_guilty: tuple[str, ...] = (r"피고인\s*무죄", r"불기소", r"원고\s*무죄")
    guilty_in_verdict: tuple[str, ...] = (
        r"유죄",
        r"징역\s*\d",
        r"벌금\s*\d",
        r"사회봉사\s*\d",
        r"집행유예",
    )
    guilty_in_rationale: tuple[str, ...] = (
        r"유죄\s*\.",
        r"징역\s*\d",
        r"벌금\s*\d",
        r"사회봉사\s*\d",
        r"집행유예",
    )
    _compiled: dict[str, re.Pattern[str]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def _pattern(self, name: str) -> re.Pattern[str]:
        pattern = self._compiled.get(name)
        if pattern is None:
            pattern = re.compile("|".join(getattr(self, name)), re.IGNORECASE)
            self._compiled[name] = pattern
        return pattern

    def matches(self, name: str, text: str) -> bool:
        return bool(text) and self._pattern(name).search(text) is not None


DEFAULT_MARKERS = MarkerTable()


def _clean(text: str | None) -> str:
    return text.strip() if isinstance(text, str) else ""


def conclusion_from_text(
    verdict: str | None,
    rationale: str | None = None,
    *,
    markers: MarkerTable = DEFAULT_MARKERS,
) -> Conclusion | None:
    """Return the conclusion stated by the text, or None when it states none."""
    v = _clean(verdict)
    r = _clean(rationale)

    not_guilty_in_rationale = markers.matches("not_guilty", r)
    guilty_in_rationale = markers.matches("guilty_in_rationale", r)
    not_guilty_in_verdict = markers.matches("not_guilty", v)
    guilty_in_verdict = markers.matches("guilty_in_verdict", v)

    if not_guilty_in_rationale and not guilty_in_rationale:
        return NOT_GUILTY
    if not_guilty_in_verdict and not guilty_in_verdict:
        return NOT_GUILTY
    if guilty_in_rationale or guilty_in_verdict:
        return GUILTY
    return None


def conclusion_from_ratio(defendant_ratio: float | None) -> Conclusion:
    """Map a defendant fault ratio (0-100) to a conclusion; unusable input is 50."""
    try:
        value = float(defendant_ratio) if defendant_ratio is not None else _RATIO_MIDPOINT
    except (TypeError, ValueError):
        value = _RATIO_MIDPOINT
    if not math.isfinite(value):
        value = _RATIO_MIDPOINT
    if value > _RATIO_MIDPOINT:
        return GUILTY
    if value < _RATIO_MIDPOINT:
        return NOT_GUILTY
    return UNDETERMINED


def resolve_conclusion(
    verdict: str | None,
    rationale: str | None = None,
    defendant_ratio: float | None = None,
    *,
    markers: MarkerTable = DEFAULT_MARKERS,
) -> Conclusion:
    """Return the authoritative conclusion for a judgment.

    Precedence, first match wins: not-guilty in the rationale, not-guilty in the
    verdict, guilty in either text, then the numeric ratio.

    >>> resolve_conclusion("", "", 70)
    'guilty'
    """
    from_text = conclusion_from_text(verdict, rationale, markers=markers)
    if from_text is not None:
        return from_text
    return conclusion_from_ratio(defendant_ratio)


def primary_label(
    verdict: str | None,
    defendant_ratio: float | None,
    rationale: str | None = None,
) -> str:
    """Return the display label: 유죄, 무죄 or 판결 유보."""
    conclusion = resolve_conclusion(verdict, rationale, defendant_ratio)
    if conclusion == GUILTY:
        return LABEL_GUILTY
    if conclusion == NOT_GUILTY:
        return LABEL_NOT_GUILTY
    return LABEL_RESERVED


def extract_sentence(verdict: str | None) -> str:
    """Return only the pronounced sentence from a full verdict line.

    Text after "선고한다." up to a trailing "과실비율" clause; the whole line when
    the marker is absent.
    """
    text = _clean(verdict)
    if not text:
        return ""
    marker = "선고한다."
    index = text.find(marker)
    if index < 0:
        return text
    rest = text[index + len(marker):].strip()
    ratio_match = re.search(r"\s*과실비율", rest)
    if ratio_match:
        rest = rest[: ratio_match.start()].strip()
    return rest or text
