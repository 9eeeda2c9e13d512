# tests/test_verdict.py
"""Tests for conclusion resolution from judgment text and fault ratio."""

import math

import pytest

from gaepan.services.verdict import (
    GUILTY,
    LABEL_GUILTY,
    LABEL_NOT_GUILTY,
    LABEL_RESERVED,
    NOT_GUILTY,
    UNDETERMINED,
    MarkerTable,
    conclusion_from_ratio,
    conclusion_from_text,
    extract_sentence,
    primary_label,
    resolve_conclusion,
)


@pytest.mark.parametrize(
    ("verdict", "rationale", "ratio", "expected"),
    [
        ("피고인 무죄", "", 80, NOT_GUILTY),
        ("벌금 30만원", "", 20, GUILTY),
        ("", "", 50, UNDETERMINED),
        ("", "", 70, GUILTY),
        ("", "", 30, NOT_GUILTY),
    ],
)
def test_resolve_conclusion_examples(verdict, rationale, ratio, expected) -> None:
    assert resolve_conclusion(verdict, rationale, ratio) == expected


def test_rationale_not_guilty_outranks_guilty_verdict() -> None:
    """A not-guilty rationale wins even when the short verdict says guilty."""
    assert resolve_conclusion("유죄", "검토 결과 불기소 처분이 타당하다", 90) == NOT_GUILTY


def test_rationale_with_both_markers_does_not_settle_not_guilty() -> None:
    rationale = "피고인 무죄 주장은 받아들이지 않는다. 따라서 유죄."
    assert conclusion_from_text("", rationale) == GUILTY


def test_rationale_mentioning_guilt_without_period_is_not_a_guilty_marker() -> None:
    assert conclusion_from_text("", "유죄 여부를 따져본다") is None


def test_verdict_guilty_marker_applies_without_period() -> None:
    assert conclusion_from_text("유죄 판결", "") == GUILTY


@pytest.mark.parametrize("text", ["징역 2년", "사회봉사 40시간", "집행유예 1년", "벌금 100만원"])
def test_sentence_markers_mean_guilty(text: str) -> None:
    assert conclusion_from_text(text) == GUILTY


@pytest.mark.parametrize("ratio", [None, math.nan, math.inf, "not-a-number"])
def test_unusable_ratio_is_treated_as_midpoint(ratio) -> None:
    assert conclusion_from_ratio(ratio) == UNDETERMINED


def test_resolution_is_deterministic() -> None:
    args = ("원고 무죄", "사건 개요", 65)
    assert {resolve_conclusion(*args) for _ in range(5)} == {NOT_GUILTY}


def test_custom_marker_table() -> None:
    markers = MarkerTable(not_guilty=(r"innocent",), guilty_in_verdict=(r"guilty",))
    assert resolve_conclusion("Innocent", "", 90, markers=markers) == NOT_GUILTY
    assert resolve_conclusion("GUILTY", "", 10, markers=markers) == GUILTY


def test_primary_label() -> None:
    assert primary_label("징역 1년", 10) == LABEL_GUILTY
    assert primary_label("", 10) == LABEL_NOT_GUILTY
    assert primary_label(None, None) == LABEL_RESERVED


def test_extract_sentence() -> None:
    verdict = "피고인에게 다음과 같이 선고한다. 벌금 30만원 과실비율 70:30"
    assert extract_sentence(verdict) == "벌금 30만원"
    assert extract_sentence("징역 1년") == "징역 1년"
    assert extract_sentence(None) == ""
