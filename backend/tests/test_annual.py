"""
Tests for core/annual.py — discipline redistribution and the annual summary.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.annual import (
    build_annual,
    compute_annual_summary,
    format_rank,
    redistribute_discipline,
)
from core.bulletin import build_term
from core.models import DisciplineRecord, SubjectGradeEntry


@pytest.fixture
def counter():
    return DisciplineRecord(
        justified_absence_hours=10,
        unjustified_absence_hours=9,
        late_count=4,
        punishment_hours=2,
        conduct_warnings=7,
        conduct_blames=6,
        suspension_days=3,
        dismissed=1,
    )


class TestRedistributeDiscipline:
    """floor(counter / 3) per term; the remainder is dropped."""

    def test_three_identical_terms(self, counter):
        terms = redistribute_discipline(counter)
        assert len(terms) == 3
        assert terms[0] == terms[1] == terms[2]

    def test_floor_division(self, counter):
        term = redistribute_discipline(counter)[0]
        assert term.justified_absence_hours == 3
        assert term.unjustified_absence_hours == 3
        assert term.late_count == 1
        assert term.punishment_hours == 0
        assert term.conduct_warnings == 2

    def test_sum_never_exceeds_counter(self, counter):
        terms = redistribute_discipline(counter)
        for name in ("justified_absence_hours", "unjustified_absence_hours", "late_count",
                     "punishment_hours", "conduct_warnings"):
            total = sum(getattr(t, name) for t in terms)
            original = getattr(counter, name)
            assert total <= original
            assert (total == original) == (original % 3 == 0)

    def test_other_fields_not_redistributed(self, counter):
        term = redistribute_discipline(counter)[0]
        assert term.conduct_blames == 0
        assert term.suspension_days == 0
        assert term.dismissed == 0

    def test_missing_counter(self):
        assert redistribute_discipline(None) == (DisciplineRecord(),) * 3


class TestFormatRank:

    @pytest.mark.parametrize("rank, total, locale, expected", [
        (1, 35, "fr", "1er/35"),
        (3, 35, "fr", "3ème/35"),
        (1, 35, "en", "1st/35"),
        (2, 35, "en", "2nd/35"),
        (3, None, "en", "3rd"),
        (11, 40, "en", "11th/40"),
        (22, 40, "en", "22nd/40"),
        (None, 40, "fr", ""),
    ])
    def test_labels(self, rank, total, locale, expected):
        assert format_rank(rank, total, locale) == expected


class TestBuildAnnual:

    def test_entered_averages_are_rounded_not_derived(self, counter):
        summary = build_annual(11.25, 12.5, 13.75, counter, None, 4, "PASSE", total_students=30)
        assert summary.term1_average == 11.25
        assert summary.term3_average == 13.75
        assert summary.annual_average is None
        assert summary.progression == (1.25, 1.25)

    def test_manual_annual_average_kept(self, counter):
        summary = build_annual(11.25, 12.5, 13.75, counter, "15.5", 4, "PASSE", total_students=30)
        assert summary.annual_average == 15.5
        assert summary.rank_label == "4ème/30"

    def test_decision_is_stored_not_derived(self, counter):
        summary = build_annual(18, 18, 18, counter, 18, 1, "redouble", total_students=30)
        assert summary.decision == "REDOUBLE"
        assert summary.decision_label == "Redouble"

    def test_decision_label_english(self, counter):
        summary = build_annual(12, 12, 12, counter, 12, 5, "PASSE", total_students=30, locale="en")
        assert summary.decision_label == "Promoted"
        assert summary.rank_label == "5th/30"

    def test_unknown_decision_flagged(self, counter):
        summary = build_annual(12, 12, 12, counter, 12, 5, "MAYBE")
        assert summary.decision is None
        assert "unknown_decision" in summary.issues

    def test_out_of_range_values_flagged_and_kept(self, counter):
        summary = build_annual(12, 22, 12, counter, 21, 40, "PASSE", total_students=35)
        assert summary.term2_average == 22.0
        assert summary.annual_average == 21.0
        assert "term_average_out_of_range" in summary.issues
        assert "annual_average_out_of_range" in summary.issues
        assert "rank_exceeds_total" in summary.issues

    def test_trimester_bulletins_as_terms(self, counter):
        terms = [
            build_term([SubjectGradeEntry("MATHS", coefficient=2, raw_mark=mark)])
            for mark in (10, 12, 14)
        ]
        summary = build_annual(*terms, counter, 12.0, 8, "PASSE", total_students=30)
        assert (summary.term1_average, summary.term2_average, summary.term3_average) == (10.0, 12.0, 14.0)
        assert summary.annual_average == 12.0

    def test_per_term_discipline_from_counter(self, counter):
        summary = build_annual(12, 12, 12, counter, 12, 1, "PASSE")
        assert summary.per_term_discipline == redistribute_discipline(counter)

    def test_text_fields(self, counter):
        summary = build_annual(
            12, 12, 12, counter, 12, 1, "PASSE",
            final_appreciation="  Bon élève ", holiday_recommendations="Réviser les maths",
        )
        assert summary.final_appreciation == "Bon élève"
        assert summary.holiday_recommendations == "Réviser les maths"

    def test_idempotent(self, counter):
        args = (11.25, 12.5, 13.75, counter, 12.5, 3, "PASSE")
        assert build_annual(*args, total_students=30) == build_annual(*args, total_students=30)


class TestComputeAnnualSummary:

    def test_dict_counter(self):
        summary = compute_annual_summary(
            [12, 13, 14],
            annual_discipline={"justifiedAbsenceHours": 7, "lateCount": 5},
            annual_average=13,
            annual_rank=2,
            decision="PASSE",
            total_students=20,
        )
        assert summary.per_term_discipline[0].justified_absence_hours == 2
        assert summary.per_term_discipline[0].late_count == 1
        assert summary.to_dict()["per_term_discipline"][2]["justified_absence_hours"] == 2

    def test_requires_three_terms(self):
        with pytest.raises(ValueError):
            compute_annual_summary([12, 13])


class TestRankValidation:

    @pytest.mark.parametrize("rank", [0, -2, 3.7, "abc"])
    def test_invalid_rank_flagged(self, rank):
        summary = build_annual(12, 12, 12, None, 12, rank, "PASSE", total_students=30)
        assert summary.annual_rank is None
        assert summary.rank_label == ""
        assert "invalid_rank" in summary.issues

    def test_whole_float_rank_accepted(self):
        summary = build_annual(12, 12, 12, None, 12, 3.0, "PASSE", total_students=30)
        assert summary.annual_rank == 3
        assert summary.issues == ()

    def test_missing_rank_not_flagged(self):
        summary = build_annual(12, 12, 12, None, 12, None, "PASSE")
        assert summary.annual_rank is None
        assert "invalid_rank" not in summary.issues
