"""
Tests for core/gradesheet.py — column detection and per-student grouping.
"""

import os
import sys

import numpy as np
import pandas as pd
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.class_report import compute_class_report
from core.gradesheet import detect_columns, entries_by_student, students_from_sheet


@pytest.fixture
def french_sheet():
    return pd.DataFrame({
        "Matricule": ["M1", "M1", "M2", "M2"],
        "Nom": ["Alima", "Alima", "Bella", "Bella"],
        "Matière": ["MATHS", "FRANÇAIS", "MATHS", "FRANÇAIS"],
        "Coef": [4, 6, 4, 6],
        "Note": [15, 12, np.nan, 11],
        "Commentaires": ["very_good; participation", None, None, "can_do_better"],
        "late_count": [2, 2, 0, 0],
    })


class TestDetectColumns:

    def test_french_headers(self, french_sheet):
        mapping = detect_columns(french_sheet)
        assert mapping["student_id"] == "Matricule"
        assert mapping["name"] == "Nom"
        assert mapping["subject"] == "Matière"
        assert mapping["coefficient"] == "Coef"
        assert mapping["raw_mark"] == "Note"
        assert "final_mark" not in mapping


class TestEntriesByStudent:

    def test_groups_in_first_seen_order(self, french_sheet):
        grouped = entries_by_student(french_sheet)
        assert list(grouped.keys()) == ["M1", "M2"]
        info, entries = grouped["M1"]
        assert info == {"registration_number": "M1", "name": "Alima"}
        assert [e.subject_name for e in entries] == ["MATHS", "FRANÇAIS"]

    def test_marks_and_comments(self, french_sheet):
        _, entries = entries_by_student(french_sheet)["M1"]
        assert entries[0].raw_mark == 15
        assert entries[0].coefficient == 4
        assert entries[0].comment_ids == ("very_good", "participation")

    def test_blank_mark_stays_none(self, french_sheet):
        _, entries = entries_by_student(french_sheet)["M2"]
        assert entries[0].raw_mark is None

    def test_final_mark_never_copied_from_raw(self, french_sheet):
        for _, entries in entries_by_student(french_sheet).values():
            assert all(e.final_mark is None for e in entries)

    def test_blank_coefficient_is_unreadable(self):
        df = pd.DataFrame({"name": ["A"], "subject": ["SVT"], "coef": [np.nan], "mark": [12]})
        _, entries = entries_by_student(df)["A"]
        assert entries[0].coefficient is None


class TestStudentsFromSheet:

    def test_feeds_class_report(self, french_sheet):
        students = students_from_sheet(french_sheet)
        assert students[0]["discipline"].late_count == 2
        report = compute_class_report(students)
        # Alima: (15*4 + 12*6) / 10 = 13.2 ; Bella: (0*4 + 11*6) / 10 = 6.6
        averages = [b["weighted_average"] for b in report["bulletins"]]
        assert averages == [13.2, 6.6]
        assert "mark_missing" in report["bulletins"][1]["lines"][0]["issues"]
