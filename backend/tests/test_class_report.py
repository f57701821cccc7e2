"""
Tests for core/class_report.py — ranking and class statistics.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.class_report import compute_class_report


def _student(name, reg, maths, french):
    return {
        "student": {"name": name, "registration_number": reg},
        "subjects": [
            {"subject": "MATHS", "coefficient": 4, "rawMark": maths},
            {"subject": "FRANÇAIS", "coefficient": 4, "rawMark": french},
        ],
        "discipline": {"absJ": 2},
    }


@pytest.fixture
def students():
    return [
        _student("Alima", "M1", 15, 15),   # 15.00
        _student("Bella", "M2", 12, 12),   # 12.00
        _student("Chris", "M3", 16, 14),   # 15.00
        _student("Dora", "M4", 8, 9),      # 8.50
    ]


class TestComputeClassReport:

    def test_returns_one_bulletin_per_student(self, students):
        report = compute_class_report(students)
        assert len(report["bulletins"]) == 4
        assert [b["student_info"]["name"] for b in report["bulletins"]] == [
            "Alima", "Bella", "Chris", "Dora",
        ]

    def test_ties_share_rank(self, students):
        ranking = compute_class_report(students)["ranking"]
        assert [(r["student"], r["rank"]) for r in ranking] == [
            ("Alima", 1), ("Chris", 1), ("Bella", 3), ("Dora", 4),
        ]
        assert ranking[0]["rank_label"] == "1er/4"
        assert ranking[2]["rank_label"] == "3ème/4"

    def test_english_rank_labels(self, students):
        ranking = compute_class_report(students, locale="en")["ranking"]
        assert ranking[-1]["rank_label"] == "4th/4"

    def test_class_stats(self, students):
        stats = compute_class_report(students)["class_stats"]
        assert stats == {
            "class_size": 4,
            "mean": 12.63,
            "highest": 15.0,
            "lowest": 8.5,
            "passed": 3,
        }

    def test_subject_stats_in_first_seen_order(self, students):
        subject_stats = compute_class_report(students)["subject_stats"]
        assert [s["subject"] for s in subject_stats] == ["MATHS", "FRANÇAIS"]
        maths = subject_stats[0]
        assert maths["class_average"] == 12.75
        assert maths["best"] == 16.0
        assert maths["lowest"] == 8.0
        assert maths["count"] == 4

    def test_empty_class(self):
        report = compute_class_report([])
        assert report["bulletins"] == []
        assert report["ranking"] == []
        assert report["subject_stats"] == []
        assert report["class_stats"]["class_size"] == 0

    def test_technical_track(self, students):
        report = compute_class_report(students, track="technical")
        # No final marks were entered, so every technical average is 0
        assert report["track"] == "technical"
        assert all(b["weighted_average"] == 0 for b in report["bulletins"])
