"""
grading.py — Letter-grade (cote) and appreciation ladders on the /20 scale.

The cote ladder is fixed and not configurable:
  A+, A, B+, B, C+, C, D

Lower bounds are inclusive, so a mark sitting exactly on a boundary
resolves to the higher cote. Callers clamp marks to [0, 20] first.
"""

from typing import Any, Dict, List, Optional

SCALE = 20.0

# Cote bands (min_mark, cote). Ordered high to low.
COTE_GRADES = [
    (18.0, "A+"),
    (16.0, "A"),
    (15.0, "B+"),
    (14.0, "B"),
    (12.0, "C+"),
    (10.0, "C"),
    (0.0, "D"),
]

COTE_CODES = tuple(cote for _, cote in COTE_GRADES)

# General appreciation of an average (min_mark, key). Ordered high to low.
APPRECIATION_GRADES = [
    (18.0, "excellent"),
    (16.0, "very_good"),
    (14.0, "good"),
    (12.0, "fairly_good"),
    (10.0, "average"),
    (8.0, "mediocre"),
    (0.0, "poor"),
]

APPRECIATION_LABELS = {
    "fr": {
        "excellent": "Excellent",
        "very_good": "Très bien",
        "good": "Bien",
        "fairly_good": "Assez bien",
        "average": "Passable",
        "mediocre": "Médiocre",
        "poor": "Faible",
        "not_evaluated": "Non évalué",
    },
    "en": {
        "excellent": "Excellent",
        "very_good": "Very good",
        "good": "Good",
        "fairly_good": "Fairly good",
        "average": "Average",
        "mediocre": "Mediocre",
        "poor": "Poor",
        "not_evaluated": "Not evaluated",
    },
}


def classify_cote(mark: float) -> str:
    """Return the cote for a mark already clamped to [0, 20]."""
    for min_mark, cote in COTE_GRADES:
        if mark >= min_mark:
            return cote
    return "D"


def get_cote_scale() -> List[Dict[str, Any]]:
    """Return the full cote ladder for legend/reference."""
    rows = []
    for idx, (min_mark, cote) in enumerate(COTE_GRADES):
        max_mark = SCALE if idx == 0 else COTE_GRADES[idx - 1][0]
        rows.append({"min": min_mark, "max": max_mark, "cote": cote})
    return rows


def get_appreciation(average: Optional[float], locale: str = "fr") -> str:
    """Localized general appreciation for an overall average."""
    labels = APPRECIATION_LABELS.get(locale, APPRECIATION_LABELS["fr"])
    if average is None:
        return labels["not_evaluated"]
    for min_mark, key in APPRECIATION_GRADES:
        if average >= min_mark:
            return labels[key]
    return labels["poor"]


def get_appreciation_scale(locale: str = "fr") -> List[Dict[str, Any]]:
    labels = APPRECIATION_LABELS.get(locale, APPRECIATION_LABELS["fr"])
    return [
        {"min": min_mark, "label": labels[key]}
        for min_mark, key in APPRECIATION_GRADES
    ]
