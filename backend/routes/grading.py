"""
Grading routes — reference scales, comment catalog and mark classification.
"""

import os

from fastapi import APIRouter, HTTPException

from core.aggregation import clamp_mark, to_number
from core.bulletin import resolve_table
from core.comments import CATALOG_VERSION, get_comment_catalog
from core.competency import DEFAULT_COMPETENCY_TABLE
from core.grading import classify_cote, get_appreciation_scale, get_cote_scale
from core.models import LOCALES

router = APIRouter()

DEFAULT_LANGUAGE = os.getenv("BULLETIN_LANGUAGE", "fr")


def _checked_language(language: str) -> str:
    language = (language or DEFAULT_LANGUAGE).lower()
    if language not in LOCALES:
        raise HTTPException(400, f"Unsupported language: {language}. Use one of {list(LOCALES)}.")
    return language


@router.get("/scale")
async def grading_scale():
    """Cote ladder, default competency table and appreciation ladders."""
    return {
        "cote_scale": get_cote_scale(),
        "competency_table": DEFAULT_COMPETENCY_TABLE.to_dict(),
        "appreciation_scale": {loc: get_appreciation_scale(loc) for loc in LOCALES},
    }


@router.get("/comments")
async def comment_catalog(language: str = DEFAULT_LANGUAGE):
    """Ministry-approved teacher comments for one language."""
    language = _checked_language(language)
    return {
        "version": CATALOG_VERSION,
        "language": language,
        "comments": get_comment_catalog(language),
    }


@router.post("/classify")
async def classify_marks(payload: dict):
    """
    Classify marks against the cote ladder and a competency table.
    Expects: { "marks": [14.5, 9, ...], "language": "fr", "competency_table": [...] }
    """
    marks = payload.get("marks")
    if not isinstance(marks, list) or not marks:
        raise HTTPException(400, "No marks provided.")

    language = _checked_language(payload.get("language"))
    table = resolve_table(payload.get("competency_table"))

    results = []
    for mark in marks:
        value = to_number(mark)
        scored = clamp_mark(value)
        band = table.classify(scored)
        results.append({
            "mark": value,
            "cote": classify_cote(scored),
            "competency_code": band.label(language),
            "competency_label": band.description(language),
        })
    return {"table_source": table.source, "results": results}
