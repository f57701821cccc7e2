"""
Bulletin routes — trimester report cards, annual summaries and class rollups.
"""

import os
import logging

from fastapi import APIRouter, HTTPException
import pandas as pd

from core.annual import compute_annual_summary
from core.bulletin import compute_trimester_bulletin
from core.class_report import compute_class_report
from core.gradesheet import students_from_sheet
from core.models import LOCALES, TRACKS

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_LANGUAGE = os.getenv("BULLETIN_LANGUAGE", "fr")
DEFAULT_TRACK = os.getenv("BULLETIN_TRACK", "general")


def _language(payload: dict) -> str:
    language = str(payload.get("language") or DEFAULT_LANGUAGE).lower()
    if language not in LOCALES:
        raise HTTPException(400, f"Unsupported language: {language}. Use one of {list(LOCALES)}.")
    return language


def _track(payload: dict) -> str:
    track = str(payload.get("track") or DEFAULT_TRACK).lower()
    if track not in TRACKS:
        raise HTTPException(400, f"Unsupported track: {track}. Use one of {list(TRACKS)}.")
    return track


def _term_input(term, language: str, track: str, competency_table):
    """A term is either an entered average or a full trimester payload."""
    if isinstance(term, dict):
        return compute_trimester_bulletin(
            term.get("student") or {},
            term.get("subjects") or [],
            term.get("discipline"),
            track=track,
            locale=language,
            competency_table=competency_table,
            term=term.get("term"),
        )
    return term


@router.post("/trimester")
async def trimester_bulletin(payload: dict):
    """
    One student's report card for one term.
    Expects: { "student": {...}, "subjects": [...], "discipline": {...},
               "track": "general", "language": "fr", "term": "T1",
               "competency_table": [...] }
    """
    subjects = payload.get("subjects")
    if subjects is None:
        raise HTTPException(400, "No subjects provided.")

    bulletin = compute_trimester_bulletin(
        payload.get("student") or {},
        subjects,
        payload.get("discipline"),
        track=_track(payload),
        locale=_language(payload),
        competency_table=payload.get("competency_table"),
        term=payload.get("term"),
    )
    return bulletin.to_dict()


@router.post("/annual")
async def annual_summary(payload: dict):
    """
    Third-term annual summary.
    Each of the three "terms" is either an entered average or a trimester payload.
    """
    terms = payload.get("terms")
    if not isinstance(terms, list) or len(terms) != 3:
        raise HTTPException(400, "Exactly 3 terms are required.")

    language = _language(payload)
    track = _track(payload)
    competency_table = payload.get("competency_table")

    summary = compute_annual_summary(
        [_term_input(t, language, track, competency_table) for t in terms],
        annual_discipline=payload.get("annual_discipline"),
        annual_average=payload.get("annual_average"),
        annual_rank=payload.get("annual_rank"),
        decision=payload.get("decision"),
        total_students=payload.get("total_students"),
        final_appreciation=payload.get("final_appreciation", ""),
        holiday_recommendations=payload.get("holiday_recommendations", ""),
        locale=language,
    )
    return summary.to_dict()


@router.post("/class")
async def class_report(payload: dict):
    """
    Report cards for a whole class plus ranking and class statistics.
    Accepts either "students" (nested) or "data" (flat mark-sheet rows).
    """
    students = payload.get("students")
    if students is None:
        data = payload.get("data")
        if not data:
            raise HTTPException(400, "No students or data provided.")
        students = students_from_sheet(pd.DataFrame(data))

    report = compute_class_report(
        students,
        track=_track(payload),
        locale=_language(payload),
        competency_table=payload.get("competency_table"),
        term=payload.get("term"),
    )
    logger.info("Class report computed for %d students", len(report["bulletins"]))
    return report
