"""
class_report.py — Class-level rollup of trimester report cards.

Computes:
- One TrimesterBulletin per student (input order preserved)
- Competition ranking on the weighted average (ties share a rank)
- Class mean / highest / lowest average
- Per-subject class average, best and lowest mark

Ranking is advisory for the class council; annual ranks stay manual.
"""

from typing import Any, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from core.aggregation import clamp_mark, round2
from core.annual import format_rank
from core.bulletin import PASS_MARK, compute_trimester_bulletin, resolve_table
from core.models import TrimesterBulletin, normalize_locale, normalize_track


# ── Helpers ─────────────────────────────────────────────────────────

def _safe_float(val) -> Optional[float]:
    """Convert to a 2-decimal float or return None."""
    try:
        v = float(val)
        return None if np.isnan(v) or np.isinf(v) else round2(v)
    except (TypeError, ValueError):
        return None


def _sanitize(obj):
    """Recursively coerce numpy/pandas scalars to JSON-safe Python types."""
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize(v) for v in obj]
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, (np.floating, float)):
        v = float(obj)
        return None if (np.isnan(v) or np.isinf(v)) else v
    return obj


def _student_label(info: Dict[str, Any], index: int) -> str:
    for key in ("name", "studentName", "student_name", "registration_number", "matricule", "id"):
        value = info.get(key)
        if value not in (None, ""):
            return str(value)
    return f"#{index + 1}"


# ── Ranking and statistics ──────────────────────────────────────────

def rank_bulletins(bulletins: List[TrimesterBulletin], locale: str = "fr") -> List[Dict[str, Any]]:
    """Competition ranking (1, 2, 2, 4) on weighted average, best first."""
    if not bulletins:
        return []
    df = pd.DataFrame({
        "position": range(len(bulletins)),
        "student": [_student_label(b.student_info, i) for i, b in enumerate(bulletins)],
        "average": [b.weighted_average for b in bulletins],
    })
    df["rank"] = df["average"].rank(method="min", ascending=False).astype(int)
    df = df.sort_values(["rank", "position"])
    total = len(df)
    return [
        {
            "position": int(row.position),
            "student": row.student,
            "average": _safe_float(row.average),
            "rank": int(row.rank),
            "rank_label": format_rank(int(row.rank), total, locale),
        }
        for row in df.itertuples(index=False)
    ]


def compute_class_stats(bulletins: List[TrimesterBulletin]) -> Dict[str, Any]:
    averages = pd.Series([b.weighted_average for b in bulletins], dtype=float)
    if averages.empty:
        return {"class_size": 0, "mean": None, "highest": None, "lowest": None, "passed": 0}
    return {
        "class_size": int(len(averages)),
        "mean": _safe_float(averages.mean()),
        "highest": _safe_float(averages.max()),
        "lowest": _safe_float(averages.min()),
        "passed": int((averages >= PASS_MARK).sum()),
    }


def compute_subject_stats(bulletins: List[TrimesterBulletin]) -> List[Dict[str, Any]]:
    """Per-subject class average, best and lowest authoritative mark."""
    rows = [
        {"subject": line.subject_name, "mark": clamp_mark(line.authoritative_mark)}
        for b in bulletins
        for line in b.lines
    ]
    if not rows:
        return []
    df = pd.DataFrame(rows)
    grouped = df.groupby("subject", sort=False)["mark"].agg(["mean", "max", "min", "count"])
    return [
        {
            "subject": str(subject),
            "class_average": _safe_float(row["mean"]),
            "best": _safe_float(row["max"]),
            "lowest": _safe_float(row["min"]),
            "count": int(row["count"]),
        }
        for subject, row in grouped.iterrows()
    ]


def compute_class_report(
    students: Iterable[Dict[str, Any]],
    track: str = "general",
    locale: str = "fr",
    competency_table=None,
    term: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build every student's bulletin, then rank and summarise the class.
    Each student item holds ``student``, ``subjects`` and ``discipline``.
    """
    locale = normalize_locale(locale)
    table = resolve_table(competency_table)
    bulletins = [
        compute_trimester_bulletin(
            s.get("student") or {},
            s.get("subjects") or [],
            s.get("discipline"),
            track=track,
            locale=locale,
            competency_table=table,
            term=term,
        )
        for s in students
    ]
    report = {
        "term": term,
        "track": normalize_track(track),
        "locale": locale,
        "table_source": table.source,
        "bulletins": [b.to_dict() for b in bulletins],
        "ranking": rank_bulletins(bulletins, locale),
        "class_stats": compute_class_stats(bulletins),
        "subject_stats": compute_subject_stats(bulletins),
    }
    return _sanitize(report)
