"""
gradesheet.py — Flat mark sheets → per-student subject entries.

A mark sheet has one row per (student, subject). Columns are detected
case-insensitively through alias lists, so French and English headers
both work. Numbers are coerced with pandas; blanks stay None. A missing
final-mark column never gets filled from the raw mark.
"""

from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from core.models import SubjectGradeEntry, discipline_from_dict, entry_from_dict

COLUMN_ALIASES = {
    "student_id": ["student_id", "registration_number", "matricule", "id", "adm_no"],
    "name": ["name", "student_name", "nom", "full_name", "student"],
    "class": ["class", "classe", "class_label"],
    "subject": ["subject", "subject_name", "matiere", "matière", "course"],
    "teacher": ["teacher", "teacher_name", "enseignant", "professeur"],
    "coefficient": ["coefficient", "coef", "coeff"],
    "raw_mark": ["raw_mark", "mark", "note", "m20", "score"],
    "final_mark": ["final_mark", "moyenne_finale", "moyennefinale", "final"],
    "competence1": ["competence1", "competency1", "competence_1"],
    "competence2": ["competence2", "competency2", "competence_2"],
    "competence3": ["competence3", "competency3", "competence_3"],
    "comments": ["comments", "comment_ids", "commentaires"],
    "appreciation": ["appreciation", "appréciation", "remark"],
    "section": ["section", "bulletin_section"],
}

STUDENT_FIELDS = ("student_id", "name", "class")
NUMERIC_FIELDS = ("coefficient", "raw_mark", "final_mark")

DISCIPLINE_COLUMNS = [
    "justified_absence_hours", "unjustified_absence_hours", "late_count",
    "punishment_hours", "conduct_warnings", "conduct_blames",
    "suspension_days", "dismissed",
]


def _find_col(df: pd.DataFrame, aliases: List[str]) -> Optional[str]:
    """Find the first column matching any alias (case-insensitive)."""
    cols_lower = {str(c).lower().strip(): c for c in df.columns}
    for a in aliases:
        if a.lower() in cols_lower:
            return cols_lower[a.lower()]
    return None


def detect_columns(df: pd.DataFrame) -> Dict[str, str]:
    """Map canonical field names to the sheet's actual column names."""
    mapping = {}
    for field, aliases in COLUMN_ALIASES.items():
        col = _find_col(df, aliases)
        if col is not None:
            mapping[field] = col
    return mapping


def _cell(row: pd.Series, col: Optional[str]):
    if col is None:
        return None
    value = row.get(col)
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def _split_comments(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [part.strip() for part in str(value).replace(";", ",").split(",") if part.strip()]


def entries_by_student(df: pd.DataFrame) -> "OrderedDict[str, Tuple[Dict[str, Any], List[SubjectGradeEntry]]]":
    """
    Group a mark sheet by student (first-seen order) into
    ``student key -> (student_info, [SubjectGradeEntry])``.
    """
    df = df.copy()
    mapping = detect_columns(df)
    for field in NUMERIC_FIELDS:
        if field in mapping:
            df[mapping[field]] = pd.to_numeric(df[mapping[field]], errors="coerce")

    key_col = mapping.get("student_id") or mapping.get("name")
    grouped: "OrderedDict[str, Tuple[Dict[str, Any], List[SubjectGradeEntry]]]" = OrderedDict()

    for idx, row in df.iterrows():
        key = _cell(row, key_col)
        key = str(key).strip() if key is not None else f"row-{idx}"

        if key not in grouped:
            info = {}
            sid = _cell(row, mapping.get("student_id"))
            name = _cell(row, mapping.get("name"))
            cls = _cell(row, mapping.get("class"))
            if sid is not None:
                info["registration_number"] = str(sid).strip()
            if name is not None:
                info["name"] = str(name).strip()
            if cls is not None:
                info["class_label"] = str(cls).strip()
            grouped[key] = (info, [])

        payload = {
            "subject": _cell(row, mapping.get("subject")),
            "teacher": _cell(row, mapping.get("teacher")),
            "coefficient": _cell(row, mapping.get("coefficient")),
            "raw_mark": _cell(row, mapping.get("raw_mark")),
            "final_mark": _cell(row, mapping.get("final_mark")),
            "competence1": _cell(row, mapping.get("competence1")),
            "competence2": _cell(row, mapping.get("competence2")),
            "competence3": _cell(row, mapping.get("competence3")),
            "comments": _split_comments(_cell(row, mapping.get("comments"))),
            "appreciation": _cell(row, mapping.get("appreciation")),
            "section": _cell(row, mapping.get("section")),
        }
        if payload["coefficient"] is None and "coefficient" in mapping:
            # Blank coefficient cell: keep it unreadable rather than defaulting to 1
            payload["coefficient"] = ""
        grouped[key][1].append(entry_from_dict(payload))

    return grouped


def discipline_by_student(df: pd.DataFrame) -> Dict[str, Any]:
    """First discipline values seen per student, if the sheet carries them."""
    mapping = detect_columns(df)
    key_col = mapping.get("student_id") or mapping.get("name")
    present = [c for c in DISCIPLINE_COLUMNS if _find_col(df, [c])]
    if key_col is None or not present:
        return {}
    result = {}
    for _, row in df.iterrows():
        key = _cell(row, key_col)
        if key is None or str(key).strip() in result:
            continue
        result[str(key).strip()] = discipline_from_dict(
            {c: _cell(row, _find_col(df, [c])) for c in present}
        )
    return result


def students_from_sheet(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Shape a mark sheet as the ``students`` list the class report expects."""
    discipline = discipline_by_student(df)
    return [
        {"student": info, "subjects": entries, "discipline": discipline.get(key)}
        for key, (info, entries) in entries_by_student(df).items()
    ]
