"""
models.py — Report-card data model.

Inputs (SubjectGradeEntry, DisciplineRecord) and derived views
(BulletinLine, TrimesterBulletin, AnnualSummary) are frozen dataclasses:
a derived view is recomputed on every edit and never patched in place.

The *_from_dict helpers accept both the camelCase keys sent by the web
client and snake_case keys, and tolerate half-filled forms: unreadable
numbers become None rather than raising.
"""

import logging
import math
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Optional, Tuple

from core.aggregation import to_number

logger = logging.getLogger(__name__)

TRACKS = ("general", "technical")
LOCALES = ("fr", "en")
DECISIONS = ("PASSE", "REDOUBLE", "RENVOYE")
BULLETIN_SECTIONS = ("general", "scientific", "literary", "technical", "other")

DEFAULT_TRACK = "general"
DEFAULT_LOCALE = "fr"

REQUIRED_STUDENT_FIELDS = {
    "name": ("name", "studentName", "student_name"),
    "registration_number": ("registration_number", "registrationNumber", "matricule"),
}


def normalize_track(track: Optional[str]) -> str:
    value = str(track or "").strip().lower()
    if value in TRACKS:
        return value
    if value:
        logger.warning("Unknown track %r, using %s", track, DEFAULT_TRACK)
    return DEFAULT_TRACK


def normalize_locale(locale: Optional[str]) -> str:
    value = str(locale or "").strip().lower()
    if value in LOCALES:
        return value
    if value:
        logger.warning("Unknown locale %r, using %s", locale, DEFAULT_LOCALE)
    return DEFAULT_LOCALE


def _jsonable(obj):
    """Recursively turn tuples into lists so payloads serialize predictably."""
    if isinstance(obj, dict):
        return {k: _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_jsonable(v) for v in obj]
    return obj


def _pick(data: Dict[str, Any], *keys: str, default=None):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _text(value) -> str:
    return "" if value is None else str(value).strip()


def _count(value) -> int:
    """Non-negative integer counter; unreadable or negative values count as 0."""
    if isinstance(value, bool):
        return int(value)
    v = to_number(value)
    if v is None or v < 0:
        return 0
    return int(math.floor(v))


# ── Inputs ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SubjectGradeEntry:
    """One subject's raw inputs for one term. raw_mark and final_mark are independent."""

    subject_name: str
    teacher_name: str = ""
    coefficient: Optional[float] = 1
    raw_mark: Optional[float] = None
    final_mark: Optional[float] = None
    competencies: Tuple[str, ...] = ()
    comment_ids: Tuple[str, ...] = ()
    appreciation: str = ""
    bulletin_section: str = "general"

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class DisciplineRecord:
    justified_absence_hours: int = 0
    unjustified_absence_hours: int = 0
    late_count: int = 0
    punishment_hours: int = 0
    conduct_warnings: int = 0
    conduct_blames: int = 0
    suspension_days: int = 0
    dismissed: int = 0

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ── Derived views ───────────────────────────────────────────────────

@dataclass(frozen=True)
class BulletinLine:
    subject_name: str
    teacher_name: str
    coefficient: Optional[float]
    effective_coefficient: float
    raw_mark: Optional[float]
    final_mark: Optional[float]
    authoritative_mark: Optional[float]
    weighted_contribution: float
    percentage: float
    cote: str
    competency_code: str
    competency_label: str
    evaluated_competencies: str
    comments: Tuple[str, ...]
    appreciation: str
    bulletin_section: str
    passed: bool
    issues: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class TrimesterBulletin:
    student_info: Dict[str, Any]
    lines: Tuple[BulletinLine, ...]
    discipline: DisciplineRecord
    weighted_average: float
    track: str = DEFAULT_TRACK
    locale: str = DEFAULT_LOCALE
    term: Optional[str] = None
    total_coefficient: float = 0.0
    total_weighted: float = 0.0
    cote: str = "D"
    appreciation: str = ""
    subject_count: int = 0
    subjects_passed: int = 0
    sections: Tuple[Dict[str, Any], ...] = ()
    printable: bool = False
    missing_fields: Tuple[str, ...] = ()
    table_source: str = "default"

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class AnnualSummary:
    term1_average: Optional[float]
    term2_average: Optional[float]
    term3_average: Optional[float]
    annual_average: Optional[float]
    annual_rank: Optional[int]
    total_students: Optional[int]
    decision: Optional[str]
    final_appreciation: str
    holiday_recommendations: str
    per_term_discipline: Tuple[DisciplineRecord, DisciplineRecord, DisciplineRecord]
    locale: str = DEFAULT_LOCALE
    decision_label: str = ""
    rank_label: str = ""
    progression: Tuple[Optional[float], Optional[float]] = (None, None)
    issues: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


# ── Payload parsing ─────────────────────────────────────────────────

def _competencies_from(data: Dict[str, Any]) -> Tuple[str, ...]:
    listed = _pick(data, "competencies", "evaluatedCompetencies", "evaluated_competencies")
    if listed is not None and not isinstance(listed, (list, tuple)):
        listed = [listed]
    if listed is None:
        listed = [
            _pick(data, f"competence{i}", f"competency{i}", f"competency_{i}")
            for i in (1, 2, 3)
        ]
    return tuple(_text(c) for c in listed if _text(c))


def _comment_ids_from(data: Dict[str, Any]) -> Tuple[str, ...]:
    ids = _pick(data, "commentIds", "comment_ids", "comments", default=())
    if not isinstance(ids, (list, tuple)):
        ids = [ids]
    return tuple(_text(c) for c in ids if _text(c))


def entry_from_dict(data: Dict[str, Any]) -> SubjectGradeEntry:
    """Build a SubjectGradeEntry from a client payload; never derives one mark from the other."""
    raw_coef = _pick(data, "coefficient", "coef", default=1)
    section = _text(_pick(data, "bulletinSection", "bulletin_section", "section")).lower()
    return SubjectGradeEntry(
        subject_name=_text(_pick(data, "subjectName", "subject_name", "subject", "name")),
        teacher_name=_text(_pick(data, "teacherName", "teacher_name", "teacher")),
        coefficient=to_number(raw_coef),
        raw_mark=to_number(_pick(data, "rawMark", "raw_mark", "mark", "m20", "note")),
        final_mark=to_number(_pick(data, "finalMark", "final_mark", "moyenneFinale")),
        competencies=_competencies_from(data),
        comment_ids=_comment_ids_from(data),
        appreciation=_text(_pick(data, "appreciation", "customAppreciation", "custom_appreciation", "remark")),
        bulletin_section=section if section in BULLETIN_SECTIONS else ("other" if section else "general"),
    )


_DISCIPLINE_ALIASES = {
    "justified_absence_hours": ("justifiedAbsenceHours", "justified_absence_hours", "absJ"),
    "unjustified_absence_hours": ("unjustifiedAbsenceHours", "unjustified_absence_hours", "absNJ"),
    "late_count": ("lateCount", "late_count", "late", "lates"),
    "punishment_hours": ("punishmentHours", "punishment_hours", "detentions"),
    "conduct_warnings": ("conductWarnings", "conduct_warnings", "warnings", "sanctions"),
    "conduct_blames": ("conductBlames", "conduct_blames", "blames", "reprimands"),
    "suspension_days": ("suspensionDays", "suspension_days", "exclusions"),
    "dismissed": ("dismissed", "permanentExclusion"),
}


def discipline_from_dict(data: Optional[Dict[str, Any]]) -> DisciplineRecord:
    if not data:
        return DisciplineRecord()
    values = {
        name: _count(_pick(data, *aliases, default=0))
        for name, aliases in _DISCIPLINE_ALIASES.items()
    }
    values["dismissed"] = 1 if values["dismissed"] else 0
    return DisciplineRecord(**values)


def missing_student_fields(student_info: Optional[Dict[str, Any]]) -> Tuple[str, ...]:
    """Identity fields that must be non-empty before a record is printable."""
    info = student_info or {}
    return tuple(
        name for name, aliases in REQUIRED_STUDENT_FIELDS.items()
        if not _text(_pick(info, *aliases))
    )
