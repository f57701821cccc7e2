"""
bulletin.py — Subject lines and the trimester report card.

Track decides which entered mark is authoritative:
- general:   raw_mark  (one mark column on the printed card)
- technical: final_mark (raw and final columns, subjects grouped by section)

Every derived figure on a line is a pure function of the authoritative
mark, the coefficient, the locale and the competency table. Out-of-range
marks are clamped and negative coefficients zeroed for computation only;
the entered values stay on the line and the violation is listed in
``issues``.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from core.aggregation import (
    MARK_MAX,
    MARK_MIN,
    clamp_mark,
    effective_coefficient,
    percentage,
    round2,
    weighted_average,
    weighted_contribution,
    weighted_totals,
)
from core.comments import is_known_comment, resolve_comments
from core.competency import DEFAULT_COMPETENCY_TABLE, CompetencyTable, table_from_records
from core.grading import classify_cote, get_appreciation
from core.models import (
    BulletinLine,
    DisciplineRecord,
    SubjectGradeEntry,
    TrimesterBulletin,
    discipline_from_dict,
    entry_from_dict,
    missing_student_fields,
    normalize_locale,
    normalize_track,
)

logger = logging.getLogger(__name__)

PASS_MARK = 10.0
COMPETENCY_SEPARATOR = "\n"


def _mark_issues(entry: SubjectGradeEntry, authoritative: Optional[float]) -> List[str]:
    issues = []
    for name, value in (("raw_mark", entry.raw_mark), ("final_mark", entry.final_mark)):
        if value is not None and not (MARK_MIN <= value <= MARK_MAX):
            issues.append(f"{name}_out_of_range")
    if authoritative is None:
        issues.append("mark_missing")
    if entry.coefficient is None:
        issues.append("invalid_coefficient")
    elif entry.coefficient < 0:
        issues.append("negative_coefficient")
    if any(not is_known_comment(cid) for cid in entry.comment_ids):
        issues.append("unknown_comment")
    return issues


def authoritative_mark(entry: SubjectGradeEntry, track: str) -> Optional[float]:
    """final_mark on the technical track, raw_mark otherwise."""
    return entry.final_mark if track == "technical" else entry.raw_mark


def assemble_line(
    entry: SubjectGradeEntry,
    track: str = "general",
    locale: str = "fr",
    table: Optional[CompetencyTable] = None,
) -> BulletinLine:
    """Derive one read-only bulletin line from a subject entry."""
    track = normalize_track(track)
    locale = normalize_locale(locale)
    table = table or DEFAULT_COMPETENCY_TABLE

    mark = authoritative_mark(entry, track)
    issues = _mark_issues(entry, mark)
    if issues:
        logger.debug("Subject %r tolerated issues: %s", entry.subject_name, issues)

    scored = clamp_mark(mark)
    band = table.classify(scored)

    return BulletinLine(
        subject_name=entry.subject_name,
        teacher_name=entry.teacher_name,
        coefficient=entry.coefficient,
        effective_coefficient=effective_coefficient(entry.coefficient),
        raw_mark=entry.raw_mark,
        final_mark=entry.final_mark,
        authoritative_mark=mark,
        weighted_contribution=weighted_contribution(scored, entry.coefficient),
        percentage=percentage(scored),
        cote=classify_cote(scored),
        competency_code=band.label(locale),
        competency_label=band.description(locale),
        evaluated_competencies=COMPETENCY_SEPARATOR.join(entry.competencies),
        comments=resolve_comments(entry.comment_ids, locale),
        appreciation=entry.appreciation,
        bulletin_section=entry.bulletin_section,
        passed=scored >= PASS_MARK,
        issues=tuple(issues),
    )


def group_sections(lines: Sequence[BulletinLine]) -> List[Dict[str, Any]]:
    """Technical-track grouping by bulletin_section, in first-seen order."""
    groups: Dict[str, List[BulletinLine]] = {}
    for line in lines:
        groups.setdefault(line.bulletin_section, []).append(line)

    sections = []
    for name, members in groups.items():
        pairs = [(m.authoritative_mark, m.coefficient) for m in members]
        total, total_coef = weighted_totals(pairs)
        sections.append({
            "section": name,
            "subjects": [m.subject_name for m in members],
            "total_coefficient": round2(total_coef),
            "total_weighted": round2(total),
            "average": weighted_average(pairs),
        })
    return sections


def build_term(
    entries: Iterable[SubjectGradeEntry],
    discipline: Optional[DisciplineRecord] = None,
    track: str = "general",
    locale: str = "fr",
    table: Optional[CompetencyTable] = None,
    student_info: Optional[Dict[str, Any]] = None,
    term: Optional[str] = None,
) -> TrimesterBulletin:
    """Compose lines, discipline and averages into one term's report card."""
    track = normalize_track(track)
    locale = normalize_locale(locale)
    table = table or DEFAULT_COMPETENCY_TABLE

    lines = tuple(assemble_line(e, track, locale, table) for e in entries)
    pairs = [(line.authoritative_mark, line.coefficient) for line in lines]
    total, total_coef = weighted_totals(pairs)
    average = weighted_average(pairs)
    missing = missing_student_fields(student_info)

    return TrimesterBulletin(
        student_info=dict(student_info or {}),
        lines=lines,
        discipline=discipline or DisciplineRecord(),
        weighted_average=average,
        track=track,
        locale=locale,
        term=term,
        total_coefficient=round2(total_coef),
        total_weighted=round2(total),
        cote=classify_cote(clamp_mark(average)),
        appreciation=get_appreciation(average if lines else None, locale),
        subject_count=len(lines),
        subjects_passed=sum(1 for line in lines if line.passed),
        sections=tuple(group_sections(lines)) if track == "technical" else (),
        printable=not missing,
        missing_fields=missing,
        table_source=table.source,
    )


def resolve_table(competency_table) -> CompetencyTable:
    """CompetencyTable as given, else built from backend records (None means default)."""
    if isinstance(competency_table, CompetencyTable):
        return competency_table
    return table_from_records(competency_table)


def compute_trimester_bulletin(
    student_info: Optional[Dict[str, Any]],
    entries: Iterable[Union[SubjectGradeEntry, Dict[str, Any]]],
    discipline: Union[DisciplineRecord, Dict[str, Any], None] = None,
    track: str = "general",
    locale: str = "fr",
    competency_table=None,
    term: Optional[str] = None,
) -> TrimesterBulletin:
    """
    Entry point for callers holding plain data.

    ``entries`` may mix SubjectGradeEntry objects and client dicts;
    ``competency_table`` may be a CompetencyTable, the backend record list,
    or None for the built-in table.
    """
    parsed = [
        e if isinstance(e, SubjectGradeEntry) else entry_from_dict(e if isinstance(e, dict) else {})
        for e in entries or ()
    ]
    if not isinstance(discipline, DisciplineRecord):
        discipline = discipline_from_dict(discipline)
    return build_term(
        parsed,
        discipline=discipline,
        track=track,
        locale=locale,
        table=resolve_table(competency_table),
        student_info=student_info,
        term=term,
    )
