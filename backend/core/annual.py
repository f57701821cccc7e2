"""
annual.py — Third-term annual rollup.

The three term averages and the annual average are entered by people; the
engine only rounds them and flags values outside [0, 20]. It never fills in
the annual average and never decides promotion: the council's decision is
stored as given when it belongs to PASSE / REDOUBLE / RENVOYE.

The annual discipline counter is split into three identical per-term
records with floor(counter / 3). The remainder is dropped, so the three
terms may sum to less than the annual counter.
"""

import logging
from typing import Any, Dict, Optional, Tuple, Union

from core.aggregation import MARK_MAX, MARK_MIN, round2, to_number
from core.models import (
    DECISIONS,
    AnnualSummary,
    DisciplineRecord,
    TrimesterBulletin,
    discipline_from_dict,
    normalize_locale,
)

logger = logging.getLogger(__name__)

REDISTRIBUTED_FIELDS = (
    "justified_absence_hours",
    "unjustified_absence_hours",
    "late_count",
    "punishment_hours",
    "conduct_warnings",
)

DECISION_LABELS = {
    "fr": {"PASSE": "Passe", "REDOUBLE": "Redouble", "RENVOYE": "Renvoyé(e)"},
    "en": {"PASSE": "Promoted", "REDOUBLE": "Repeats the year", "RENVOYE": "Expelled"},
}

TermInput = Union[TrimesterBulletin, float, int, str, None]


def redistribute_discipline(counter: Optional[DisciplineRecord]) -> Tuple[DisciplineRecord, ...]:
    """Three identical per-term records, each field floor(counter / 3)."""
    counter = counter or DisciplineRecord()
    per_term = DisciplineRecord(**{name: getattr(counter, name) // 3 for name in REDISTRIBUTED_FIELDS})
    return (per_term, per_term, per_term)


def term_average(term: TermInput) -> Optional[float]:
    """Average of one term: a bulletin's weighted average or an entered figure."""
    if isinstance(term, TrimesterBulletin):
        return term.weighted_average
    value = to_number(term)
    return None if value is None else round2(value)


def normalize_decision(decision: Optional[str]) -> Optional[str]:
    value = str(decision or "").strip().upper()
    if value == "RENVOYÉ":
        value = "RENVOYE"
    return value if value in DECISIONS else None


def format_rank(rank: Optional[int], total: Optional[int] = None, locale: str = "fr") -> str:
    """'1er/35', '3ème/35' in French; '1st/35', '3rd/35' in English."""
    if rank is None:
        return ""
    if locale == "en":
        if 10 <= rank % 100 <= 20:
            suffix = "th"
        else:
            suffix = {1: "st", 2: "nd", 3: "rd"}.get(rank % 10, "th")
    else:
        suffix = "er" if rank == 1 else "ème"
    label = f"{rank}{suffix}"
    return f"{label}/{total}" if total else label


def _progression(a: Optional[float], b: Optional[float]) -> Optional[float]:
    if a is None or b is None:
        return None
    return round2(b - a)


def _positive_int(value) -> Tuple[Optional[int], bool]:
    """(whole number >= 1 or None, whether a supplied value was rejected)."""
    v = to_number(value)
    if v is None:
        return None, value not in (None, "")
    if v < 1 or v != int(v):
        return None, True
    return int(v), False


def build_annual(
    term1: TermInput,
    term2: TermInput,
    term3: TermInput,
    annual_discipline: Optional[DisciplineRecord],
    annual_average,
    annual_rank,
    decision: Optional[str],
    total_students=None,
    final_appreciation: str = "",
    holiday_recommendations: str = "",
    locale: str = "fr",
) -> AnnualSummary:
    """Fold three terms and the annual counters into one AnnualSummary."""
    locale = normalize_locale(locale)
    issues = []

    averages = [term_average(t) for t in (term1, term2, term3)]
    if any(a is not None and not (MARK_MIN <= a <= MARK_MAX) for a in averages):
        issues.append("term_average_out_of_range")

    annual = to_number(annual_average)
    if annual is not None:
        annual = round2(annual)
        if not (MARK_MIN <= annual <= MARK_MAX):
            issues.append("annual_average_out_of_range")

    code = normalize_decision(decision)
    if decision and code is None:
        logger.warning("Unknown council decision %r ignored", decision)
        issues.append("unknown_decision")

    rank, bad_rank = _positive_int(annual_rank)
    if bad_rank:
        logger.warning("Invalid annual rank %r ignored", annual_rank)
        issues.append("invalid_rank")
    total, bad_total = _positive_int(total_students)
    if bad_total:
        issues.append("invalid_total_students")
    if rank is not None and total is not None and rank > total:
        issues.append("rank_exceeds_total")

    return AnnualSummary(
        term1_average=averages[0],
        term2_average=averages[1],
        term3_average=averages[2],
        annual_average=annual,
        annual_rank=rank,
        total_students=total,
        decision=code,
        final_appreciation=str(final_appreciation or "").strip(),
        holiday_recommendations=str(holiday_recommendations or "").strip(),
        per_term_discipline=redistribute_discipline(annual_discipline),
        locale=locale,
        decision_label=DECISION_LABELS[locale].get(code, "") if code else "",
        rank_label=format_rank(rank, total, locale),
        progression=(
            _progression(averages[0], averages[1]),
            _progression(averages[1], averages[2]),
        ),
        issues=tuple(issues),
    )


def compute_annual_summary(
    terms,
    annual_discipline: Union[DisciplineRecord, Dict[str, Any], None] = None,
    annual_average=None,
    annual_rank=None,
    decision: Optional[str] = None,
    total_students=None,
    final_appreciation: str = "",
    holiday_recommendations: str = "",
    locale: str = "fr",
) -> AnnualSummary:
    """
    Entry point for callers holding plain data.

    ``terms`` must hold exactly three items; any other count is a caller
    error and raises ValueError (the HTTP layer answers it with 400).
    Everything else is tolerated and reported through ``issues``.
    """
    terms = list(terms)
    if len(terms) != 3:
        raise ValueError(f"An annual summary needs exactly 3 terms, got {len(terms)}")
    if not isinstance(annual_discipline, DisciplineRecord):
        annual_discipline = discipline_from_dict(annual_discipline)
    return build_annual(
        terms[0], terms[1], terms[2],
        annual_discipline,
        annual_average,
        annual_rank,
        decision,
        total_students=total_students,
        final_appreciation=final_appreciation,
        holiday_recommendations=holiday_recommendations,
        locale=locale,
    )
