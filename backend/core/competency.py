"""
competency.py — Competency bands and the classification table strategy.

A CompetencyTable is an immutable, ordered set of bands covering [0, 20].
Callers inject the table they want; when none is supplied the built-in
five-band default applies. Classification scans bands by descending
lower bound and returns the first band whose [min, max] holds the mark.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

SCALE_MIN = 0.0
SCALE_MAX = 20.0


@dataclass(frozen=True)
class CompetencyBand:
    code: str
    label_fr: str
    label_en: str
    min: float
    max: float
    description_fr: str = ""
    description_en: str = ""

    def contains(self, mark: float) -> bool:
        return self.min <= mark <= self.max

    def label(self, locale: str) -> str:
        return self.label_en if locale == "en" else self.label_fr

    def description(self, locale: str) -> str:
        return self.description_en if locale == "en" else self.description_fr

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "label_fr": self.label_fr,
            "label_en": self.label_en,
            "description_fr": self.description_fr,
            "description_en": self.description_en,
            "min": self.min,
            "max": self.max,
        }


FALLBACK_BAND = CompetencyBand(
    code="CNA",
    label_fr="CNA",
    label_en="CNA",
    min=SCALE_MIN,
    max=SCALE_MAX,
    description_fr="Compétences non acquises",
    description_en="Competences Not Acquired",
)


@dataclass(frozen=True)
class CompetencyTable:
    bands: Tuple[CompetencyBand, ...]
    source: str = "custom"

    def __post_init__(self):
        ordered = tuple(sorted(self.bands, key=lambda b: b.min, reverse=True))
        object.__setattr__(self, "bands", ordered)

    def classify(self, mark: float) -> CompetencyBand:
        """First band (by descending min) containing the mark, else CNA."""
        for band in self.bands:
            if band.contains(mark):
                return band
        logger.debug("No competency band for mark %s in %s table", mark, self.source)
        return FALLBACK_BAND

    def gaps(self) -> List[Tuple[float, float]]:
        """Uncovered stretches of [0, 20]; empty for a well-formed table."""
        found = []
        cursor = SCALE_MIN
        for band in sorted(self.bands, key=lambda b: b.min):
            if band.min > cursor:
                found.append((cursor, band.min))
            cursor = max(cursor, band.max)
        if cursor < SCALE_MAX:
            found.append((cursor, SCALE_MAX))
        return found

    def overlaps(self) -> List[Tuple[str, str]]:
        """Pairs of band codes whose ranges share more than a boundary point."""
        ascending = sorted(self.bands, key=lambda b: b.min)
        return [
            (lower.code, upper.code)
            for lower, upper in zip(ascending, ascending[1:])
            if upper.min < lower.max
        ]

    def is_complete(self) -> bool:
        return not self.gaps() and not self.overlaps()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "bands": [b.to_dict() for b in self.bands],
        }


DEFAULT_COMPETENCY_TABLE = CompetencyTable(
    bands=(
        CompetencyBand("CTBA", "CTBA", "CVWA", 16.0, 20.0,
                       "Compétences très bien acquises", "Competences Very Well Acquired"),
        CompetencyBand("CBA", "CBA", "CWA", 14.0, 16.0,
                       "Compétences bien acquises", "Competences Well Acquired"),
        CompetencyBand("CA", "CA", "CA", 12.0, 14.0,
                       "Compétences acquises", "Competences Acquired"),
        CompetencyBand("CMA", "CMA", "CAA", 10.0, 12.0,
                       "Compétences moyennement acquises", "Competences Averagely Acquired"),
        CompetencyBand("CNA", "CNA", "CNA", 0.0, 10.0,
                       "Compétences non acquises", "Competences Not Acquired"),
    ),
    source="default",
)

# Default bands standing in for a supplied table with no usable record
FALLBACK_COMPETENCY_TABLE = replace(DEFAULT_COMPETENCY_TABLE, source="fallback")


def _band_from_record(record: Dict[str, Any]) -> Optional[CompetencyBand]:
    """
    Convert one record: the backend shape {code, descriptionFr, descriptionEn,
    gradeRange: {min, max}} or the flat shape {code, labelFr, labelEn, min, max}.
    """
    code = str(record.get("code") or "").strip()
    grade_range = record.get("gradeRange") or record.get("grade_range") or record
    try:
        low = float(grade_range.get("min"))
        high = float(grade_range.get("max"))
    except (AttributeError, TypeError, ValueError):
        return None
    if not code or low > high:
        return None
    return CompetencyBand(
        code=code,
        label_fr=str(record.get("labelFr") or record.get("label_fr") or code),
        label_en=str(record.get("labelEn") or record.get("label_en") or code),
        min=low,
        max=high,
        description_fr=str(record.get("descriptionFr") or record.get("description_fr") or ""),
        description_en=str(record.get("descriptionEn") or record.get("description_en") or ""),
    )


def table_from_records(records: Optional[Iterable[Dict[str, Any]]]) -> CompetencyTable:
    """
    Build a table from backend-supplied records.
    No records means the built-in default table. Records that are all
    unusable give the default bands with source "fallback".
    """
    if not records:
        return DEFAULT_COMPETENCY_TABLE

    bands = []
    for record in records:
        band = _band_from_record(record) if isinstance(record, dict) else None
        if band is None:
            logger.warning("Skipping malformed competency record: %r", record)
            continue
        bands.append(band)

    if not bands:
        logger.warning("No usable competency record, using the default bands")
        return FALLBACK_COMPETENCY_TABLE

    table = CompetencyTable(bands=tuple(bands), source="backend")
    if not table.is_complete():
        logger.warning(
            "Competency table does not tile [0, 20]: gaps=%s overlaps=%s",
            table.gaps(), table.overlaps(),
        )
    return table


def classify_competency(mark: float, table: Optional[CompetencyTable] = None) -> Dict[str, str]:
    """Return {code, label_fr, label_en} for a mark already clamped to [0, 20]."""
    band = (table or DEFAULT_COMPETENCY_TABLE).classify(mark)
    return {"code": band.code, "label_fr": band.label_fr, "label_en": band.label_en}
