"""
comments.py — Ministry-approved teacher comments, versioned with the engine.

Subjects reference comments by ID; resolution maps each known ID to its
localized phrase and passes unknown IDs through verbatim.
"""

import logging
from typing import Dict, Iterable, List, Tuple

logger = logging.getLogger(__name__)

CATALOG_VERSION = "2025.1"

MINISTRY_COMMENTS: Dict[str, List[Tuple[str, str]]] = {
    "fr": [
        ("excellent_work", "Excellent travail. Félicitations."),
        ("very_good", "Très bon travail. Continuez ainsi."),
        ("satisfactory", "Travail satisfaisant. Bien."),
        ("can_do_better", "Peut mieux faire. Travaillez davantage."),
        ("effort_needed", "Un effort supplémentaire est nécessaire."),
        ("good_progress", "Bons progrès constatés."),
        ("irregular_work", "Travail irrégulier. Soyez plus assidu(e)."),
        ("weak_results", "Résultats faibles. Redoublez d'efforts."),
        ("good_behavior", "Bon comportement en classe."),
        ("participation", "Participation active appréciée."),
        ("homework_regular", "Devoirs régulièrement faits."),
        ("homework_irregular", "Devoirs irréguliers."),
        ("concentrate_more", "Concentrez-vous davantage."),
        ("good_attitude", "Bonne attitude de travail."),
        ("leadership", "Esprit de leadership remarquable."),
    ],
    "en": [
        ("excellent_work", "Excellent work. Congratulations."),
        ("very_good", "Very good work. Keep it up."),
        ("satisfactory", "Satisfactory work. Good."),
        ("can_do_better", "Can do better. Work harder."),
        ("effort_needed", "Additional effort is needed."),
        ("good_progress", "Good progress observed."),
        ("irregular_work", "Irregular work. Be more diligent."),
        ("weak_results", "Weak results. Double your efforts."),
        ("good_behavior", "Good classroom behavior."),
        ("participation", "Active participation appreciated."),
        ("homework_regular", "Homework regularly done."),
        ("homework_irregular", "Irregular homework."),
        ("concentrate_more", "Concentrate more."),
        ("good_attitude", "Good work attitude."),
        ("leadership", "Remarkable leadership spirit."),
    ],
}

_LOOKUP = {locale: dict(pairs) for locale, pairs in MINISTRY_COMMENTS.items()}


def get_comment_catalog(locale: str = "fr") -> List[Dict[str, str]]:
    pairs = MINISTRY_COMMENTS.get(locale, MINISTRY_COMMENTS["fr"])
    return [{"id": cid, "text": text} for cid, text in pairs]


def is_known_comment(comment_id: str) -> bool:
    return comment_id in _LOOKUP["fr"]


def resolve_comments(comment_ids: Iterable[str], locale: str = "fr") -> Tuple[str, ...]:
    """Map every ID to its phrase; unknown IDs come back unchanged."""
    lookup = _LOOKUP.get(locale, _LOOKUP["fr"])
    resolved = []
    for cid in comment_ids or ():
        key = str(cid)
        text = lookup.get(key)
        if text is None:
            logger.debug("Unknown comment id %r passed through", key)
            text = key
        resolved.append(text)
    return tuple(resolved)
