"""
Daily food / note capture.

DailyLog records are frozen; a "log" is an append-only list of them.
"""
import uuid
from typing import Dict, Iterable, List, Optional

from core.models import DailyLog, DailyLogKind
from core.utils import clamp, utc_now_iso

VOICE_PREVIEW_CHARS = 60


def _new_id() -> str:
    return f"log_{uuid.uuid4().hex[:12]}"


def new_food_log(
    item: str,
    calories: float,
    protein: float,
    confidence: Optional[float] = None,
) -> DailyLog:
    """Food entry, usually built from a food analysis result."""
    return DailyLog(
        id=_new_id(),
        type=DailyLogKind.FOOD,
        item=item.strip() or "Unknown meal",
        calories=calories,
        protein=protein,
        created_at=utc_now_iso(),
        confidence=clamp(confidence) if confidence is not None else None,
    )


def new_quick_add_log(item: str, calories: float = 0, protein: float = 0) -> DailyLog:
    """User-entered macros, so confidence is 1."""
    return DailyLog(
        id=_new_id(),
        type=DailyLogKind.QUICK_ADD,
        item=item.strip(),
        calories=calories,
        protein=protein,
        created_at=utc_now_iso(),
        confidence=1.0,
    )


def new_voice_log(transcript: str) -> Optional[DailyLog]:
    """Voice notes carry no macros; blank transcripts produce no log."""
    text = transcript.strip()
    if not text:
        return None
    return DailyLog(
        id=_new_id(),
        type=DailyLogKind.VOICE,
        item=f"Voice: {text[:VOICE_PREVIEW_CHARS]}",
        calories=0,
        protein=0,
        created_at=utc_now_iso(),
    )


def append_log(logs: Iterable[DailyLog], log: DailyLog) -> List[DailyLog]:
    return [*logs, log]


def calculate_daily_macro_totals(logs: Iterable[DailyLog]) -> Dict[str, float]:
    totals = {"calories": 0, "protein": 0}
    for log in logs:
        totals["calories"] += log.calories
        totals["protein"] += log.protein
    return totals
