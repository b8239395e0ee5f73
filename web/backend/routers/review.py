"""
Stateless review computations over client-held contracts and entries.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from core.bridge import build_bridge_text
from core.config_manager import config
from core.entries import sync_entries_with_contracts, validate_entry_ratings
from core.exceptions import ValidationFailure
from core.models import SectorContract, TimelineWeek, entries_from_dict, entries_to_dict
from core.presets import preset_packs, starter_sector_contracts
from core.scoring import build_insights, build_sector_scores, lock_week, overall_score

router = APIRouter()


class ReviewRequest(BaseModel):
    contracts: List[Dict[str, Any]] = Field(default_factory=list)
    entries: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class BridgeRequest(ReviewRequest):
    model_config = ConfigDict(populate_by_name=True)

    week_label: Optional[str] = Field(default=None, alias="weekLabel")
    include_sensitive: bool = Field(default=False, alias="includeSensitive")


class LockWeekRequest(ReviewRequest):
    timeline: List[Dict[str, Any]] = Field(default_factory=list)
    title: str = "Week locked"


def _parse(request: ReviewRequest):
    try:
        contracts = [SectorContract.from_dict(c) for c in request.contracts]
        entries = entries_from_dict(request.entries)
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationFailure(f"Invalid review payload: {e}")
    return contracts, validate_entry_ratings(entries)


@router.get("/presets")
async def get_presets():
    return {
        "maxActiveSectors": config.MAX_ACTIVE_SECTORS,
        "starter": [c.to_dict() for c in starter_sector_contracts()],
        "packs": [p.to_dict() for p in preset_packs()],
    }


@router.post("/sync")
async def sync_entries(request: ReviewRequest):
    contracts, entries = _parse(request)
    return {"entries": entries_to_dict(sync_entries_with_contracts(entries, contracts))}


@router.post("/scores")
async def get_scores(request: ReviewRequest):
    contracts, entries = _parse(request)
    scores = build_sector_scores(contracts, entries)
    return {
        "scores": [s.to_dict() for s in scores],
        "overallScore": overall_score(scores),
        "insights": build_insights(scores).to_dict(),
    }


@router.post("/bridge")
async def get_bridge_text(request: BridgeRequest):
    contracts, entries = _parse(request)
    text = build_bridge_text(
        week_label=request.week_label or config.DEFAULT_WEEK_LABEL,
        contracts=contracts,
        entries=entries,
        include_sensitive=request.include_sensitive,
    )
    return {"text": text}


@router.post("/lock")
async def lock_current_week(request: LockWeekRequest):
    contracts, entries = _parse(request)
    try:
        timeline = [
            TimelineWeek(
                week=str(w["week"]),
                title=str(w.get("title", "")),
                dates=str(w.get("dates", "")),
                score=w.get("score"),
                trend=w.get("trend"),
                in_progress=bool(w.get("inProgress", False)),
            )
            for w in request.timeline
        ]
    except KeyError as e:
        raise ValidationFailure(f"Timeline week is missing {e}")
    locked = lock_week(timeline, build_sector_scores(contracts, entries), title=request.title)
    return {"timeline": [w.to_dict() for w in locked]}
