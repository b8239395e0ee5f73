from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from core.entries import create_entry_map
from core.exceptions import ValidationFailure
from core.llm_adapter import BaseLLMAdapter
from core.models import SectorPriority, entries_to_dict
from core.onboarding import (
    SURVEY_QUESTIONS,
    CandidateSector,
    SurveyAnswers,
    finalize_candidates,
    generate_candidates,
    toggle_candidate,
)
from web.backend.state import get_llm

router = APIRouter()


class SurveyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student: Optional[bool] = None
    employed: Optional[bool] = None
    creator: Optional[bool] = None
    training: Optional[bool] = None
    combat: Optional[bool] = None
    music: Optional[bool] = None
    social_leadership: Optional[bool] = Field(default=None, alias="socialLeadership")
    romance_focus: Optional[bool] = Field(default=None, alias="romanceFocus")


class CandidatesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    survey: SurveyRequest = Field(default_factory=SurveyRequest)
    freeform: str = ""
    use_model: bool = Field(default=True, alias="useModel")


class CandidateListRequest(BaseModel):
    candidates: List[Dict[str, Any]]


class ToggleRequest(CandidateListRequest):
    id: str


def _candidates(rows: List[Dict[str, Any]]) -> List[CandidateSector]:
    try:
        return [
            CandidateSector(
                id=str(row["id"]),
                name=str(row.get("name", "")),
                icon=str(row.get("icon") or "✨"),
                intent=str(row.get("intent", "")),
                priority=SectorPriority(row.get("priority", "normal")),
                sensitive=bool(row.get("sensitive", False)),
                active=bool(row.get("active", True)),
            )
            for row in rows
        ]
    except (KeyError, ValueError) as e:
        raise ValidationFailure(f"Invalid candidate: {e}")


@router.get("/questions")
def get_questions():
    return {"questions": [{"id": key, "text": text} for key, text in SURVEY_QUESTIONS]}


@router.post("/candidates")
async def post_candidates(request: CandidatesRequest, llm: BaseLLMAdapter = Depends(get_llm)):
    survey = SurveyAnswers(**request.survey.model_dump())
    candidates = await generate_candidates(
        survey,
        freeform=request.freeform,
        adapter=llm,
        use_model=request.use_model,
    )
    return {"candidates": [c.to_dict() for c in candidates]}


@router.post("/toggle")
def post_toggle(request: ToggleRequest):
    toggled = toggle_candidate(_candidates(request.candidates), request.id)
    return {"candidates": [c.to_dict() for c in toggled]}


@router.post("/finalize")
def post_finalize(request: CandidateListRequest):
    """
    确认候选 sector：
    1. 清理名称并按上限整理 active
    2. 生成 contract
    3. 生成对应的空白 entry map
    """
    contracts = finalize_candidates(_candidates(request.candidates))
    return {
        "contracts": [c.to_dict() for c in contracts],
        "entries": entries_to_dict(create_entry_map(contracts)),
    }
