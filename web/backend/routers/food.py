from typing import Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from core.food_analyzer import FoodAnalyzer
from web.backend.state import get_food_analyzer

router = APIRouter()


class AnalyzeTextRequest(BaseModel):
    # 数字输入按文本处理，如 {"input": 42}
    input: Optional[Union[str, int, float]] = None


class AnalyzeImageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    base64_image: Optional[str] = Field(default=None, alias="base64Image")
    media_type: Optional[str] = Field(default=None, alias="mediaType")


@router.post("/analyze-text")
async def analyze_text(request: AnalyzeTextRequest, analyzer: FoodAnalyzer = Depends(get_food_analyzer)):
    text = "" if request.input is None else str(request.input)
    estimate = await analyzer.analyze_text(text)
    return estimate.to_dict()


@router.post("/analyze-image")
async def analyze_image(request: AnalyzeImageRequest, analyzer: FoodAnalyzer = Depends(get_food_analyzer)):
    estimate = await analyzer.analyze_image(request.base64_image or "", request.media_type)
    return estimate.to_dict()
