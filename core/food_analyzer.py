"""
Food nutrition estimation via the generative model.

No model key configured -> fixed placeholder results (no outbound call).
Any upstream or parse failure propagates as UpstreamError / ModelOutputError.
"""
import base64
import binascii
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from core.exceptions import ValidationFailure
from core.llm_adapter import BaseLLMAdapter
from core.logger import get_logger
from core.utils import clamp, coerce_float, extract_json_object

logger = get_logger("food")

TEXT_SYSTEM_PROMPT = (
    "You estimate food nutrition quickly. Return strict JSON only with keys: "
    "item, calories, protein, confidence. confidence must be 0-1."
)
IMAGE_SYSTEM_PROMPT = (
    "Analyze food image and return strict JSON only: {item, calories, protein, confidence}. "
    "confidence must be 0-1."
)
IMAGE_USER_PROMPT = "Estimate calories and protein from this meal image."
UNKNOWN_MEAL = "Unknown meal"
DEFAULT_MEDIA_TYPE = "image/jpeg"
DEFAULT_CONFIDENCE = 0.5

_DATA_URI = re.compile(r"^data:(image/[a-zA-Z+]+);base64,")


@dataclass
class FoodEstimate:
    item: str
    calories: float
    protein: float
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item": self.item,
            "calories": self.calories,
            "protein": self.protein,
            "confidence": self.confidence,
        }


TEXT_FALLBACK_CALORIES = 500
TEXT_FALLBACK_PROTEIN = 20
TEXT_FALLBACK_CONFIDENCE = 0.25
IMAGE_FALLBACK = FoodEstimate(item=UNKNOWN_MEAL, calories=600, protein=25, confidence=0.2)


def detect_media_type(base64_data: str) -> str:
    """
    根据 base64 数据头部的 magic bytes 判断图片类型。

    检查顺序：PNG, GIF, WEBP, JPEG；无法识别或解码失败时返回 image/jpeg。
    """
    header = base64_data[:16]
    try:
        data = base64.b64decode(header + "=" * (-len(header) % 4))
    except (binascii.Error, ValueError):
        return DEFAULT_MEDIA_TYPE

    if data[:4] == b"\x89PNG":
        return "image/png"
    if data[:3] == b"GIF":
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data[:3] == b"\xff\xd8\xff":
        return "image/jpeg"
    return DEFAULT_MEDIA_TYPE


def split_image_payload(raw_base64: str, media_type: Optional[str] = None) -> Tuple[str, str]:
    """
    Returns (media_type, base64_data).

    Priority: explicit media_type > data-URI prefix > magic bytes.
    """
    media_type = (media_type or "").strip()
    data = raw_base64.strip()
    match = _DATA_URI.match(data)
    if match:
        media_type = media_type or match.group(1)
        data = data[match.end():]
    if not media_type:
        media_type = detect_media_type(data)
    return media_type, data


def normalize_estimate(parsed: Dict[str, Any], fallback_item: str) -> FoodEstimate:
    raw_confidence = parsed.get("confidence")
    return FoodEstimate(
        item=str(parsed.get("item") or fallback_item),
        calories=coerce_float(parsed.get("calories") or 0),
        protein=coerce_float(parsed.get("protein") or 0),
        confidence=clamp(coerce_float(raw_confidence or DEFAULT_CONFIDENCE, DEFAULT_CONFIDENCE)),
    )


class FoodAnalyzer:
    def __init__(self, adapter: BaseLLMAdapter):
        self.adapter = adapter

    async def analyze_text(self, text: str) -> FoodEstimate:
        entry = (text or "").strip()
        if not entry:
            raise ValidationFailure("input is required", field="input")

        if not self.adapter.available:
            return FoodEstimate(
                item=entry,
                calories=TEXT_FALLBACK_CALORIES,
                protein=TEXT_FALLBACK_PROTEIN,
                confidence=TEXT_FALLBACK_CONFIDENCE,
            )

        response = await self.adapter.generate([
            {"role": "system", "content": TEXT_SYSTEM_PROMPT},
            {"role": "user", "content": f"Estimate this food entry: {entry}"},
        ])
        estimate = normalize_estimate(extract_json_object(response.content), fallback_item=entry)
        logger.info("Text estimate for %r: %s kcal", entry, estimate.calories)
        return estimate

    async def analyze_image(self, raw_base64: str, media_type: Optional[str] = None) -> FoodEstimate:
        if not (raw_base64 or "").strip():
            raise ValidationFailure("base64Image is required", field="base64Image")

        resolved_type, data = split_image_payload(raw_base64, media_type)

        if not self.adapter.available:
            return FoodEstimate(**IMAGE_FALLBACK.to_dict())

        response = await self.adapter.generate([
            {"role": "system", "content": IMAGE_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "input_text", "text": IMAGE_USER_PROMPT},
                    {"type": "input_image", "image_url": f"data:{resolved_type};base64,{data}"},
                ],
            },
        ])
        estimate = normalize_estimate(extract_json_object(response.content), fallback_item=UNKNOWN_MEAL)
        logger.info("Image estimate (%s): %s", resolved_type, estimate.item)
        return estimate
