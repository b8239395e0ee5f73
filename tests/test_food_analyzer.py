import asyncio
import base64
import json

import httpx
import pytest

from core.exceptions import ModelOutputError, UpstreamError, ValidationFailure
from core.food_analyzer import (
    FoodAnalyzer,
    detect_media_type,
    normalize_estimate,
    split_image_payload,
)
from core.llm_adapter import OpenAIResponsesAdapter, RuleBasedAdapter


PNG_B64 = base64.b64encode(b"\x89PNG\r\n\x1a\n" + b"\x00" * 16).decode()
GIF_B64 = base64.b64encode(b"GIF89a" + b"\x00" * 16).decode()
WEBP_B64 = base64.b64encode(b"RIFF\x00\x00\x00\x00WEBPVP8 " + b"\x00" * 8).decode()
JPEG_B64 = base64.b64encode(b"\xff\xd8\xff\xe0" + b"\x00" * 16).decode()


def _adapter(handler) -> OpenAIResponsesAdapter:
    return OpenAIResponsesAdapter(
        api_key="sk-test",
        model_name="gpt-test",
        base_url="https://models.test/v1",
        transport=httpx.MockTransport(handler),
    )


def _reply(text: str):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"output_text": text, "model": "gpt-test"})
    return handler


def test_detect_media_type_by_magic_bytes():
    assert detect_media_type(PNG_B64) == "image/png"
    assert detect_media_type(GIF_B64) == "image/gif"
    assert detect_media_type(WEBP_B64) == "image/webp"
    assert detect_media_type(JPEG_B64) == "image/jpeg"
    assert detect_media_type(base64.b64encode(b"hello world!").decode()) == "image/jpeg"
    assert detect_media_type("%%%not-base64%%%") == "image/jpeg"


def test_split_image_payload_priority():
    assert split_image_payload(f"data:image/gif;base64,{PNG_B64}") == ("image/gif", PNG_B64)
    assert split_image_payload(PNG_B64) == ("image/png", PNG_B64)
    assert split_image_payload(f"data:image/gif;base64,{PNG_B64}", "image/webp") == ("image/webp", PNG_B64)


def test_normalize_estimate_clamps_and_defaults():
    estimate = normalize_estimate({"item": "Eggs", "calories": "140", "protein": 12, "confidence": 3}, "x")
    assert estimate.to_dict() == {"item": "Eggs", "calories": 140.0, "protein": 12.0, "confidence": 1.0}

    blank = normalize_estimate({}, "fallback")
    assert blank.item == "fallback"
    assert blank.calories == 0
    assert blank.confidence == 0.5

    assert normalize_estimate({"confidence": -0.4}, "x").confidence == 0.0


def test_text_fallback_without_model_key():
    analyzer = FoodAnalyzer(RuleBasedAdapter())
    estimate = asyncio.run(analyzer.analyze_text("  2 eggs and toast "))
    assert estimate.to_dict() == {"item": "2 eggs and toast", "calories": 500, "protein": 20, "confidence": 0.25}


def test_image_fallback_without_model_key():
    analyzer = FoodAnalyzer(RuleBasedAdapter())
    estimate = asyncio.run(analyzer.analyze_image(JPEG_B64))
    assert estimate.to_dict() == {"item": "Unknown meal", "calories": 600, "protein": 25, "confidence": 0.2}


def test_blank_input_is_rejected():
    analyzer = FoodAnalyzer(RuleBasedAdapter())
    with pytest.raises(ValidationFailure) as exc:
        asyncio.run(analyzer.analyze_text("   "))
    assert exc.value.message == "input is required"
    with pytest.raises(ValidationFailure):
        asyncio.run(analyzer.analyze_image(""))


def test_text_analysis_parses_first_object_from_prose():
    analyzer = FoodAnalyzer(_adapter(_reply(
        'Sure! ```json\n{"item": "Chicken bowl", "calories": 650, "protein": 45, "confidence": 1.4}\n``` '
        'Also {"ignored": true}'
    )))

    estimate = asyncio.run(analyzer.analyze_text("chicken rice bowl"))

    assert estimate.to_dict() == {"item": "Chicken bowl", "calories": 650.0, "protein": 45.0, "confidence": 1.0}


def test_image_analysis_sends_data_uri():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "output": [{"content": [{"type": "output_text", "text": '{"calories": 400, "protein": 30}'}]}],
        })

    estimate = asyncio.run(FoodAnalyzer(_adapter(handler)).analyze_image(PNG_B64))

    assert seen["url"] == "https://models.test/v1/responses"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["model"] == "gpt-test"
    image_part = seen["body"]["input"][1]["content"][1]
    assert image_part["image_url"] == f"data:image/png;base64,{PNG_B64}"
    assert estimate.item == "Unknown meal"
    assert estimate.confidence == 0.5


def test_model_without_json_raises():
    analyzer = FoodAnalyzer(_adapter(_reply("I cannot tell from that.")))
    with pytest.raises(ModelOutputError) as exc:
        asyncio.run(analyzer.analyze_text("mystery stew"))
    assert exc.value.message == "No JSON found in model response"


def test_upstream_failure_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="overloaded")

    with pytest.raises(UpstreamError) as exc:
        asyncio.run(FoodAnalyzer(_adapter(handler)).analyze_text("toast"))
    assert "503" in exc.value.message
