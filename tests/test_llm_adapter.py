import asyncio
import json

import httpx
import pytest

from core.config_manager import ServerSettings
from core.exceptions import (
    UpstreamAuthError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)
from core.llm_adapter import (
    OpenAIResponsesAdapter,
    RuleBasedAdapter,
    create_llm_adapter,
    extract_output_text,
)


def _adapter(handler) -> OpenAIResponsesAdapter:
    return OpenAIResponsesAdapter(
        api_key="sk-test",
        model_name="gpt-test",
        base_url="https://models.test/v1/",
        timeout_seconds=5,
        transport=httpx.MockTransport(handler),
    )


def test_extract_output_text():
    assert extract_output_text({"output_text": "hi"}) == "hi"
    assert extract_output_text({
        "output": [
            {"content": [{"text": "a"}, {"type": "refusal"}]},
            {"content": [{"text": "b"}]},
            None,
        ]
    }) == "a b"
    assert extract_output_text({}) == ""


def test_factory_picks_adapter_by_key():
    assert isinstance(create_llm_adapter(ServerSettings()), RuleBasedAdapter)
    adapter = create_llm_adapter(ServerSettings(openai_api_key="sk", openai_model="gpt-x"))
    assert isinstance(adapter, OpenAIResponsesAdapter)
    assert adapter.model_name == "gpt-x"
    assert adapter.available is True
    assert RuleBasedAdapter().available is False


def test_openai_adapter_requires_key():
    with pytest.raises(ValueError):
        OpenAIResponsesAdapter(api_key="", model_name="m", base_url="https://x")


def test_generate_posts_model_and_temperature():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"output_text": "ok", "usage": {"input_tokens": 3}})

    response = asyncio.run(_adapter(handler).generate("hello", temperature=0.2))

    assert seen["url"] == "https://models.test/v1/responses"
    assert seen["body"] == {"model": "gpt-test", "input": "hello", "temperature": 0.2}
    assert response.content == "ok"
    assert response.model == "gpt-test"


def test_generate_maps_http_errors():
    def unauthorized(request):
        return httpx.Response(401, text="bad key")

    def not_json(request):
        return httpx.Response(200, text="<html>")

    def refused(request):
        raise httpx.ConnectError("refused", request=request)

    def slow(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(UpstreamAuthError) as exc:
        asyncio.run(_adapter(unauthorized).generate("x"))
    assert exc.value.message == "openai rejected the credentials"
    assert exc.value.provider == "openai"
    with pytest.raises(UpstreamError) as exc:
        asyncio.run(_adapter(not_json).generate("x"))
    assert exc.value.message == "OpenAI returned a non-JSON body"
    with pytest.raises(UpstreamConnectionError):
        asyncio.run(_adapter(refused).generate("x"))
    with pytest.raises(UpstreamTimeoutError) as exc:
        asyncio.run(_adapter(slow).generate("x"))
    assert exc.value.timeout_seconds == 5
