import re

import pytest

from core.config_manager import ServerSettings
from core.exceptions import ModelOutputError
from core.utils import coerce_float, extract_json_array, extract_json_object, utc_now_iso


def test_utc_now_iso_format():
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", utc_now_iso())


def test_coerce_float():
    assert coerce_float("2.5") == 2.5
    assert coerce_float(None, 7) == 7
    assert coerce_float("abc") == 0.0
    assert coerce_float(float("nan"), 1.0) == 1.0


def test_extract_json_object_ignores_braces_in_strings():
    assert extract_json_object('x {"item": "curly } brace", "n": {"a": 1}} y') == {
        "item": "curly } brace",
        "n": {"a": 1},
    }


def test_extract_json_object_errors():
    with pytest.raises(ModelOutputError) as exc:
        extract_json_object("nothing here")
    assert exc.value.message == "No JSON found in model response"

    with pytest.raises(ModelOutputError):
        extract_json_object("{not json}")


def test_extract_json_array():
    assert extract_json_array('models say: [{"name": "A"}] ok') == [{"name": "A"}]
    assert extract_json_array("[broken") is None
    assert extract_json_array("") is None


def test_server_settings_from_env():
    settings = ServerSettings.from_env({
        "HEVY_API_KEY": "k",
        "HEVY_BASE_URL": "https://hevy.test///",
        "PORT": "9000",
        "SECTOR_REVIEW_ALLOWED_ORIGINS": "http://a.test, http://b.test",
        "SECTOR_REVIEW_RELOAD": "true",
    })

    assert settings.hevy_api_key == "k"
    assert settings.hevy_base_url == "https://hevy.test"
    assert settings.port == 9000
    assert settings.reload is True
    assert settings.origins == ["http://a.test", "http://b.test"]
    assert settings.openai_model == "gpt-4.1-mini"


def test_server_settings_defaults():
    settings = ServerSettings.from_env({"PORT": "not-a-port"})
    assert settings.port == 8787
    assert settings.hevy_base_url == "https://api.hevyapp.com"
    assert settings.openai_base_url == "https://api.openai.com/v1"
    assert settings.origins == ["*"]
