from pathlib import Path

import pytest

from config import DEFAULT_MODEL, Config


def test_defaults_need_cloudflare_credentials():
    error = Config().validate()
    assert error is not None
    assert "CLOUDFLARE_ACCOUNT_ID" in error


def test_cloudflare_credentials_valid():
    config = Config(cloudflare_account_id="acct", cloudflare_api_token="token")
    assert config.validate() is None


def test_gemini_model_needs_key():
    config = Config(classifier_model="google-gla:gemini-3-flash-preview", summary_model="openai:qwen@http://127.0.0.1:8080/v1")
    assert "GEMINI_API_KEY" in config.validate()
    config.gemini_api_key = "key"
    assert config.validate() is None


def test_local_model_needs_nothing():
    model = "openai:qwen@http://127.0.0.1:8080/v1"
    assert Config(classifier_model=model, summary_model=model).validate() is None


@pytest.mark.parametrize("field,value,expected", [
    ("classify_max_tokens", 0, "CLASSIFY_MAX_TOKENS"),
    ("digest_max_tokens", -1, "DIGEST_MAX_TOKENS"),
    ("generation_timeout_seconds", 0.0, "GENERATION_TIMEOUT_SECONDS"),
    ("max_workers", 0, "MAX_WORKERS"),
    ("log_level", "LOUD", "LOG_LEVEL"),
    ("log_format", "xml", "LOG_FORMAT"),
    ("classifier_model", "", "must not be empty"),
])
def test_invalid_values(field, value, expected):
    model = "openai:qwen@http://127.0.0.1:8080/v1"
    config = Config(classifier_model=model, summary_model=model)
    setattr(config, field, value)
    assert expected in config.validate()


def test_load_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("CLASSIFIER_MODEL", "openai:qwen@http://127.0.0.1:8080/v1")
    monkeypatch.delenv("SUMMARY_MODEL", raising=False)
    monkeypatch.setenv("CLASSIFY_MAX_TOKENS", "150")
    monkeypatch.setenv("GENERATION_TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("DB_PATH", str(tmp_path / "fb.db"))
    monkeypatch.setenv("ENABLE_LOGFIRE", "yes")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = Config.load()

    assert config.classifier_model == "openai:qwen@http://127.0.0.1:8080/v1"
    assert config.summary_model == DEFAULT_MODEL
    assert config.classify_max_tokens == 150
    assert config.generation_timeout_seconds == 12.5
    assert config.db_path == Path(tmp_path / "fb.db")
    assert config.enable_logfire is True
    assert config.log_level == "DEBUG"


def test_load_rejects_bad_integer(monkeypatch):
    monkeypatch.setenv("MAX_WORKERS", "many")
    with pytest.raises(ValueError, match="MAX_WORKERS"):
        Config.load()
