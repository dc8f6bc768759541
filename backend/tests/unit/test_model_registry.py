"""Unit tests for the ModelRegistry and model schemas."""

import pytest

from devassist.application.schemas.model_config import AIModelSchema
from devassist.application.services.model_registry import ModelRegistry
from devassist.config import Settings
from devassist.domain.exceptions import EntityNotFoundError


def _settings() -> Settings:
    return Settings(
        default_model_name="gpt-4o",
        default_base_url="https://api.openai.com/v1",
        default_api_key="sk-default",
        compression_model_name="gemini-3.1-pro-preview",
        compression_base_url="https://generativelanguage.googleapis.com/v1beta/openai/",
    )


def _model(model_id: str, *, active: bool = False) -> AIModelSchema:
    return AIModelSchema(
        id=model_id,
        display_name=f"Model {model_id}",
        model_name=f"model-{model_id}",
        base_url="https://llm.example/v1",
        api_key="sk-secret-value-1234",
        is_active=active,
    )


def test_active_model_config_is_returned():
    """The active model's config is used for chat and compression."""
    registry = ModelRegistry([_model("a"), _model("b", active=True)], _settings())

    assert registry.active().model_name == "model-b"
    assert registry.active().api_key == "sk-secret-value-1234"
    assert registry.compression_config().model_name == "model-b"


def test_fallbacks_without_active_model():
    """Without an active model, chat and compression use their defaults."""
    registry = ModelRegistry([_model("a")], _settings())

    chat = registry.active()
    compression = registry.compression_config()

    assert (chat.model_name, chat.base_url, chat.api_key) == (
        "gpt-4o",
        "https://api.openai.com/v1",
        "sk-default",
    )
    assert compression.model_name == "gemini-3.1-pro-preview"
    assert compression.base_url.endswith("/openai/")


def test_get_unknown_model_raises():
    """Unknown model ids raise EntityNotFoundError."""
    registry = ModelRegistry([_model("a")], _settings())

    assert registry.get("a").display_name == "Model a"
    with pytest.raises(EntityNotFoundError):
        registry.get("missing")


def test_schema_hides_api_key():
    """The API key never appears in the schema's repr or dump."""
    model = _model("a")

    assert "sk-secret-value-1234" not in repr(model)
    assert "sk-secret-value-1234" not in model.model_dump_json()
