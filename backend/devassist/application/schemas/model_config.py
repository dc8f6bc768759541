"""Pydantic v2 schemas (DTOs) for registered AI models."""

from pydantic import BaseModel, Field, SecretStr

from devassist.domain.entities import ModelConfig


class AIModelSchema(BaseModel):
    """A model entry from the model registry.

    The API key is a SecretStr so it never shows up in reprs or logs.
    """

    id: str
    display_name: str = ""
    model_name: str = Field(..., min_length=1, description="Model identifier, e.g. 'gpt-4o'")
    base_url: str = Field(..., min_length=1, description="API base URL of the provider")
    api_key: SecretStr = SecretStr("")
    is_active: bool = False

    def to_model_config(self) -> ModelConfig:
        return ModelConfig(
            model_name=self.model_name,
            base_url=self.base_url,
            api_key=self.api_key.get_secret_value(),
        )
