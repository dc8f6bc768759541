"""Model registry — resolves which model config a chat call uses."""

import logging
from collections.abc import Iterable

from devassist.application.schemas.model_config import AIModelSchema
from devassist.config import Settings
from devassist.domain.entities import ModelConfig
from devassist.domain.exceptions import EntityNotFoundError

logger = logging.getLogger(__name__)


class ModelRegistry:
    """Holds the registered models and picks the active one.

    At most one model is active. When none is, chat calls fall back to the
    default model from Settings and compression to the compression model.
    """

    def __init__(self, models: Iterable[AIModelSchema], settings: Settings):
        self._models = {m.id: m for m in models}
        self._settings = settings

        active = [m.id for m in self._models.values() if m.is_active]
        if len(active) > 1:
            logger.warning(
                "%d models are marked active (%s); using the first",
                len(active),
                ", ".join(active),
            )

    def list_models(self) -> list[AIModelSchema]:
        return list(self._models.values())

    def get(self, model_id: str) -> AIModelSchema:
        try:
            return self._models[model_id]
        except KeyError:
            raise EntityNotFoundError("AIModel", model_id) from None

    def active_model(self) -> AIModelSchema | None:
        return next((m for m in self._models.values() if m.is_active), None)

    def active(self) -> ModelConfig:
        """Config of the active model, else the default model."""
        model = self.active_model()
        if model is not None:
            return model.to_model_config()
        return ModelConfig(
            model_name=self._settings.default_model_name,
            base_url=self._settings.default_base_url,
            api_key=self._settings.default_api_key,
        )

    def compression_config(self) -> ModelConfig:
        """Config used to summarize conversations."""
        model = self.active_model()
        if model is not None:
            return model.to_model_config()
        return ModelConfig(
            model_name=self._settings.compression_model_name,
            base_url=self._settings.compression_base_url,
            api_key=self._settings.default_api_key,
        )
