from .model_config import AIModelSchema

__all__ = [
    "AIModelSchema",
]
