"""
Model registry for OpenRTX radios.

Provides a unified layer for model discovery and configuration.
"""

from .registry import (
    RadioHW,
    ModelConfig,
    list_models,
    get_model,
    detect_model,
)

__all__ = [
    "RadioHW",
    "ModelConfig",
    "list_models",
    "get_model",
    "detect_model",
]
