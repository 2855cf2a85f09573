"""
Vision provider abstraction layer for image descriptions.

Supported providers:
- Ollama (native SDK, multimodal models)
- OpenAI (official SDK)
"""
from notegraph.core.vision.base import DESCRIPTION_UNAVAILABLE, VisionProvider
from notegraph.core.vision.ollama import OllamaVision
from notegraph.core.vision.openai import OpenAIVision

__all__ = [
    "VisionProvider",
    "OllamaVision",
    "OpenAIVision",
    "DESCRIPTION_UNAVAILABLE",
]
