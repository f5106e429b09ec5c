"""Text-completion inference service interface and HTTP client."""

from logcore.inference.client import HttpInferenceClient, InferenceService, extract_completion_text

__all__ = ["HttpInferenceClient", "InferenceService", "extract_completion_text"]
