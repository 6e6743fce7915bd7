"""Hugging Face secondary image-generation provider."""

from .lib import HF_ENDPOINTS, MAX_DIMENSION, ROTATE_STATUSES, HuggingFaceProvider

__all__ = ["HF_ENDPOINTS", "HuggingFaceProvider", "MAX_DIMENSION", "ROTATE_STATUSES"]
