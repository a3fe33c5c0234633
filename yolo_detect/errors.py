from __future__ import annotations

from typing import Optional


class DetectionError(Exception):
    """Base error for known detection pipeline failures."""


class ModelNotFound(DetectionError):
    """Raised when the model file does not exist at initialise time."""

    def __init__(self, model_path: str) -> None:
        super().__init__(f"Model file not found: {model_path}")
        self.model_path = model_path


class UnsupportedModel(DetectionError):
    """Raised when a model cannot be loaded or its inputs/outputs have an unexpected shape."""


class NotInitialized(DetectionError):
    """Raised when a session is used before initialize() or after dispose()."""


class InvalidImage(DetectionError):
    """Raised for empty, oversized or undecodable image bytes."""


class InferenceTimeout(DetectionError):
    def __init__(self, timeout_ms: int) -> None:
        super().__init__(f"Inference exceeded {timeout_ms} ms")
        self.timeout_ms = timeout_ms


class InferenceFailed(DetectionError):
    """Raised when the inference engine fails; the engine error is chained as ``__cause__``."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class ModelDownloadFailed(DetectionError):
    """Raised when a catalog model cannot be fetched; the transport error is chained."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to download {url}: {reason}")
        self.url = url
