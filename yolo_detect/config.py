from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

DEFAULT_MODEL_PATH = "models/yolov8n.onnx"
DEFAULT_INPUT_SIZE = 640
DEFAULT_CONFIDENCE_THRESHOLD = 0.25
DEFAULT_IOU_THRESHOLD = 0.45
DEFAULT_INFERENCE_TIMEOUT_MS = 30000
DEFAULT_PROVIDERS: Tuple[str, ...] = ("CPUExecutionProvider",)


@dataclass(frozen=True)
class DetectorConfig:
    """
    Configuration for a detection session.

    - model_path: ONNX file; relative paths resolve against the working directory
    - providers: ORT execution providers in priority order
    - max_detections: optional cap on detections returned per image
    - max_concurrent_inferences: worker threads available for engine calls
    """

    model_path: str = DEFAULT_MODEL_PATH
    input_size: int = DEFAULT_INPUT_SIZE
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    iou_threshold: float = DEFAULT_IOU_THRESHOLD
    inference_timeout_ms: int = DEFAULT_INFERENCE_TIMEOUT_MS
    providers: Tuple[str, ...] = DEFAULT_PROVIDERS
    max_detections: Optional[int] = None
    max_concurrent_inferences: int = 4

    def __post_init__(self) -> None:
        if not str(self.model_path).strip():
            raise ValueError("model_path must not be empty")
        if self.input_size <= 0:
            raise ValueError("input_size must be > 0")
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be in [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.inference_timeout_ms <= 0:
            raise ValueError("inference_timeout_ms must be > 0")
        if not self.providers:
            raise ValueError("providers must not be empty")
        if self.max_detections is not None and self.max_detections <= 0:
            raise ValueError("max_detections must be > 0 if provided")
        if self.max_concurrent_inferences <= 0:
            raise ValueError("max_concurrent_inferences must be > 0")
        # lists from JSON are accepted but stored as a tuple
        object.__setattr__(self, "providers", tuple(self.providers))


def _require_number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def load_detector_config(path: Union[str, Path]) -> DetectorConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Detector config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector config must be a JSON object")

    allowed = {f.name for f in fields(DetectorConfig)}
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector config keys: {unknown}")

    kwargs: Dict[str, Any] = {}
    if "model_path" in payload:
        if not isinstance(payload["model_path"], str):
            raise ValueError("model_path must be a string")
        kwargs["model_path"] = payload["model_path"]
    for key in ("input_size", "inference_timeout_ms", "max_concurrent_inferences"):
        if key in payload:
            kwargs[key] = _require_int(payload, key)
    for key in ("confidence_threshold", "iou_threshold"):
        if key in payload:
            kwargs[key] = _require_number(payload, key)
    if payload.get("max_detections") is not None:
        kwargs["max_detections"] = _require_int(payload, "max_detections")
    if "providers" in payload:
        providers = payload["providers"]
        if not isinstance(providers, list) or not all(isinstance(p, str) for p in providers):
            raise ValueError("providers must be a list of strings")
        kwargs["providers"] = tuple(providers)

    return DetectorConfig(**kwargs)
