"""
Single-image YOLO object detection on ONNX Runtime.

Image bytes go in, a sorted, de-duplicated list of labelled boxes comes out.
Stream capture, scheduling and whatever consumes the detections live outside
this package.
"""

from .types import BoundingBox, Detection, DetectionResult
from .errors import (
    DetectionError,
    InferenceFailed,
    InferenceTimeout,
    InvalidImage,
    ModelDownloadFailed,
    ModelNotFound,
    NotInitialized,
    UnsupportedModel,
)
from .classes import COCO_CATALOG, COCO_CLASSES, ClassCatalog
from .config import DetectorConfig, load_detector_config
from .geometry import iou
from .nms import NMSConfig, nms
from .preprocess import MAX_IMAGE_SIZE_BYTES, PreprocessResult, preprocess
from .postprocess import AnchorOutputView, YoloPostConfig, YoloPostprocessor, postprocess
from .session import ModelInfo, ModelSession, resolve_path
from .runner import InferenceRunner
from .runtime import Detector, load_detector, model_download_instructions
from .metadata import load_class_names
from .models import MODEL_CATALOG, ModelSpec, download_model
from .visualize import draw_detections

__all__ = [
    "BoundingBox",
    "Detection",
    "DetectionResult",
    "DetectionError",
    "InferenceFailed",
    "InferenceTimeout",
    "InvalidImage",
    "ModelDownloadFailed",
    "ModelNotFound",
    "NotInitialized",
    "UnsupportedModel",
    "COCO_CATALOG",
    "COCO_CLASSES",
    "ClassCatalog",
    "DetectorConfig",
    "load_detector_config",
    "iou",
    "NMSConfig",
    "nms",
    "MAX_IMAGE_SIZE_BYTES",
    "PreprocessResult",
    "preprocess",
    "AnchorOutputView",
    "YoloPostConfig",
    "YoloPostprocessor",
    "postprocess",
    "ModelInfo",
    "ModelSession",
    "resolve_path",
    "InferenceRunner",
    "Detector",
    "load_detector",
    "model_download_instructions",
    "load_class_names",
    "MODEL_CATALOG",
    "ModelSpec",
    "download_model",
    "draw_detections",
]
