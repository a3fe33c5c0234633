from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Optional

from .classes import COCO_CATALOG, ClassCatalog
from .config import DEFAULT_MODEL_PATH, DetectorConfig
from .errors import InvalidImage, NotInitialized
from .models import DEFAULT_MODEL_NAME, format_catalog, get_model_spec
from .postprocess import YoloPostConfig, YoloPostprocessor
from .preprocess import ImageBytes, preprocess
from .runner import InferenceRunner
from .session import ModelInfo, ModelSession
from .types import DetectionResult

logger = logging.getLogger(__name__)


class Detector:
    """
    Plug-and-play pipeline: image bytes -> preprocess -> inference -> postprocess.

    One initialised detector can serve concurrent ``detect()`` calls from
    several threads. Each call either returns a complete ``DetectionResult``
    or raises a ``DetectionError``; a failed call leaves the detector usable.
    """

    def __init__(self, cfg: DetectorConfig = DetectorConfig(), class_catalog: ClassCatalog = COCO_CATALOG):
        self.cfg = cfg
        self.class_catalog = class_catalog
        self.session = ModelSession(cfg, class_catalog)
        self.post = YoloPostprocessor(
            YoloPostConfig(
                conf_threshold=cfg.confidence_threshold,
                iou_threshold=cfg.iou_threshold,
                max_detections=cfg.max_detections,
            ),
            class_catalog,
        )
        self._runner: Optional[InferenceRunner] = None

    def __enter__(self) -> "Detector":
        self.initialize()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    @property
    def is_initialized(self) -> bool:
        return self.session.is_initialized

    def initialize(self) -> None:
        self.session.initialize()
        if self._runner is None:
            self._runner = InferenceRunner(max_workers=self.cfg.max_concurrent_inferences)

    def dispose(self) -> None:
        self.session.dispose()
        if self._runner is not None:
            self._runner.shutdown()
            self._runner = None

    def detect(self, image_bytes: ImageBytes) -> DetectionResult:
        runner = self._runner
        if runner is None or not self.session.is_initialized:
            raise NotInitialized("Detector not initialized. Call initialize() first.")

        size = self.cfg.input_size
        start = time.perf_counter()

        try:
            prep = preprocess(image_bytes, size)
        except InvalidImage as exc:
            logger.warning("Image rejected: %s", exc)
            raise

        raw = runner.run(self.session, prep.tensor, size, self.cfg.inference_timeout_ms)
        detections = self.post.process(
            raw,
            orig_size=(prep.original_width, prep.original_height),
            input_size=size,
            num_anchors=self.session.num_anchors,
        )

        elapsed_ms = int(round((time.perf_counter() - start) * 1000.0))
        logger.debug("Detection complete: %d objects in %d ms", len(detections), elapsed_ms)

        return DetectionResult(
            detections=tuple(detections),
            inference_time_ms=elapsed_ms,
            timestamp_ms=int(time.time() * 1000),
        )

    async def detect_async(self, image_bytes: ImageBytes) -> DetectionResult:
        """Run ``detect`` on the event loop's default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.detect, image_bytes)

    def get_model_info(self) -> ModelInfo:
        return self.session.get_model_info()


def load_detector(
    model_path: str = DEFAULT_MODEL_PATH,
    *,
    class_catalog: ClassCatalog = COCO_CATALOG,
    cfg: Optional[DetectorConfig] = None,
    **overrides: Any,
) -> Detector:
    """
    Create and initialise a detector for a model on disk.

    Typical usage:
        detector = load_detector("models/yolov8n.onnx", confidence_threshold=0.4)
        result = detector.detect(jpeg_bytes)

    ``overrides`` are ``DetectorConfig`` fields applied on top of ``cfg``.
    """

    base = cfg if cfg is not None else DetectorConfig(model_path=model_path)
    if cfg is not None and model_path != DEFAULT_MODEL_PATH:
        overrides.setdefault("model_path", model_path)
    detector = Detector(replace(base, **overrides), class_catalog)
    detector.initialize()
    return detector


def model_download_instructions() -> str:
    spec = get_model_spec(DEFAULT_MODEL_NAME)
    return f"""
YOLO Model Download Instructions
================================

The YOLO model file must be downloaded separately.

Option 1: Use the download script
---------------------------------
python Scripts/download_model.py --model {spec.name}

Available models:
{format_catalog()}

Option 2: Download manually
---------------------------
mkdir -p models
curl -L -o models/{spec.filename} {spec.url}

Option 3: Export with ultralytics
---------------------------------
pip install ultralytics
python -c "from ultralytics import YOLO; YOLO('yolov8n.pt').export(format='onnx')"
mv yolov8n.onnx models/

The default model path is: {DEFAULT_MODEL_PATH}
""".strip()
