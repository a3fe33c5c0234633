from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .classes import COCO_CATALOG, ClassCatalog
from .errors import InferenceFailed
from .geometry import cxcywh_to_xyxy, scale_and_clip_boxes
from .nms import NMSConfig, nms
from .types import BoundingBox, Detection

logger = logging.getLogger(__name__)


class AnchorOutputView:
    """
    Bounds-checked view over a raw ``(1, 4 + C, A)`` YOLO output.

    Rows 0-3 hold ``cx, cy, w, h`` per anchor, rows ``4 .. 4 + C`` hold the
    per-class scores. Works on flat buffers as well as shaped arrays; no data
    is copied.
    """

    def __init__(self, raw: np.ndarray, num_classes: int, num_anchors: Optional[int] = None):
        if num_classes <= 0:
            raise ValueError("num_classes must be > 0")
        channels = 4 + num_classes
        data = np.asarray(raw)

        if num_anchors is None:
            if data.ndim == 3 and data.shape[0] == 1:
                num_anchors = int(data.shape[2])
            elif data.size % channels == 0:
                num_anchors = data.size // channels
            else:
                raise InferenceFailed(
                    f"Model output with {data.size} values is not a multiple of {channels} channels"
                )

        if data.ndim == 3 and data.shape != (1, channels, num_anchors):
            raise InferenceFailed(f"Unexpected model output shape {data.shape}, expected (1, {channels}, {num_anchors})")
        if data.size != channels * num_anchors:
            raise InferenceFailed(
                f"Model output has {data.size} values, expected {channels} x {num_anchors} = {channels * num_anchors}"
            )

        self.num_classes = num_classes
        self.num_anchors = int(num_anchors)
        self._rows = data.reshape(channels, self.num_anchors)

    @property
    def boxes_cxcywh(self) -> np.ndarray:
        # (A, 4)
        return self._rows[0:4, :].T

    @property
    def class_scores(self) -> np.ndarray:
        # (C, A)
        return self._rows[4:, :]

    def anchor(self, index: int) -> Tuple[np.ndarray, np.ndarray]:
        if index < 0 or index >= self.num_anchors:
            raise IndexError(f"anchor {index} out of range (num anchors={self.num_anchors})")
        return self._rows[0:4, index], self._rows[4:, index]


@dataclass(frozen=True)
class YoloPostConfig:
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    # None keeps every detection that survives NMS.
    max_detections: Optional[int] = None


class YoloPostprocessor:
    """
    Post-process for single-label anchor-layout YOLO exports (YOLOv8 style).

    Supported layout (per image):
    - (1, C + 4, A): e.g. 1 x 84 x 8400 for the 80-class COCO models

    The model input is assumed to be a stretched ``input_size`` square, so
    boxes are mapped back to the original frame with independent x/y scales.
    """

    def __init__(self, cfg: YoloPostConfig, class_catalog: ClassCatalog = COCO_CATALOG):
        self.cfg = cfg
        self.class_catalog = class_catalog

    def process(
        self,
        preds: np.ndarray,
        orig_size: Tuple[int, int],
        input_size: int,
        num_anchors: Optional[int] = None,
    ) -> List[Detection]:
        """
        Convert raw model output into detections in original image coordinates.

        Args:
            preds: Model output for a single image
            orig_size: (width, height) of the original image
            input_size: side length of the square model input
            num_anchors: expected anchor count; None derives it from ``preds``
        """

        view = AnchorOutputView(preds, len(self.class_catalog), num_anchors)
        boxes_xyxy, scores, class_ids = self._decode(view)
        if scores.size == 0:
            return []

        orig_w, orig_h = orig_size
        boxes_xyxy = scale_and_clip_boxes(
            boxes_xyxy,
            scale=(orig_w / float(input_size), orig_h / float(input_size)),
            frame_size=(orig_w, orig_h),
        )

        keep = nms(
            boxes_xyxy,
            scores,
            class_ids,
            NMSConfig(iou_threshold=self.cfg.iou_threshold, max_detections=self.cfg.max_detections),
        )

        return [
            Detection(
                class_id=int(class_ids[i]),
                class_name=self.class_catalog.name(int(class_ids[i])),
                confidence=float(scores[i]),
                bbox=BoundingBox.from_xyxy(*boxes_xyxy[i]),
            )
            for i in keep
        ]

    def _decode(self, view: AnchorOutputView) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Pick the best class per anchor and drop anchors under the confidence threshold.

        Returns xyxy boxes in model input space, scores and class ids.
        """

        class_scores = view.class_scores
        class_ids = np.argmax(class_scores, axis=0)
        scores = class_scores[class_ids, np.arange(view.num_anchors)].astype(np.float64)

        keep = (scores >= self.cfg.conf_threshold) & (scores > 0)

        # NaN/inf geometry cannot be clipped into the frame
        finite = np.isfinite(view.boxes_cxcywh).all(axis=1)
        dropped = int(np.count_nonzero(keep & ~finite))
        if dropped:
            logger.warning("Dropped %d anchors with non-finite box coordinates", dropped)
        keep &= finite

        if not np.any(keep):
            return np.empty((0, 4), dtype=np.float64), np.empty((0,), dtype=np.float64), np.empty((0,), dtype=np.int64)

        boxes = cxcywh_to_xyxy(view.boxes_cxcywh[keep].astype(np.float64))
        return boxes, scores[keep], class_ids[keep].astype(np.int64)


def postprocess(
    raw_output: np.ndarray,
    num_classes: int,
    num_anchors: Optional[int],
    original_width: int,
    original_height: int,
    input_size: int,
    confidence_threshold: float,
    iou_threshold: float,
    class_catalog: ClassCatalog = COCO_CATALOG,
    max_detections: Optional[int] = None,
) -> List[Detection]:
    if len(class_catalog) != num_classes:
        raise ValueError(f"class_catalog has {len(class_catalog)} names but num_classes={num_classes}")
    post = YoloPostprocessor(
        YoloPostConfig(
            conf_threshold=confidence_threshold,
            iou_threshold=iou_threshold,
            max_detections=max_detections,
        ),
        class_catalog,
    )
    return post.process(raw_output, (original_width, original_height), input_size, num_anchors)
