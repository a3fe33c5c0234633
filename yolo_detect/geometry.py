from __future__ import annotations

from typing import Tuple

import numpy as np

from .types import BoundingBox


def iou(box1: BoundingBox, box2: BoundingBox) -> float:
    """
    Intersection over union of two ``BoundingBox`` instances.

    Returns 0.0 when the union is empty (two degenerate boxes).
    """

    x1 = max(box1.x, box2.x)
    y1 = max(box1.y, box2.y)
    x2 = min(box1.x2, box2.x2)
    y2 = min(box1.y2, box2.y2)

    inter = max(0.0, x2 - x1) * max(0.0, y2 - y1)
    union = box1.width * box1.height + box2.width * box2.height - inter
    if union <= 0.0:
        return 0.0
    return inter / union


def iou_one_to_many(box: np.ndarray, boxes: np.ndarray) -> np.ndarray:
    """
    Vectorised IoU of one xyxy box (shape (4,)) against ``boxes`` (shape (N, 4)).
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.float64)

    xx1 = np.maximum(box[0], boxes[:, 0])
    yy1 = np.maximum(box[1], boxes[:, 1])
    xx2 = np.minimum(box[2], boxes[:, 2])
    yy2 = np.minimum(box[3], boxes[:, 3])

    inter = np.maximum(0.0, xx2 - xx1) * np.maximum(0.0, yy2 - yy1)
    area = (box[2] - box[0]) * (box[3] - box[1])
    areas = (boxes[:, 2] - boxes[:, 0]) * (boxes[:, 3] - boxes[:, 1])
    union = area + areas - inter

    out = np.zeros(boxes.shape[0], dtype=np.float64)
    nonzero = union > 0
    out[nonzero] = inter[nonzero] / union[nonzero]
    return out


def cxcywh_to_xyxy(boxes: np.ndarray) -> np.ndarray:
    # (N, 4) centre form -> (N, 4) corner form
    cx, cy, w, h = boxes.T
    return np.stack([cx - w / 2, cy - h / 2, cx + w / 2, cy + h / 2], axis=1)


def scale_and_clip_boxes(
    boxes_xyxy: np.ndarray,
    scale: Tuple[float, float],
    frame_size: Tuple[int, int],
) -> np.ndarray:
    """
    Scale xyxy boxes per axis and clip them to ``[0, w] x [0, h]``.

    Args:
        boxes_xyxy: (N, 4) boxes in model input space
        scale: (sx, sy) factors from model input space to the original frame
        frame_size: (width, height) of the original frame
    """

    sx, sy = scale
    w, h = frame_size
    out = boxes_xyxy.astype(np.float64, copy=True)
    out[:, [0, 2]] *= sx
    out[:, [1, 3]] *= sy
    out[:, [0, 2]] = np.clip(out[:, [0, 2]], 0.0, float(w))
    out[:, [1, 3]] = np.clip(out[:, [1, 3]], 0.0, float(h))
    return out
