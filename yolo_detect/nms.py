from dataclasses import dataclass
from typing import Optional

import numpy as np

from .geometry import iou_one_to_many


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float = 0.45
    max_detections: Optional[int] = None


def stable_descending_order(scores: np.ndarray) -> np.ndarray:
    """
    Indices that sort ``scores`` high to low; equal scores keep input order.
    """

    return np.argsort(-np.asarray(scores, dtype=np.float64), kind="stable")


def nms(boxes: np.ndarray, scores: np.ndarray, class_ids: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Greedy per-class NMS. Expects boxes shape (N,4) in xyxy, scores and class_ids shape (N,).
    Returns indices of boxes to keep, ordered by descending score.

    A kept box suppresses every later box of the same class whose IoU with it
    is >= ``cfg.iou_threshold``. Boxes of different classes never suppress
    each other.
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    order = stable_descending_order(scores)
    boxes = boxes[order]
    class_ids = np.asarray(class_ids)[order]

    suppressed = np.zeros(order.shape[0], dtype=bool)
    keep = []

    for pos in range(order.shape[0]):
        if suppressed[pos]:
            continue
        keep.append(order[pos])
        if cfg.max_detections is not None and len(keep) >= cfg.max_detections:
            break

        rest = np.arange(pos + 1, order.shape[0])
        rest = rest[~suppressed[rest] & (class_ids[rest] == class_ids[pos])]
        if rest.size == 0:
            continue

        overlaps = iou_one_to_many(boxes[pos], boxes[rest])
        suppressed[rest[overlaps >= cfg.iou_threshold]] = True

    return np.array(keep, dtype=np.int64)
