import unittest

import numpy as np

from yolo_detect.nms import NMSConfig, nms, stable_descending_order


def _boxes(*rows):
    return np.array(rows, dtype=np.float64)


class TestPerClassNMS(unittest.TestCase):
    def test_same_class_overlap_keeps_higher_score(self) -> None:
        boxes = _boxes([0, 0, 10, 10], [1, 1, 11, 11])
        scores = np.array([0.6, 0.9])
        class_ids = np.array([2, 2])
        keep = nms(boxes, scores, class_ids, NMSConfig(iou_threshold=0.45))
        self.assertEqual(keep.tolist(), [1])

    def test_different_classes_never_suppress(self) -> None:
        boxes = _boxes([0, 0, 10, 10], [0, 0, 10, 10])
        scores = np.array([0.9, 0.8])
        class_ids = np.array([0, 1])
        keep = nms(boxes, scores, class_ids, NMSConfig(iou_threshold=0.45))
        self.assertEqual(keep.tolist(), [0, 1])

    def test_iou_equal_to_threshold_is_suppressed(self) -> None:
        # IoU exactly 0.5
        boxes = _boxes([0, 0, 10, 10], [0, 0, 10, 5])
        scores = np.array([0.9, 0.8])
        class_ids = np.array([0, 0])
        self.assertEqual(nms(boxes, scores, class_ids, NMSConfig(iou_threshold=0.5)).tolist(), [0])
        self.assertEqual(nms(boxes, scores, class_ids, NMSConfig(iou_threshold=0.51)).tolist(), [0, 1])

    def test_ties_keep_first_encountered(self) -> None:
        boxes = _boxes([0, 0, 10, 10], [0, 0, 10, 10], [50, 50, 60, 60])
        scores = np.array([0.7, 0.7, 0.7])
        class_ids = np.array([3, 3, 3])
        keep = nms(boxes, scores, class_ids, NMSConfig(iou_threshold=0.45))
        self.assertEqual(keep.tolist(), [0, 2])

    def test_suppressed_box_does_not_suppress_others(self) -> None:
        # b overlaps a and c; a suppresses b, so c survives even though IoU(b, c) is high
        boxes = _boxes([0, 0, 10, 10], [4, 0, 14, 10], [8, 0, 18, 10])
        scores = np.array([0.9, 0.8, 0.7])
        class_ids = np.array([0, 0, 0])
        keep = nms(boxes, scores, class_ids, NMSConfig(iou_threshold=0.4))
        self.assertEqual(keep.tolist(), [0, 2])

    def test_output_ordered_by_score(self) -> None:
        boxes = _boxes([0, 0, 10, 10], [100, 100, 110, 110], [200, 200, 210, 210])
        scores = np.array([0.3, 0.9, 0.5])
        class_ids = np.array([0, 1, 2])
        keep = nms(boxes, scores, class_ids, NMSConfig())
        self.assertEqual(keep.tolist(), [1, 2, 0])

    def test_max_detections(self) -> None:
        boxes = _boxes([0, 0, 10, 10], [100, 100, 110, 110], [200, 200, 210, 210])
        scores = np.array([0.3, 0.9, 0.5])
        class_ids = np.array([0, 0, 0])
        keep = nms(boxes, scores, class_ids, NMSConfig(max_detections=2))
        self.assertEqual(keep.tolist(), [1, 2])

    def test_empty(self) -> None:
        keep = nms(np.empty((0, 4)), np.empty((0,)), np.empty((0,), dtype=np.int64), NMSConfig())
        self.assertEqual(keep.size, 0)

    def test_stable_order(self) -> None:
        order = stable_descending_order(np.array([0.5, 0.9, 0.5, 0.9]))
        self.assertEqual(order.tolist(), [1, 3, 0, 2])


if __name__ == "__main__":
    unittest.main()
