from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

import cv2
import numpy as np

from yolo_detect import (
    COCO_CATALOG,
    DetectionError,
    DetectorConfig,
    ModelNotFound,
    load_class_names,
    load_detector,
    load_detector_config,
    model_download_instructions,
)
from yolo_detect.visualize import draw_detections


def main() -> int:
    parser = argparse.ArgumentParser(description="Run YOLO detection on one image and print the result as JSON.")
    parser.add_argument("image", help="Path to an input image.")
    parser.add_argument("--config", default=None, help="Optional detector config JSON.")
    parser.add_argument("--model", default=None, help="Path to a YOLO ONNX model (overrides --config).")
    parser.add_argument("--metadata", default=None, help="Optional class metadata (names mapping); COCO otherwise.")
    parser.add_argument("--imgsz", type=int, default=None, help="Model input size (e.g., 640).")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS.")
    parser.add_argument("--timeout-ms", type=int, default=None, help="Inference timeout in milliseconds.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--out", default=None, help="Optional output path to save the visualization.")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    cfg = load_detector_config(args.config) if args.config else DetectorConfig()
    overrides = {}
    if args.model is not None:
        overrides["model_path"] = args.model
    if args.imgsz is not None:
        overrides["input_size"] = args.imgsz
    if args.conf is not None:
        overrides["confidence_threshold"] = args.conf
    if args.iou is not None:
        overrides["iou_threshold"] = args.iou
    if args.timeout_ms is not None:
        overrides["inference_timeout_ms"] = args.timeout_ms
    if args.onnx_providers:
        overrides["providers"] = tuple(p.strip() for p in str(args.onnx_providers).split(",") if p.strip())
    cfg = replace(cfg, **overrides)

    catalog = load_class_names(args.metadata) if args.metadata else COCO_CATALOG
    image_bytes = Path(args.image).read_bytes()

    try:
        detector = load_detector(cfg=cfg, class_catalog=catalog)
    except ModelNotFound as exc:
        print(exc, file=sys.stderr)
        print(model_download_instructions(), file=sys.stderr)
        return 2
    except DetectionError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1

    try:
        result = detector.detect(image_bytes)
    except DetectionError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1
    finally:
        detector.dispose()

    print(json.dumps(result.to_dict(), indent=2))

    if args.out:
        img = cv2.imdecode(np.frombuffer(image_bytes, dtype=np.uint8), cv2.IMREAD_COLOR)
        vis = draw_detections(img, result.detections, show_score=True)
        ok = cv2.imwrite(args.out, vis)
        if not ok:
            raise RuntimeError(f"Failed to write output image: {args.out}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
