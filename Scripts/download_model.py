from __future__ import annotations

import argparse
import logging
import sys

from yolo_detect.errors import ModelDownloadFailed
from yolo_detect.models import (
    DEFAULT_MODEL_NAME,
    DEFAULT_MODELS_DIR,
    MODEL_CATALOG,
    download_model,
    format_bytes,
    format_catalog,
    get_model_spec,
    manual_download_instructions,
    model_destination,
)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Download a pre-exported YOLO ONNX model for object detection.",
        epilog="Available models:\n" + format_catalog(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--model",
        default=DEFAULT_MODEL_NAME,
        choices=list(MODEL_CATALOG),
        help=f"Model to download (default: {DEFAULT_MODEL_NAME}).",
    )
    parser.add_argument("--models-dir", default=DEFAULT_MODELS_DIR, help="Destination directory.")
    parser.add_argument("--force", action="store_true", help="Re-download even if the file exists.")
    parser.add_argument("--list", action="store_true", help="List available models and exit.")
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar.")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.list:
        print("Available models:")
        print(format_catalog())
        return 0

    spec = get_model_spec(args.model)
    dest = model_destination(args.model, args.models_dir)
    if dest.exists() and not args.force:
        print(f"Model already exists: {dest}")
        print("Delete the file (or pass --force) to re-download.")
        return 0

    print(f"Downloading {spec.name} ({spec.size})...")
    print(f"Source: {spec.url}")
    print(f"Destination: {dest}")

    try:
        path = download_model(args.model, args.models_dir, force=args.force, show_progress=not args.no_progress)
    except ModelDownloadFailed as exc:
        print(f"\nDownload failed: {exc}", file=sys.stderr)
        print(manual_download_instructions(args.model, args.models_dir), file=sys.stderr)
        return 1

    print("\nDownload complete!")
    print(f"Model saved to: {path}")
    print(f"File size: {format_bytes(path.stat().st_size)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
