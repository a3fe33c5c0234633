"""
Catalog of pre-exported YOLO ONNX models and a downloader for them.

All catalog entries share the ``(1, 84, A)`` COCO output layout the
detector expects.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

import requests
from tqdm import tqdm

from .errors import ModelDownloadFailed

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_MODEL_NAME = "yolov8n"
DEFAULT_MODELS_DIR = "models"
DOWNLOAD_TIMEOUT_S = 60.0
CHUNK_SIZE = 1 << 16

_HF_BASE = "https://huggingface.co/unity/inference-engine-yolo/resolve/main/models"


@dataclass(frozen=True)
class ModelSpec:
    name: str
    url: str
    size: str
    description: str

    @property
    def filename(self) -> str:
        return f"{self.name}.onnx"


MODEL_CATALOG: Dict[str, ModelSpec] = {
    spec.name: spec
    for spec in (
        ModelSpec("yolov8n", f"{_HF_BASE}/yolov8n.onnx", "6.4 MB", "Nano - Fastest, smallest (recommended)"),
        ModelSpec("yolov8s", f"{_HF_BASE}/yolov8s.onnx", "22 MB", "Small - Balanced speed/accuracy"),
        ModelSpec("yolo11n", f"{_HF_BASE}/yolo11n.onnx", "5.4 MB", "YOLO11 Nano - Latest architecture"),
        ModelSpec("yolo11s", f"{_HF_BASE}/yolo11s.onnx", "19 MB", "YOLO11 Small - Latest with better accuracy"),
    )
}


def get_model_spec(name: str) -> ModelSpec:
    try:
        return MODEL_CATALOG[name]
    except KeyError:
        raise ValueError(f"Unknown model: {name}. Available models: {', '.join(MODEL_CATALOG)}") from None


def model_destination(name: str, models_dir: PathLike = DEFAULT_MODELS_DIR) -> Path:
    return Path(models_dir) / get_model_spec(name).filename


def format_bytes(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"


def format_catalog() -> str:
    return "\n".join(f"  {s.name:<10} {s.size:<8} {s.description}" for s in MODEL_CATALOG.values())


def manual_download_instructions(name: str, models_dir: PathLike = DEFAULT_MODELS_DIR) -> str:
    spec = get_model_spec(name)
    return "\n".join(
        [
            "Manual download instructions:",
            f"1. Visit: {spec.url}",
            f"2. Save the file as: {model_destination(name, models_dir)}",
        ]
    )


def download_model(
    name: str = DEFAULT_MODEL_NAME,
    models_dir: PathLike = DEFAULT_MODELS_DIR,
    *,
    force: bool = False,
    show_progress: bool = True,
    timeout_s: float = DOWNLOAD_TIMEOUT_S,
) -> Path:
    """
    Fetch a catalog model into ``models_dir`` and return its path.

    An existing file is left alone unless ``force`` is set. The body is
    streamed to a ``.part`` file that only replaces the destination once the
    download completes, so an interrupted download never leaves a truncated
    model behind.
    """

    spec = get_model_spec(name)
    dest = model_destination(name, models_dir)
    if dest.exists() and not force:
        logger.info("Model already exists: %s", dest)
        return dest

    dest.parent.mkdir(parents=True, exist_ok=True)
    part = dest.with_name(dest.name + ".part")
    logger.info("Downloading %s (%s) from %s", spec.name, spec.size, spec.url)

    try:
        with requests.get(spec.url, stream=True, timeout=timeout_s) as response:
            response.raise_for_status()
            total = int(response.headers.get("content-length", 0)) or None
            with open(part, "wb") as f, tqdm(
                total=total, unit="B", unit_scale=True, desc=spec.filename, disable=not show_progress
            ) as pbar:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
                        pbar.update(len(chunk))
    except (requests.RequestException, OSError) as exc:
        part.unlink(missing_ok=True)
        logger.error("Download of %s failed: %s", spec.name, exc)
        raise ModelDownloadFailed(spec.url, str(exc)) from exc

    os.replace(part, dest)
    logger.info("Model saved to %s (%s)", dest, format_bytes(dest.stat().st_size))
    return dest
