"""
Image bytes -> model input tensor.

The model takes a fixed square RGB input, so images are stretched (not
letterboxed) to ``input_size x input_size``; postprocessing scales each axis
back independently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

import cv2
import numpy as np

from .errors import InvalidImage

logger = logging.getLogger(__name__)

MAX_IMAGE_SIZE_BYTES = 10 * 1024 * 1024

ImageBytes = Union[bytes, bytearray, memoryview]


@dataclass(frozen=True)
class PreprocessResult:
    # flat float32 CHW buffer of length 3 * input_size * input_size
    tensor: np.ndarray
    original_width: int
    original_height: int
    input_size: int

    def blob(self) -> np.ndarray:
        return self.tensor.reshape(1, 3, self.input_size, self.input_size)


def _contiguous(image_bytes: ImageBytes) -> ImageBytes:
    # np.frombuffer rejects strided views
    if isinstance(image_bytes, memoryview) and not image_bytes.c_contiguous:
        return image_bytes.tobytes()
    return image_bytes


def validate_image_bytes(image_bytes: ImageBytes) -> ImageBytes:
    """Check type and size; returns the buffer in a form ``decode_image`` can read."""
    if image_bytes is None:
        raise InvalidImage("Image buffer is required")
    if not isinstance(image_bytes, (bytes, bytearray, memoryview)):
        raise InvalidImage(f"Image buffer must be bytes-like, got {type(image_bytes).__name__}")
    size = memoryview(image_bytes).nbytes
    if size == 0:
        raise InvalidImage("Image buffer is empty")
    if size > MAX_IMAGE_SIZE_BYTES:
        raise InvalidImage(
            f"Image exceeds maximum size of {MAX_IMAGE_SIZE_BYTES // (1024 * 1024)}MB ({size} bytes)"
        )
    return _contiguous(image_bytes)


def decode_image(image_bytes: ImageBytes) -> np.ndarray:
    """
    Decode encoded image bytes into an 8-bit RGB array of shape (H, W, 3).

    Greyscale is expanded to three channels and alpha is dropped.
    """

    try:
        buf = np.frombuffer(_contiguous(image_bytes), dtype=np.uint8)
    except (BufferError, ValueError, TypeError) as exc:
        raise InvalidImage(f"Could not read image buffer: {exc}") from exc
    try:
        img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    except cv2.error as exc:
        raise InvalidImage(f"Could not decode image: {exc}") from exc
    if img is None or img.size == 0:
        raise InvalidImage("Could not determine image dimensions")

    h, w = img.shape[:2]
    if h <= 0 or w <= 0:
        raise InvalidImage("Could not determine image dimensions")

    if img.dtype == np.uint16:
        img = cv2.convertScaleAbs(img, alpha=255.0 / 65535.0)
    elif img.dtype != np.uint8:
        raise InvalidImage(f"Unsupported image depth: {img.dtype}")

    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGB)
    channels = img.shape[2]
    if channels == 1:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGB)
    if channels == 3:
        return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
    if channels == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2RGB)
    raise InvalidImage(f"Unsupported channel count: {channels}")


def to_chw_tensor(image_rgb: np.ndarray, input_size: int) -> np.ndarray:
    """
    Resize an RGB uint8 image to a square and lay it out as a flat CHW float32 buffer in [0, 1].
    """

    if image_rgb.shape[:2] != (input_size, input_size):
        image_rgb = cv2.resize(image_rgb, (input_size, input_size), interpolation=cv2.INTER_LANCZOS4)

    # HWC -> CHW, normalize
    chw = np.transpose(image_rgb, (2, 0, 1)).astype(np.float32) / 255.0
    return np.ascontiguousarray(chw).reshape(-1)


def preprocess(image_bytes: ImageBytes, input_size: int) -> PreprocessResult:
    image_rgb = decode_image(validate_image_bytes(image_bytes))
    orig_h, orig_w = image_rgb.shape[:2]
    tensor = to_chw_tensor(image_rgb, input_size)
    logger.debug("Preprocessed %dx%d image to %dx%d tensor", orig_w, orig_h, input_size, input_size)
    return PreprocessResult(tensor=tensor, original_width=orig_w, original_height=orig_h, input_size=input_size)
