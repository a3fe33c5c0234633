from __future__ import annotations

import concurrent.futures
import logging
from typing import Protocol

import numpy as np

from .errors import DetectionError, InferenceFailed, InferenceTimeout, NotInitialized

logger = logging.getLogger(__name__)


class SupportsRun(Protocol):
    def run(self, blob: np.ndarray) -> np.ndarray:
        ...


class InferenceRunner:
    """
    Runs engine calls on a small worker pool so each call can be bounded by a timeout.

    A call that overruns is abandoned, not killed: its worker keeps running
    until the engine returns and then drops the result together with its
    reference to the input blob. ``max_workers`` therefore also bounds how
    many hung engine calls can pile up.
    """

    def __init__(self, max_workers: int = 4):
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="yolo-detect-infer"
        )

    def run(self, session: SupportsRun, tensor: np.ndarray, input_size: int, timeout_ms: int) -> np.ndarray:
        data = np.asarray(tensor, dtype=np.float32)
        expected = 3 * input_size * input_size
        if data.size != expected:
            raise InferenceFailed(f"Input tensor has {data.size} values, expected {expected} (1x3x{input_size}x{input_size})")
        blob = data.reshape(1, 3, input_size, input_size)

        try:
            future = self._executor.submit(session.run, blob)
        except RuntimeError as exc:
            raise NotInitialized("Inference runner has been shut down") from exc

        done, _ = concurrent.futures.wait([future], timeout=timeout_ms / 1000.0)
        if not done:
            future.cancel()
            logger.error("Inference timed out after %d ms", timeout_ms)
            raise InferenceTimeout(timeout_ms)

        try:
            return future.result()
        except DetectionError:
            raise
        except Exception as exc:
            logger.error("Inference failed: %s", exc)
            raise InferenceFailed(f"Object detection failed: {exc}", exc) from exc

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
