from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import onnxruntime as ort

from .classes import COCO_CATALOG, ClassCatalog
from .config import DetectorConfig
from .errors import ModelNotFound, NotInitialized, UnsupportedModel

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
Dim = Union[int, str, None]


def resolve_path(path: PathLike, root: Optional[PathLike] = None) -> Path:
    """
    Resolve ``path`` to an absolute Path.

    - Absolute paths are returned as-is.
    - Relative paths are resolved against ``root`` if provided, the working directory otherwise.
    """

    p = Path(path).expanduser()
    if p.is_absolute():
        return p
    base = Path(root).resolve() if root is not None else Path.cwd()
    return (base / p).resolve()


def _static(dim: Dim) -> Optional[int]:
    # ORT reports symbolic dims as strings (or None)
    return dim if isinstance(dim, int) and dim > 0 else None


@dataclass(frozen=True)
class ModelInfo:
    initialized: bool
    model_path: str
    input_size: int
    confidence_threshold: float
    iou_threshold: float
    inference_timeout_ms: int
    num_classes: int
    input_name: Optional[str] = None
    output_name: Optional[str] = None
    input_shape: Optional[Tuple[Dim, ...]] = None
    output_shape: Optional[Tuple[Dim, ...]] = None
    num_anchors: Optional[int] = None
    providers: Tuple[str, ...] = field(default_factory=tuple)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ModelSession:
    """
    Owns one ONNX Runtime session for a single-input, single-output YOLO model.

    Lifecycle: construct -> initialize() -> run() any number of times ->
    dispose(). Also usable as a context manager.

    ONNX Runtime documents ``InferenceSession.run`` as safe to call from
    several threads at once, so the engine call itself runs unlocked; the
    lock only covers the initialise/dispose transitions and the state
    snapshot ``run`` takes before calling the engine.

    ``cfg.model_path`` is resolved against the working directory when
    ``initialize()`` runs, not at construction.
    """

    def __init__(self, cfg: DetectorConfig, class_catalog: ClassCatalog = COCO_CATALOG):
        self.cfg = cfg
        self.class_catalog = class_catalog
        self.model_path = cfg.model_path
        self._resolved_path: Optional[Path] = None

        self._lock = threading.Lock()
        self._session: Optional[ort.InferenceSession] = None
        self._input_name: Optional[str] = None
        self._output_name: Optional[str] = None
        self._input_shape: Optional[Tuple[Dim, ...]] = None
        self._output_shape: Optional[Tuple[Dim, ...]] = None
        self._num_anchors: Optional[int] = None

        logger.debug(
            "ModelSession created (model=%s input_size=%d conf=%.2f iou=%.2f)",
            self.model_path,
            cfg.input_size,
            cfg.confidence_threshold,
            cfg.iou_threshold,
        )

    def __enter__(self) -> "ModelSession":
        self.initialize()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    @property
    def is_initialized(self) -> bool:
        return self._session is not None

    @property
    def num_classes(self) -> int:
        return len(self.class_catalog)

    @property
    def num_anchors(self) -> Optional[int]:
        return self._num_anchors

    @property
    def input_name(self) -> str:
        self._require_initialized()
        return self._input_name  # type: ignore[return-value]

    @property
    def output_name(self) -> str:
        self._require_initialized()
        return self._output_name  # type: ignore[return-value]

    @property
    def providers_in_use(self) -> Sequence[str]:
        session = self._require_initialized()
        return tuple(session.get_providers())

    def initialize(self) -> None:
        with self._lock:
            if self._session is not None:
                logger.warning("ModelSession already initialized (%s)", self._resolved_path)
                return

            path = resolve_path(self.model_path)
            if not path.is_file():
                logger.error("Model file not found: %s", path)
                raise ModelNotFound(str(path))

            logger.info("Loading model %s", path)
            sess_opts = ort.SessionOptions()
            sess_opts.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
            try:
                session = ort.InferenceSession(str(path), sess_options=sess_opts, providers=list(self.cfg.providers))
            except Exception as exc:
                logger.error("Failed to load model %s: %s", path, exc)
                raise UnsupportedModel(f"Failed to load model {path}: {exc}") from exc

            try:
                input_name, input_shape = self._validate_input(session.get_inputs())
                output_name, output_shape, num_anchors = self._validate_output(session.get_outputs())
            except UnsupportedModel as exc:
                logger.error("Rejected model %s: %s", path, exc)
                raise

            self._resolved_path = path
            self._session = session
            self._input_name = input_name
            self._output_name = output_name
            self._input_shape = input_shape
            self._output_shape = output_shape
            self._num_anchors = num_anchors

        logger.info(
            "Model loaded (input=%s %s, output=%s %s, providers=%s)",
            input_name,
            list(input_shape),
            output_name,
            list(output_shape),
            list(session.get_providers()),
        )

    def dispose(self) -> None:
        with self._lock:
            if self._session is None:
                logger.debug("ModelSession.dispose() called on an uninitialized session")
                return
            self._session = None
            self._input_name = None
            self._output_name = None
            self._input_shape = None
            self._output_shape = None
            self._num_anchors = None
            path = self._resolved_path
        logger.info("ModelSession disposed (%s)", path)

    def run(self, blob: np.ndarray) -> np.ndarray:
        """
        Execute the model on an NCHW float32 blob and return the primary output.

        Engine exceptions propagate unchanged; ``InferenceRunner`` wraps them.
        """

        # session and names must come from the same initialize()
        with self._lock:
            session = self._require_initialized()
            input_name = self._input_name
            output_name = self._output_name
        outputs = session.run([output_name], {input_name: blob})
        return outputs[0]

    def get_model_info(self) -> ModelInfo:
        cfg = self.cfg
        with self._lock:
            session = self._session
            resolved = self._resolved_path
            io = dict(
                input_name=self._input_name,
                output_name=self._output_name,
                input_shape=self._input_shape,
                output_shape=self._output_shape,
                num_anchors=self._num_anchors,
            )
        base = dict(
            model_path=str(resolved if resolved is not None else self.model_path),
            input_size=cfg.input_size,
            confidence_threshold=cfg.confidence_threshold,
            iou_threshold=cfg.iou_threshold,
            inference_timeout_ms=cfg.inference_timeout_ms,
            num_classes=self.num_classes,
        )
        if session is None:
            return ModelInfo(initialized=False, **base)
        return ModelInfo(initialized=True, providers=tuple(session.get_providers()), **io, **base)

    # ------------------------------------------------------------------ #
    # Helper internal
    # ------------------------------------------------------------------ #
    def _require_initialized(self) -> ort.InferenceSession:
        session = self._session
        if session is None:
            raise NotInitialized("ModelSession not initialized. Call initialize() first.")
        return session

    def _validate_input(self, inputs: List[Any]) -> Tuple[str, Tuple[Dim, ...]]:
        if len(inputs) != 1:
            raise UnsupportedModel(f"Expected exactly one model input, got {len(inputs)}")
        node = inputs[0]
        shape = tuple(node.shape)
        if len(shape) != 4:
            raise UnsupportedModel(f"Expected NCHW input of rank 4, got shape {list(shape)}")

        size = self.cfg.input_size
        batch, channels, height, width = (_static(d) for d in shape)
        if batch is not None and batch != 1:
            raise UnsupportedModel(f"Expected batch size 1, got input shape {list(shape)}")
        if channels is not None and channels != 3:
            raise UnsupportedModel(f"Expected 3 input channels, got input shape {list(shape)}")
        for dim in (height, width):
            if dim is not None and dim != size:
                raise UnsupportedModel(f"Model input shape {list(shape)} does not match input_size={size}")
        return node.name, shape

    def _validate_output(self, outputs: List[Any]) -> Tuple[str, Tuple[Dim, ...], Optional[int]]:
        if len(outputs) != 1:
            raise UnsupportedModel(f"Expected exactly one model output, got {len(outputs)}")
        node = outputs[0]
        shape = tuple(node.shape)
        if len(shape) != 3:
            raise UnsupportedModel(f"Expected output of rank 3 [1, 4 + C, A], got shape {list(shape)}")

        batch, channels, anchors = (_static(d) for d in shape)
        if batch is not None and batch != 1:
            raise UnsupportedModel(f"Expected batch size 1, got output shape {list(shape)}")
        expected = 4 + self.num_classes
        if channels is not None and channels != expected:
            raise UnsupportedModel(
                f"Model output has {channels} channels but the class catalog needs {expected} "
                f"(4 box + {self.num_classes} classes)"
            )
        return node.name, shape, anchors
