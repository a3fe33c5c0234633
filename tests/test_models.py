import tempfile
import unittest
from pathlib import Path
from unittest import mock

import requests

from yolo_detect.errors import ModelDownloadFailed
from yolo_detect.models import (
    DEFAULT_MODEL_NAME,
    MODEL_CATALOG,
    download_model,
    format_bytes,
    format_catalog,
    get_model_spec,
    manual_download_instructions,
    model_destination,
)
from yolo_detect.runtime import model_download_instructions


def _response(chunks, status_error=None):
    resp = mock.MagicMock(name="Response")
    resp.__enter__.return_value = resp
    resp.headers = {"content-length": str(sum(len(c) for c in chunks))}
    resp.iter_content.return_value = iter(chunks)
    if status_error is not None:
        resp.raise_for_status.side_effect = status_error
    return resp


class TestModelCatalog(unittest.TestCase):
    def test_catalog_entries(self) -> None:
        self.assertEqual(list(MODEL_CATALOG), ["yolov8n", "yolov8s", "yolo11n", "yolo11s"])
        self.assertEqual(DEFAULT_MODEL_NAME, "yolov8n")
        for name, spec in MODEL_CATALOG.items():
            self.assertEqual(spec.name, name)
            self.assertTrue(spec.url.startswith("https://"))
            self.assertTrue(spec.url.endswith(f"/{name}.onnx"))

    def test_unknown_model(self) -> None:
        with self.assertRaises(ValueError) as ctx:
            get_model_spec("yolov9x")
        self.assertIn("yolov8n", str(ctx.exception))

    def test_destination(self) -> None:
        self.assertEqual(model_destination("yolo11s", "weights"), Path("weights") / "yolo11s.onnx")

    def test_format_bytes(self) -> None:
        self.assertEqual(format_bytes(512), "512 B")
        self.assertEqual(format_bytes(2048), "2.0 KB")
        self.assertEqual(format_bytes(6 * 1024 * 1024 + 400 * 1024), "6.4 MB")

    def test_listing_and_instructions(self) -> None:
        listing = format_catalog()
        self.assertEqual(len(listing.splitlines()), len(MODEL_CATALOG))
        self.assertIn("recommended", listing)
        manual = manual_download_instructions("yolov8s", "models")
        self.assertIn(MODEL_CATALOG["yolov8s"].url, manual)
        self.assertIn(str(Path("models") / "yolov8s.onnx"), manual)
        self.assertIn(MODEL_CATALOG["yolov8n"].url, model_download_instructions())


class TestDownloadModel(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.models_dir = Path(tmpdir.name) / "models"

    @mock.patch("yolo_detect.models.requests.get")
    def test_streams_to_destination(self, get) -> None:
        get.return_value = _response([b"onnx", b"-model", b""])
        path = download_model("yolo11n", self.models_dir, show_progress=False)

        self.assertEqual(path, self.models_dir / "yolo11n.onnx")
        self.assertEqual(path.read_bytes(), b"onnx-model")
        self.assertEqual(list(self.models_dir.iterdir()), [path])
        args, kwargs = get.call_args
        self.assertEqual(args[0], MODEL_CATALOG["yolo11n"].url)
        self.assertTrue(kwargs["stream"])

    @mock.patch("yolo_detect.models.requests.get")
    def test_existing_file_kept(self, get) -> None:
        self.models_dir.mkdir()
        existing = self.models_dir / "yolov8n.onnx"
        existing.write_bytes(b"old")
        self.assertEqual(download_model(models_dir=self.models_dir, show_progress=False), existing)
        get.assert_not_called()
        self.assertEqual(existing.read_bytes(), b"old")

    @mock.patch("yolo_detect.models.requests.get")
    def test_force_replaces_existing(self, get) -> None:
        self.models_dir.mkdir()
        existing = self.models_dir / "yolov8n.onnx"
        existing.write_bytes(b"old")
        get.return_value = _response([b"new"])
        download_model(models_dir=self.models_dir, force=True, show_progress=False)
        self.assertEqual(existing.read_bytes(), b"new")

    @mock.patch("yolo_detect.models.requests.get")
    def test_http_error_leaves_nothing_behind(self, get) -> None:
        get.return_value = _response([], status_error=requests.HTTPError("404 Client Error"))
        with self.assertRaises(ModelDownloadFailed) as ctx:
            download_model("yolov8s", self.models_dir, show_progress=False)
        self.assertIsInstance(ctx.exception.__cause__, requests.HTTPError)
        self.assertEqual(ctx.exception.url, MODEL_CATALOG["yolov8s"].url)
        self.assertEqual(list(self.models_dir.iterdir()), [])

    @mock.patch("yolo_detect.models.requests.get")
    def test_interrupted_stream_removes_partial_file(self, get) -> None:
        def chunks():
            yield b"half"
            raise requests.ConnectionError("connection reset")

        resp = _response([])
        resp.iter_content.return_value = chunks()
        get.return_value = resp
        with self.assertRaises(ModelDownloadFailed):
            download_model("yolov8n", self.models_dir, show_progress=False)
        self.assertEqual(list(self.models_dir.iterdir()), [])


if __name__ == "__main__":
    unittest.main()
