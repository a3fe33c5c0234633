import unittest

import cv2
import numpy as np

from _helpers import encode_solid_image
from yolo_detect.errors import InvalidImage
from yolo_detect.preprocess import (
    MAX_IMAGE_SIZE_BYTES,
    decode_image,
    preprocess,
    to_chw_tensor,
    validate_image_bytes,
)


class TestValidateImageBytes(unittest.TestCase):
    def test_empty_rejected(self) -> None:
        with self.assertRaises(InvalidImage):
            validate_image_bytes(b"")

    def test_exactly_max_size_accepted(self) -> None:
        self.assertEqual(MAX_IMAGE_SIZE_BYTES, 10 * 1024 * 1024)
        validate_image_bytes(bytes(MAX_IMAGE_SIZE_BYTES))

    def test_one_byte_over_max_rejected(self) -> None:
        with self.assertRaises(InvalidImage):
            validate_image_bytes(bytes(MAX_IMAGE_SIZE_BYTES + 1))

    def test_oversized_rejected_before_decode(self) -> None:
        with self.assertRaises(InvalidImage) as ctx:
            preprocess(bytes(MAX_IMAGE_SIZE_BYTES + 1), 640)
        self.assertIn("maximum size", str(ctx.exception))

    def test_non_bytes_rejected(self) -> None:
        with self.assertRaises(InvalidImage):
            validate_image_bytes("not bytes")  # type: ignore[arg-type]
        with self.assertRaises(InvalidImage):
            validate_image_bytes(None)  # type: ignore[arg-type]

    def test_bytearray_and_memoryview_accepted(self) -> None:
        validate_image_bytes(bytearray(b"\x00\x01"))
        validate_image_bytes(memoryview(b"\x00\x01"))

    def test_strided_memoryview_decoded(self) -> None:
        data = encode_solid_image(32, 24, (10, 20, 30))
        interleaved = bytearray(2 * len(data))
        interleaved[::2] = data
        view = memoryview(interleaved)[::2]
        self.assertFalse(view.c_contiguous)

        self.assertEqual(bytes(validate_image_bytes(view)), data)
        result = preprocess(view, 32)
        self.assertEqual((result.original_width, result.original_height), (32, 24))
        self.assertEqual(decode_image(view)[0, 0].tolist(), [30, 20, 10])


class TestDecodeImage(unittest.TestCase):
    def test_garbage_rejected(self) -> None:
        with self.assertRaises(InvalidImage):
            decode_image(b"definitely not an image")

    def test_truncated_png_rejected(self) -> None:
        data = encode_solid_image(32, 32, (0, 0, 255))
        with self.assertRaises(InvalidImage):
            preprocess(data[:20], 64)

    def test_bgr_converted_to_rgb(self) -> None:
        rgb = decode_image(encode_solid_image(8, 4, (10, 20, 30)))
        self.assertEqual(rgb.shape, (4, 8, 3))
        self.assertEqual(rgb[0, 0].tolist(), [30, 20, 10])

    def test_grayscale_expanded(self) -> None:
        gray = np.full((5, 6), 77, dtype=np.uint8)
        ok, buf = cv2.imencode(".png", gray)
        self.assertTrue(ok)
        rgb = decode_image(buf.tobytes())
        self.assertEqual(rgb.shape, (5, 6, 3))
        self.assertTrue(np.all(rgb == 77))

    def test_alpha_dropped(self) -> None:
        bgra = np.zeros((4, 4, 4), dtype=np.uint8)
        bgra[:, :] = (1, 2, 3, 0)
        ok, buf = cv2.imencode(".png", bgra)
        self.assertTrue(ok)
        rgb = decode_image(buf.tobytes())
        self.assertEqual(rgb.shape, (4, 4, 3))
        self.assertEqual(rgb[2, 2].tolist(), [3, 2, 1])

    def test_16bit_scaled_to_8bit(self) -> None:
        img = np.full((3, 3, 3), 65535, dtype=np.uint16)
        ok, buf = cv2.imencode(".png", img)
        self.assertTrue(ok)
        rgb = decode_image(buf.tobytes())
        self.assertEqual(rgb.dtype, np.uint8)
        self.assertTrue(np.all(rgb == 255))


class TestPreprocess(unittest.TestCase):
    def test_solid_color_chw_layout(self) -> None:
        # BGR (30, 120, 200) -> R=200, G=120, B=30
        data = encode_solid_image(1280, 720, (30, 120, 200))
        result = preprocess(data, 640)
        self.assertEqual(result.original_width, 1280)
        self.assertEqual(result.original_height, 720)
        self.assertEqual(result.tensor.dtype, np.float32)
        self.assertEqual(result.tensor.shape, (3 * 640 * 640,))

        plane = 640 * 640
        r = result.tensor[:plane]
        g = result.tensor[plane : 2 * plane]
        b = result.tensor[2 * plane :]
        for channel, value in ((r, 200), (g, 120), (b, 30)):
            self.assertTrue(np.all(channel == channel[0]))
            self.assertAlmostEqual(float(channel[0]), value / 255.0, places=6)

    def test_blob_shape(self) -> None:
        result = preprocess(encode_solid_image(50, 30, (0, 0, 0)), 32)
        self.assertEqual(result.blob().shape, (1, 3, 32, 32))

    def test_pixel_order_is_planar_row_major(self) -> None:
        img = np.array(
            [
                [[0, 10, 20], [30, 40, 50]],
                [[60, 70, 80], [90, 100, 110]],
            ],
            dtype=np.uint8,
        )  # RGB, 2x2
        tensor = to_chw_tensor(img, 2)
        expected = np.array([0, 30, 60, 90, 10, 40, 70, 100, 20, 50, 80, 110], dtype=np.float32) / 255.0
        self.assertTrue(np.allclose(tensor, expected))

    def test_values_normalized(self) -> None:
        result = preprocess(encode_solid_image(17, 23, (255, 0, 128)), 64)
        self.assertGreaterEqual(float(result.tensor.min()), 0.0)
        self.assertLessEqual(float(result.tensor.max()), 1.0)

    def test_deterministic(self) -> None:
        rng = np.random.default_rng(3)
        noise = rng.integers(0, 256, size=(90, 120, 3), dtype=np.uint8)
        ok, buf = cv2.imencode(".png", noise)
        self.assertTrue(ok)
        a = preprocess(buf.tobytes(), 64).tensor
        b = preprocess(buf.tobytes(), 64).tensor
        self.assertTrue(np.array_equal(a, b))


if __name__ == "__main__":
    unittest.main()
