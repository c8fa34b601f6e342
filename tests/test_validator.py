import tempfile
import unittest
from pathlib import Path

from image_factory import make_image

from manga_pdf.config.config import ValidationConfig
from manga_pdf.core.validator import ImageValidator, has_image_signature

class TestImageValidator(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.validator = ImageValidator(ValidationConfig())

    def tearDown(self):
        self._tmp.cleanup()

    def test_valid_formats(self):
        for fmt, ext in (('JPEG', 'jpg'), ('PNG', 'png'), ('GIF', 'gif'), ('WEBP', 'webp')):
            path = make_image(self.tmp / f"page.{ext}", (64, 64), fmt)
            # 纯色小图可能压缩得很小，补足到阈值以上
            if path.stat().st_size < 100:
                with open(path, 'ab') as f:
                    f.write(b'\x00' * 100)
            result = self.validator.validate(path)
            self.assertTrue(result.valid, f"{fmt}: {result.reason}")
            self.assertEqual(result.size, path.stat().st_size)
            self.assertIsNone(result.reason)

    def test_empty_file(self):
        path = self.tmp / "empty.jpg"
        path.write_bytes(b'')
        result = self.validator.validate(path)
        self.assertFalse(result.valid)
        self.assertEqual(result.reason, "empty file")
        self.assertEqual(result.size, 0)

    def test_too_small(self):
        for size in (1, 50, 99):
            path = self.tmp / f"small_{size}.jpg"
            path.write_bytes(b'\xff\xd8\xff' + b'\x00' * (size - 3) if size >= 3 else b'\xff' * size)
            result = self.validator.validate(path)
            self.assertFalse(result.valid)
            self.assertEqual(result.reason, "too small")
            self.assertEqual(result.size, size)

    def test_minimum_size_boundary(self):
        path = self.tmp / "boundary.jpg"
        path.write_bytes(b'\xff\xd8\xff' + b'\x00' * 97)
        result = self.validator.validate(path)
        self.assertTrue(result.valid)
        self.assertEqual(result.size, 100)

    def test_unknown_header(self):
        path = self.tmp / "page.jpg"
        path.write_bytes(b'<html>' + b' ' * 200)
        result = self.validator.validate(path)
        self.assertFalse(result.valid)
        self.assertTrue(result.reason.startswith("invalid file header"))
        self.assertIn(b'<html>'.hex(), result.reason)

    def test_header_only_not_decoded(self):
        # 文件头正确但内容损坏的图片在这里判定为有效
        path = self.tmp / "broken.jpg"
        path.write_bytes(b'\xff\xd8\xff' + b'\x13' * 500)
        self.assertTrue(self.validator.validate(path).valid)

    def test_missing_file(self):
        result = self.validator.validate(self.tmp / "missing.jpg")
        self.assertFalse(result.valid)
        self.assertEqual(result.size, 0)
        self.assertIn("missing.jpg", result.reason)

    def test_signature_detection(self):
        self.assertTrue(has_image_signature(b'\xff\xd8\xff\xe0'))
        self.assertTrue(has_image_signature(b'\x89PNG\r\n\x1a\n'))
        self.assertTrue(has_image_signature(b'GIF89a'))
        self.assertTrue(has_image_signature(b'RIFF\x00\x00\x00\x00WEBPVP8 '))
        self.assertFalse(has_image_signature(b'RIFF\x00\x00\x00\x00WAVE'))
        self.assertFalse(has_image_signature(b''))

if __name__ == "__main__":
    unittest.main()
