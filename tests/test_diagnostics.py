import tempfile
import unittest
from pathlib import Path

from image_factory import make_config, make_image

from manga_pdf.core.diagnostics import ImageDiagnostics
from manga_pdf.exceptions.custom_exceptions import NoChaptersError

class TestImageDiagnostics(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.diagnostics = ImageDiagnostics(make_config())

        make_image(self.root / "chapter-1" / "page-1.jpg")
        make_image(self.root / "chapter-1" / "page-2.png", fmt='PNG')
        (self.root / "chapter-2").mkdir()
        (self.root / "chapter-2" / "page-1.jpg").write_bytes(b'')
        (self.root / "chapter-2" / "page-2.jpg").write_bytes(b'GARBAGE' * 40)

    def tearDown(self):
        self._tmp.cleanup()

    def test_diagnose_reports_corrupted_files(self):
        result = self.diagnostics.diagnose(self.root)

        self.assertEqual(result.total_images, 4)
        self.assertEqual(len(result.valid_images), 2)
        self.assertEqual(
            [(item.chapter, item.file_name, item.reason.split(' (')[0]) for item in result.corrupted_images],
            [("chapter-2", "page-1.jpg", "empty file"), ("chapter-2", "page-2.jpg", "invalid file header")]
        )
        self.assertEqual(result.corrupted_size, 280)
        self.assertAlmostEqual(result.success_rate, 50.0)
        self.assertEqual(result.quarantined, [])
        self.assertTrue((self.root / "chapter-2" / "page-1.jpg").exists())

        report = result.report_path.read_text(encoding='utf-8')
        self.assertEqual(result.report_path, self.root / "image-diagnosis-report.txt")
        self.assertIn("- Corrupted images: 2", report)
        self.assertIn("empty file (0 bytes)", report)

    def test_quarantine_moves_corrupted_files(self):
        result = self.diagnostics.diagnose(self.root, quarantine=True)

        quarantine = self.root / "_corrupted_images"
        self.assertEqual(
            sorted(p.name for p in quarantine.iterdir()),
            ["chapter-2_page-1.jpg", "chapter-2_page-2.jpg"]
        )
        self.assertEqual(len(result.quarantined), 2)
        self.assertEqual(list((self.root / "chapter-2").iterdir()), [])

        # 隔离目录不会被当成章节再次扫描
        second = self.diagnostics.diagnose(self.root, quarantine=True)
        self.assertEqual(second.total_images, 2)
        self.assertEqual(second.corrupted_images, [])

    def test_no_chapters(self):
        with tempfile.TemporaryDirectory() as empty:
            with self.assertRaises(NoChaptersError):
                self.diagnostics.diagnose(Path(empty))

if __name__ == "__main__":
    unittest.main()
