import tempfile
import unittest
from pathlib import Path

import fitz

from image_factory import make_garbage_jpeg, make_image

from manga_pdf.config.config import PDFConfig
from manga_pdf.core.composer import PageComposer
from manga_pdf.exceptions.custom_exceptions import PageComposeError

class TestPageComposer(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.composer = PageComposer(PDFConfig())
        self.doc = self.composer.new_document()

    def tearDown(self):
        if not self.doc.is_closed:
            self.doc.close()
        self._tmp.cleanup()

    def test_image_scaled_to_page_width(self):
        path = make_image(self.tmp / "page-1.jpg", (400, 800))
        page_number = self.composer.append_page(self.doc, path)

        self.assertEqual(page_number, 0)
        page = self.doc[0]
        self.assertEqual((page.rect.width, page.rect.height), (800, 15000))
        images = page.get_image_info()
        self.assertEqual(len(images), 1)
        x0, y0, x1, y1 = images[0]['bbox']
        self.assertAlmostEqual(x0, 0, places=1)
        self.assertAlmostEqual(y0, 0, places=1)
        self.assertAlmostEqual(x1, 800, places=1)
        self.assertAlmostEqual(y1, 1600, places=1)

    def test_width_hint(self):
        path = make_image(self.tmp / "page-1.png", (200, 100), 'PNG')
        self.composer.append_page(self.doc, path, width_hint=600)
        page = self.doc[0]
        self.assertEqual(page.rect.width, 600)
        x0, y0, x1, y1 = page.get_image_info()[0]['bbox']
        self.assertAlmostEqual(y1, 300, places=1)

    def test_extremely_tall_image_is_not_cropped(self):
        path = make_image(self.tmp / "strip.png", (100, 2000), 'PNG')
        self.composer.append_page(self.doc, path)
        page = self.doc[0]
        self.assertAlmostEqual(page.rect.height, 16000, places=1)
        x0, y0, x1, y1 = page.get_image_info()[0]['bbox']
        self.assertAlmostEqual(y1, 16000, places=1)

    def test_failure_leaves_no_page(self):
        make_image(self.tmp / "ok.jpg")
        self.composer.append_page(self.doc, self.tmp / "ok.jpg")

        bad = make_garbage_jpeg(self.tmp / "bad.jpg")
        with self.assertRaises(PageComposeError):
            self.composer.append_page(self.doc, bad)
        with self.assertRaises(PageComposeError):
            self.composer.append_page(self.doc, self.tmp / "missing.jpg")

        self.assertEqual(self.doc.page_count, 1)

    def test_error_page(self):
        page_number = self.composer.append_error_page(
            self.doc, "page-3.jpg", "chapter-2", "post-fix error: broken data"
        )
        self.assertEqual(page_number, 0)
        page = self.doc[0]
        self.assertEqual((page.rect.width, page.rect.height), (800, 800))
        text = page.get_text()
        self.assertIn("CORRUPTED IMAGE", text)
        self.assertIn("page-3.jpg", text)
        self.assertIn("chapter-2", text)
        self.assertIn("broken data", text)

    def test_error_page_keeps_chinese_error_text(self):
        error = "post-fix error: 放置图片失败 page-1.jpg.fixed.jpg: code=2"
        self.composer.append_error_page(self.doc, "page-1.jpg", "第1话", error)

        text = self.doc[0].get_text()
        self.assertIn("CORRUPTED IMAGE", text)
        self.assertIn("放置图片失败", text)
        self.assertIn("第1话", text)
        self.assertNotIn("?", text)

    def test_error_page_with_longest_error_fits(self):
        self.composer.append_error_page(self.doc, "page-1.jpg", "chapter-1", "x" * 500)

        text = self.doc[0].get_text()
        self.assertIn("CORRUPTED IMAGE", text)
        self.assertIn("...", text)

    def test_error_page_removed_when_text_does_not_fit(self):
        composer = PageComposer(PDFConfig(page_width=100))
        with self.assertRaises(PageComposeError):
            composer.append_error_page(self.doc, "page-1.jpg", "chapter-1", "broken data")
        self.assertEqual(self.doc.page_count, 0)

    def test_save_closes_document(self):
        path = make_image(self.tmp / "page-1.jpg")
        self.composer.append_page(self.doc, path)
        self.composer.append_error_page(self.doc, "page-2.jpg", "chapter-1", "too small")
        output = self.tmp / "out.pdf"

        page_count = self.composer.save(self.doc, output)

        self.assertEqual(page_count, 2)
        self.assertTrue(self.doc.is_closed)
        with fitz.open(str(output)) as saved:
            self.assertEqual(saved.page_count, 2)

if __name__ == "__main__":
    unittest.main()
