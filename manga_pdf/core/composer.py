"""PDF页面合成模块

采用固定宽度、超高页面的方式放置图片：页面宽度固定，图片按宽度缩放、
高度随原始比例变化，保证图片内容不会被裁切。页面比图片更高时底部留白。
"""

from pathlib import Path
from typing import Optional
import fitz
from PIL import Image

from ..config.config import ConfigManager, PDFConfig
from ..exceptions.custom_exceptions import PageComposeError

RED = (1, 0, 0)
BLACK = (0, 0, 0)
MAX_ERROR_TEXT = 180
# 内置简体中文字体，错误信息里可能带有中文
TEXT_FONT = "china-s"

class PageComposer:
    """PDF页面合成器"""

    def __init__(self, config: Optional[PDFConfig] = None):
        self.config = config or ConfigManager().config.pdf

    @staticmethod
    def new_document() -> fitz.Document:
        """创建空白PDF文档"""
        return fitz.open()

    @staticmethod
    def read_dimensions(image_path: Path) -> tuple:
        """读取图片尺寸（只解析文件头）"""
        with Image.open(image_path) as image:
            return image.size

    def append_page(
        self,
        doc: fitz.Document,
        image_path: Path,
        width_hint: Optional[int] = None
    ) -> int:
        """追加一个图片页面

        Args:
            doc: PDF文档
            image_path: 图片路径
            width_hint: 页面宽度，默认使用配置中的宽度

        Returns:
            新页面的页码（从0开始）

        Raises:
            PageComposeError: 图片无法放置时抛出，此时不会留下半成品页面
        """
        page_width = width_hint or self.config.page_width
        try:
            img_width, img_height = self.read_dimensions(image_path)
            if img_width <= 0 or img_height <= 0:
                raise ValueError(f"无效的图片尺寸 {img_width}x{img_height}")
        except Exception as e:
            raise PageComposeError(f"读取图片失败 {image_path.name}: {str(e)}")

        scaled_height = page_width * img_height / img_width
        # 图片缩放后比默认页面还高时，增加页面高度而不是裁切
        page_height = max(self.config.page_height, scaled_height)

        page = doc.new_page(width=page_width, height=page_height)
        try:
            page.insert_image(
                fitz.Rect(0, 0, page_width, scaled_height),
                filename=str(image_path),
                keep_proportion=True
            )
        except Exception as e:
            doc.delete_page(page.number)
            raise PageComposeError(f"放置图片失败 {image_path.name}: {str(e)}")

        return doc.page_count - 1

    def append_error_page(
        self,
        doc: fitz.Document,
        file_name: str,
        chapter: str,
        error: str
    ) -> int:
        """追加一个错误占位页面，写明文件名、章节和错误信息

        Raises:
            PageComposeError: 文字无法写入时抛出，此时不会留下半成品页面
        """
        width = self.config.page_width
        page = doc.new_page(width=width, height=self.config.error_page_height)

        if len(error) > MAX_ERROR_TEXT:
            error = error[:MAX_ERROR_TEXT - 3] + "..."

        try:
            self._write_text(page, 100, 40, "CORRUPTED IMAGE", 16, RED)
            self._write_text(page, 150, 30, f"File: {file_name}", 12, BLACK)
            self._write_text(page, 185, 30, f"Chapter: {chapter}", 12, BLACK)
            self._write_text(page, 220, 80, f"Error: {error}", 12, BLACK)
            self._write_text(page, 305, 30, "This image could not be processed due to severe corruption.", 12, BLACK)
            self._write_text(page, 340, 30, "Consider re-downloading this chapter or replacing this file.", 12, BLACK)
        except PageComposeError:
            doc.delete_page(page.number)
            raise

        return doc.page_count - 1

    def append_notice_page(self, doc: fitz.Document, message: str) -> int:
        """追加一个只有说明文字的页面"""
        width = self.config.page_width
        page = doc.new_page(width=width, height=self.config.error_page_height)
        try:
            self._write_text(page, 100, 100, message, 14, RED)
        except PageComposeError:
            doc.delete_page(page.number)
            raise
        return doc.page_count - 1

    def _write_text(
        self,
        page: fitz.Page,
        top: float,
        height: float,
        text: str,
        fontsize: float,
        color
    ) -> None:
        """在页面上写一行居中文字"""
        margin = self.config.error_page_margin
        rect = fitz.Rect(margin, top, page.rect.width - margin, top + height)
        # 放不下时 insert_textbox 什么都不写，只返回负数
        remaining = page.insert_textbox(
            rect,
            text,
            fontsize=fontsize,
            fontname=TEXT_FONT,
            color=color,
            align=fitz.TEXT_ALIGN_CENTER
        )
        if remaining < 0:
            raise PageComposeError(f"文字超出区域 ({remaining:.1f}): {text[:40]}")

    def save(self, doc: fitz.Document, output_path: Path) -> int:
        """保存并关闭文档，返回页数"""
        try:
            page_count = doc.page_count
            doc.save(str(output_path), garbage=3, deflate=True)
            return page_count
        except Exception as e:
            raise PageComposeError(f"保存PDF失败 {output_path}: {str(e)}")
        finally:
            doc.close()
