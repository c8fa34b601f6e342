"""图片处理工具"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Tuple
from PIL import Image, ImageFile

from ..exceptions.custom_exceptions import FileOperationError

class ImageProcessor:
    """图片处理器"""

    @staticmethod
    def fit_inside(
        width: int,
        height: int,
        max_width: int,
        max_height: int
    ) -> Tuple[int, int]:
        """计算在限定框内保持比例的尺寸，不放大

        Args:
            width: 原始宽度
            height: 原始高度
            max_width: 最大宽度
            max_height: 最大高度

        Returns:
            新的宽度和高度
        """
        scale = min(max_width / width, max_height / height, 1.0)
        if scale >= 1.0:
            return width, height
        return max(1, round(width * scale)), max(1, round(height * scale))

    @staticmethod
    def convert_to_rgb(image: Image.Image, background_color: str = 'white') -> Image.Image:
        """将图片转换为RGB模式

        Args:
            image: PIL图片对象
            background_color: 背景颜色

        Returns:
            RGB模式的图片对象
        """
        try:
            if image.mode == 'P' and 'transparency' in image.info:
                image = image.convert('RGBA')
            if image.mode in ('RGBA', 'LA'):
                background = Image.new('RGB', image.size, background_color)
                background.paste(image, mask=image.getchannel('A'))
                return background
            if image.mode == 'RGB':
                return image
            return image.convert('RGB')
        except Exception as e:
            raise FileOperationError(f"图片转换失败: {str(e)}")

    @staticmethod
    def resize_image(
        image: Image.Image,
        target_size: Tuple[int, int],
        resample: int = Image.Resampling.LANCZOS
    ) -> Image.Image:
        """调整图片大小，尺寸不变时直接返回"""
        if image.size == tuple(target_size):
            return image
        return image.resize(target_size, resample)

    @staticmethod
    def save_jpeg(image: Image.Image, output_path: Path, quality: int) -> None:
        """保存为非渐进式（baseline）JPEG

        Args:
            image: RGB模式的图片
            output_path: 输出路径
            quality: JPEG质量
        """
        image.save(output_path, format='JPEG', quality=quality, progressive=False)

    @staticmethod
    def create_placeholder(
        size: Tuple[int, int],
        color: Tuple[int, int, int]
    ) -> Image.Image:
        """生成纯色占位图"""
        return Image.new('RGB', size, tuple(color))

    @staticmethod
    def is_progressive(image: Image.Image) -> bool:
        """判断JPEG是否为渐进式编码"""
        return bool(image.info.get('progressive') or image.info.get('progression'))

    @staticmethod
    @contextmanager
    def tolerant_decoding() -> Iterator[None]:
        """临时放宽Pillow的解码限制（截断数据、像素上限），退出时恢复"""
        truncated = ImageFile.LOAD_TRUNCATED_IMAGES
        max_pixels = Image.MAX_IMAGE_PIXELS
        ImageFile.LOAD_TRUNCATED_IMAGES = True
        Image.MAX_IMAGE_PIXELS = None
        try:
            yield
        finally:
            ImageFile.LOAD_TRUNCATED_IMAGES = truncated
            Image.MAX_IMAGE_PIXELS = max_pixels
