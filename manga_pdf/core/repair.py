"""图片修复模块

修复按三级顺序进行，上一级抛出异常才进入下一级：
1. 规范化：只读元数据，命中问题特征时重新编码为 baseline JPEG
2. 紧急恢复：放宽解码限制，强制缩放到固定画布内
3. 占位图：生成灰色占位图，不依赖原文件
"""

from pathlib import Path
from typing import Optional
from PIL import Image

from ..config.config import ConfigManager, RepairConfig
from ..models.data_models import (
    Fatal,
    Passthrough,
    Placeholder,
    RepairOutcome,
    Repaired
)
from ..utils.file import FileManager
from ..utils.image import ImageProcessor
from ..utils.logging import logger

FIXED_SUFFIX = ".fixed.jpg"
RECOVERED_SUFFIX = ".recovered.jpg"

TIER_NORMALIZE = "normalize"
TIER_EMERGENCY = "emergency"

REASON_PROGRESSIVE = "progressive JPEG"
REASON_VERY_TALL = "very tall image"
REASON_VERY_LARGE = "very large image"
REASON_EMERGENCY = "emergency recovery"
REASON_PLACEHOLDER = "placeholder for corrupted image"

# 报告中使用的格式名称
FORMAT_LABELS = {"WEBP": "WebP"}

class ImageRepairEngine:
    """图片修复引擎"""

    def __init__(self, config: Optional[RepairConfig] = None):
        """初始化修复引擎"""
        self.config = config or ConfigManager().config.repair
        self.image_processor = ImageProcessor()
        self.file_manager = FileManager()

    def repair(self, path: Path) -> RepairOutcome:
        """依次尝试三级修复

        Args:
            path: 原始图片路径

        Returns:
            修复结果；只有占位图也生成失败时才返回 Fatal，本方法不抛出异常
        """
        try:
            return self.normalize(path)
        except Exception as normalize_error:
            logger.warning(f"规范化失败 {path.name}: {str(normalize_error)}，尝试紧急恢复")
            try:
                return self.emergency_recover(path)
            except Exception as emergency_error:
                logger.warning(f"紧急恢复失败 {path.name}: {str(emergency_error)}，生成占位图")
                try:
                    return self.create_placeholder(path)
                except Exception as placeholder_error:
                    logger.error(f"占位图生成失败 {path.name}: {str(placeholder_error)}")
                    return Fatal(reasons=(
                        f"normalize failed: {normalize_error}",
                        f"emergency recovery failed: {emergency_error}",
                        f"placeholder failed: {placeholder_error}",
                    ))

    def detect_problem(self, image: Image.Image) -> Optional[str]:
        """根据元数据判断图片是否需要重新编码，返回命中的原因"""
        width, height = image.size
        if image.format == 'JPEG' and self.image_processor.is_progressive(image):
            return REASON_PROGRESSIVE
        if image.format and image.format.upper() in {f.upper() for f in self.config.alternate_formats}:
            fmt = image.format.upper()
            return f"{FORMAT_LABELS.get(fmt, fmt)} format"
        if height > self.config.tall_threshold:
            return REASON_VERY_TALL
        if width * height > self.config.pixel_threshold:
            return REASON_VERY_LARGE
        return None

    def normalize(self, path: Path) -> RepairOutcome:
        """第一级：按需重新编码为 baseline JPEG，高度限制在 max_height 以内"""
        with Image.open(path) as image:
            reason = self.detect_problem(image)
            if reason is None:
                return Passthrough()

            width, height = image.size
            original_format = image.format
            target_size = self.image_processor.fit_inside(
                width, height, width, min(height, self.config.max_height)
            )

            output_path = path.with_name(path.name + FIXED_SUFFIX)
            try:
                rgb = self.image_processor.convert_to_rgb(image)
                resized = self.image_processor.resize_image(rgb, target_size)
                self.image_processor.save_jpeg(resized, output_path, self.config.quality)
            except Exception:
                self.file_manager.remove_file(output_path)
                raise

        logger.info(f"已修复 {path.name}: {reason} ({width}x{height} -> {target_size[0]}x{target_size[1]})")
        return Repaired(
            fixed_path=output_path,
            reason=reason,
            tier=TIER_NORMALIZE,
            original_format=original_format.lower() if original_format else None,
            original_size=f"{width}x{height}"
        )

    def emergency_recover(self, path: Path) -> RepairOutcome:
        """第二级：容错解码，强制输出 baseline JPEG 并缩放到固定画布内"""
        output_path = path.with_name(path.name + RECOVERED_SUFFIX)
        with self.image_processor.tolerant_decoding():
            try:
                with Image.open(path) as image:
                    image.load()
                    width, height = image.size
                    original_format = image.format
                    target_size = self.image_processor.fit_inside(
                        width,
                        height,
                        self.config.emergency_max_width,
                        self.config.emergency_max_height
                    )
                    rgb = self.image_processor.convert_to_rgb(image)
                    # 最近邻缩放，避免在损坏数据上引入新的插值伪影
                    resized = self.image_processor.resize_image(
                        rgb, target_size, Image.Resampling.NEAREST
                    )
                    self.image_processor.save_jpeg(
                        resized, output_path, self.config.emergency_quality
                    )
            except Exception:
                self.file_manager.remove_file(output_path)
                raise

        logger.info(f"紧急恢复成功 {path.name}")
        return Repaired(
            fixed_path=output_path,
            reason=REASON_EMERGENCY,
            tier=TIER_EMERGENCY,
            original_format=f"{original_format.lower() if original_format else 'unknown'} (corrupted)",
            original_size=f"{width}x{height}"
        )

    def create_placeholder(self, path: Path) -> RepairOutcome:
        """第三级：生成固定尺寸的灰色占位图"""
        output_path = path.with_name(path.name + RECOVERED_SUFFIX)
        try:
            placeholder = self.image_processor.create_placeholder(
                (self.config.placeholder_width, self.config.placeholder_height),
                self.config.placeholder_color
            )
            self.image_processor.save_jpeg(
                placeholder, output_path, self.config.placeholder_quality
            )
        except Exception:
            self.file_manager.remove_file(output_path)
            raise

        try:
            original_size = f"{path.stat().st_size} bytes (corrupted)"
        except OSError:
            original_size = None

        logger.warning(f"已为损坏图片生成占位图: {path.name}")
        return Placeholder(
            fixed_path=output_path,
            reason=REASON_PLACEHOLDER,
            original_size=original_size
        )

    def cleanup(self, outcome: Optional[RepairOutcome]) -> None:
        """删除修复过程中生成的临时文件"""
        if outcome is not None:
            self.file_manager.remove_file(outcome.fixed_path)
