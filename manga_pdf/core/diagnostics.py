"""图片诊断模块

扫描整部漫画的所有图片，只做文件头级别的校验，可选择把损坏的文件
移动到隔离目录，方便重新下载。
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..config.config import AppConfig, ConfigManager
from ..exceptions.custom_exceptions import FileOperationError, NoChaptersError
from ..models.data_models import DiagnosedImage, DiagnosisResult
from ..utils.file import FileManager
from ..utils.logging import logger
from .validator import ImageValidator

class ImageDiagnostics:
    """图片诊断器"""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        validator: Optional[ImageValidator] = None
    ):
        self.config = config or ConfigManager().config
        self.validator = validator or ImageValidator(self.config.validation)
        self.file_manager = FileManager()

    def diagnose(self, root: Path, quarantine: bool = False) -> DiagnosisResult:
        """诊断漫画目录中的所有图片

        Args:
            root: 漫画根目录
            quarantine: 是否把损坏的文件移动到隔离目录

        Returns:
            诊断结果
        """
        root = Path(root)
        if not root.is_dir():
            raise NoChaptersError(f"漫画目录不存在: {root}")

        # 以下划线开头的目录（包括隔离目录）不算章节
        chapter_dirs = self.file_manager.list_chapters(root, skip_prefix='_')
        if not chapter_dirs:
            raise NoChaptersError(f"没有在 {root} 中找到章节目录")

        quarantine_path = root / self.config.diagnostics.quarantine_dir
        if quarantine:
            self.file_manager.ensure_dir(quarantine_path)

        result = DiagnosisResult()
        logger.info(f"开始诊断 {root}: {len(chapter_dirs)} 个章节")

        for chapter_dir in chapter_dirs:
            # 诊断时不排除中间文件，残留的 .fixed/.recovered 文件也要报告
            images = self.file_manager.list_images(
                chapter_dir, self.config.assembly.image_extensions
            )
            for image_path in images:
                validation = self.validator.validate(image_path)
                item = DiagnosedImage(
                    path=image_path,
                    chapter=chapter_dir.name,
                    size=validation.size,
                    reason=validation.reason
                )
                if validation.valid:
                    result.valid_images.append(item)
                    result.total_size += validation.size
                    continue

                result.corrupted_images.append(item)
                result.corrupted_size += validation.size
                logger.warning(f"{chapter_dir.name}/{image_path.name} - {validation.reason}")

                if quarantine:
                    target = quarantine_path / f"{chapter_dir.name}_{image_path.name}"
                    try:
                        self.file_manager.move_file(image_path, target)
                        result.quarantined.append(target)
                    except FileOperationError as e:
                        logger.warning(f"移动到隔离目录失败 {image_path}: {str(e)}")

        result.report_path = root / self.config.diagnostics.report_name
        self.file_manager.write_text(result.report_path, render_diagnosis_report(result, root))
        logger.info(f"诊断完成: {len(result.valid_images)} 张有效, {len(result.corrupted_images)} 张损坏")
        return result

def render_diagnosis_report(
    result: DiagnosisResult,
    root: Path,
    generated_at: Optional[datetime] = None
) -> str:
    """生成诊断报告文本"""
    generated_at = generated_at or datetime.now(timezone.utc)
    corrupted = "\n".join(
        f"{item.path} - {item.reason} ({item.size} bytes)" for item in result.corrupted_images
    )
    valid = "\n".join(
        f"{item.path} ({item.size / 1024:.1f} KB)" for item in result.valid_images
    )
    return f"""Image Diagnosis Report
Generated: {generated_at.isoformat()}
Scanned: {root}

SUMMARY:
- Total images: {result.total_images}
- Valid images: {len(result.valid_images)}
- Corrupted images: {len(result.corrupted_images)}
- Success rate: {result.success_rate:.1f}%
- Total size: {result.total_size / (1024 * 1024):.1f} MB
- Corrupted size: {result.corrupted_size / 1024:.1f} KB

CORRUPTED FILES:
{corrupted}

VALID FILES:
{valid}
"""
