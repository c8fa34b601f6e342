"""图片校验模块

只检查文件大小和文件头，不解码像素数据。文件头正确但内容损坏的图片
在这里不会被发现，要到合成页面时才会失败，再交给修复模块处理。
"""

from pathlib import Path
from typing import Optional

from ..config.config import ConfigManager, ValidationConfig
from ..models.data_models import ValidationResult
from ..utils.file import FileManager

JPEG_SIGNATURE = b'\xff\xd8\xff'
PNG_SIGNATURE = b'\x89PNG'
GIF_SIGNATURE = b'GIF'
WEBP_MARKER = b'WEBP'

EMPTY_FILE = "empty file"
TOO_SMALL = "too small"

def has_image_signature(header: bytes) -> bool:
    """文件头是否属于已知图片格式"""
    return (
        header.startswith(JPEG_SIGNATURE)
        or header.startswith(PNG_SIGNATURE)
        or header.startswith(GIF_SIGNATURE)
        or WEBP_MARKER in header
    )

class ImageValidator:
    """图片校验器"""

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ConfigManager().config.validation
        self.file_manager = FileManager()

    def validate(self, path: Path) -> ValidationResult:
        """校验图片文件

        Args:
            path: 图片路径

        Returns:
            校验结果，文件系统错误也作为校验失败返回
        """
        try:
            size = path.stat().st_size
            if size == 0:
                return ValidationResult(valid=False, size=0, reason=EMPTY_FILE)
            if size < self.config.min_size:
                return ValidationResult(valid=False, size=size, reason=TOO_SMALL)

            header = self.file_manager.read_header(path, self.config.header_window)
        except OSError as e:
            return ValidationResult(valid=False, size=0, reason=str(e))

        if not has_image_signature(header):
            return ValidationResult(
                valid=False,
                size=size,
                reason=f"invalid file header ({header[:6].hex()}...)"
            )

        return ValidationResult(valid=True, size=size)
