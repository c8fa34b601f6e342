"""文件处理工具模块"""

import re
import shutil
from pathlib import Path
from typing import Iterable, List, Optional

from ..exceptions.custom_exceptions import FileOperationError
from .logging import logger

_DIGITS = re.compile(r'\d+')

class FileManager:
    """文件管理工具类"""

    @staticmethod
    def numeric_sort_key(name: str) -> int:
        """取名称中第一段数字作为排序键，没有数字时为0

        sorted() 是稳定排序，数字相同的条目保持目录枚举顺序。
        """
        match = _DIGITS.search(name)
        return int(match.group()) if match else 0

    @classmethod
    def list_chapters(
        cls,
        root: Path,
        exclude: Iterable[str] = (),
        skip_prefix: Optional[str] = None
    ) -> List[Path]:
        """列出章节目录，按名称中的数字排序"""
        excluded = set(exclude)
        try:
            chapters = [
                entry for entry in root.iterdir()
                if entry.is_dir()
                and entry.name not in excluded
                and not (skip_prefix and entry.name.startswith(skip_prefix))
            ]
        except OSError as e:
            raise FileOperationError(f"读取目录失败 {root}: {str(e)}")
        return sorted(chapters, key=lambda p: cls.numeric_sort_key(p.name))

    @classmethod
    def list_images(
        cls,
        chapter_dir: Path,
        extensions: Iterable[str],
        exclude_markers: Iterable[str] = ()
    ) -> List[Path]:
        """列出章节中的图片文件，排除之前生成的中间文件"""
        allowed = {f".{ext.lower().lstrip('.')}" for ext in extensions}
        markers = tuple(exclude_markers)
        try:
            images = [
                entry for entry in chapter_dir.iterdir()
                if entry.is_file()
                and entry.suffix.lower() in allowed
                and not any(marker in entry.name for marker in markers)
            ]
        except OSError as e:
            raise FileOperationError(f"读取目录失败 {chapter_dir}: {str(e)}")
        return sorted(images, key=lambda p: cls.numeric_sort_key(p.name))

    @staticmethod
    def read_header(file_path: Path, length: int) -> bytes:
        """读取文件开头的若干字节"""
        with open(file_path, 'rb') as f:
            return f.read(length)

    @staticmethod
    def get_file_size(file_path: Path) -> int:
        """获取文件大小（字节）"""
        try:
            return file_path.stat().st_size
        except OSError as e:
            raise FileOperationError(f"获取文件大小失败: {str(e)}")

    @staticmethod
    def ensure_dir(dir_path: Path) -> None:
        """确保目录存在"""
        try:
            dir_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileOperationError(f"创建目录失败: {str(e)}")

    @staticmethod
    def move_file(src: Path, dst: Path) -> None:
        """移动文件"""
        try:
            if dst.exists():
                dst.unlink()
            shutil.move(str(src), str(dst))
        except OSError as e:
            raise FileOperationError(f"移动文件失败: {str(e)}")

    @staticmethod
    def remove_file(file_path: Optional[Path]) -> None:
        """删除临时文件，失败只记录日志"""
        if file_path is None:
            return
        try:
            file_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"删除临时文件失败 {file_path}: {str(e)}")

    @staticmethod
    def write_text(file_path: Path, content: str) -> None:
        """写入文本文件"""
        try:
            file_path.write_text(content, encoding='utf-8')
        except OSError as e:
            raise FileOperationError(f"写入文件失败: {str(e)}")
