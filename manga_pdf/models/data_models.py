"""数据模型定义"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

@dataclass(frozen=True)
class ValidationResult:
    """图片校验结果"""
    valid: bool
    size: int
    reason: Optional[str] = None

# ---- 修复结果 ----
# 三级修复链的每一种结局都对应一个类型，
# 统一暴露 success / fixed_path / reason / error 四个属性

@dataclass(frozen=True)
class Passthrough:
    """无需修复"""
    success: bool = field(default=True, init=False)
    fixed_path: Optional[Path] = field(default=None, init=False)
    reason: Optional[str] = field(default=None, init=False)
    error: Optional[str] = field(default=None, init=False)

@dataclass(frozen=True)
class Repaired:
    """已重新编码为可用图片"""
    fixed_path: Path
    reason: str
    tier: str = "normalize"
    original_format: Optional[str] = None
    original_size: Optional[str] = None
    success: bool = field(default=True, init=False)
    error: Optional[str] = field(default=None, init=False)

@dataclass(frozen=True)
class Placeholder:
    """用灰色占位图代替损坏的图片"""
    fixed_path: Path
    reason: str
    original_size: Optional[str] = None
    original_format: Optional[str] = field(default="corrupted", init=False)
    success: bool = field(default=True, init=False)
    error: Optional[str] = field(default=None, init=False)

@dataclass(frozen=True)
class Fatal:
    """所有修复手段均失败"""
    reasons: Tuple[str, ...]
    success: bool = field(default=False, init=False)
    fixed_path: Optional[Path] = field(default=None, init=False)
    reason: Optional[str] = field(default=None, init=False)

    @property
    def error(self) -> str:
        return " | ".join(self.reasons)

RepairOutcome = Union[Passthrough, Repaired, Placeholder, Fatal]

# ---- 处理记录 ----

OUTCOME_NONE = "none"
OUTCOME_REPAIRED = "repaired"
OUTCOME_PLACEHOLDER = "placeholder"
OUTCOME_FAILED = "failed"

@dataclass(frozen=True)
class ImageRecord:
    """单张图片的处理记录"""
    path: Path
    chapter: str
    size: int
    valid: bool
    outcome: str = OUTCOME_NONE
    reason: Optional[str] = None
    error: Optional[str] = None
    original_format: Optional[str] = None
    original_size: Optional[str] = None

    @property
    def file_name(self) -> str:
        return self.path.name

@dataclass
class RunStatistics:
    """一次运行的统计信息"""
    total: int = 0
    succeeded: int = 0
    repaired: int = 0
    skipped: int = 0
    fixed_records: List[ImageRecord] = field(default_factory=list)
    corrupted_records: List[ImageRecord] = field(default_factory=list)
    error_records: List[ImageRecord] = field(default_factory=list)

    def record_success(self) -> None:
        self.succeeded += 1

    def record_fixed(self, record: ImageRecord) -> None:
        self.succeeded += 1
        self.repaired += 1
        self.fixed_records.append(record)

    def record_invalid(self, record: ImageRecord) -> None:
        self.skipped += 1
        self.corrupted_records.append(record)

    def record_error(self, record: ImageRecord) -> None:
        self.skipped += 1
        self.error_records.append(record)

    @property
    def success_rate(self) -> float:
        """成功率（百分比），没有图片时为0"""
        if self.total == 0:
            return 0.0
        return self.succeeded / self.total * 100

    def check_invariants(self) -> bool:
        """检查统计结果是否自洽"""
        return (
            self.succeeded + self.skipped == self.total
            and self.repaired <= self.succeeded
            and self.repaired == len(self.fixed_records)
            and self.skipped == len(self.corrupted_records) + len(self.error_records)
        )

# ---- 输入结构 ----

@dataclass(frozen=True)
class Chapter:
    """章节目录及其中按顺序排列的图片"""
    name: str
    path: Path
    images: Tuple[Path, ...]

@dataclass(frozen=True)
class ChapterSet:
    """一部漫画的全部章节"""
    root: Path
    chapters: Tuple[Chapter, ...]

    @property
    def total_images(self) -> int:
        return sum(len(chapter.images) for chapter in self.chapters)

# ---- 输出结果 ----

@dataclass
class AssemblyResult:
    """文档组装结果"""
    output_path: Path
    stats: RunStatistics
    page_count: int
    report_path: Optional[Path] = None

@dataclass
class DiagnosedImage:
    """诊断中的单张图片"""
    path: Path
    chapter: str
    size: int
    reason: Optional[str] = None

    @property
    def file_name(self) -> str:
        return self.path.name

@dataclass
class DiagnosisResult:
    """图片诊断结果"""
    valid_images: List[DiagnosedImage] = field(default_factory=list)
    corrupted_images: List[DiagnosedImage] = field(default_factory=list)
    quarantined: List[Path] = field(default_factory=list)
    total_size: int = 0
    corrupted_size: int = 0
    report_path: Optional[Path] = None

    @property
    def total_images(self) -> int:
        return len(self.valid_images) + len(self.corrupted_images)

    @property
    def success_rate(self) -> float:
        if self.total_images == 0:
            return 0.0
        return len(self.valid_images) / self.total_images * 100
