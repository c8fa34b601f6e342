"""处理报告模块"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from ..exceptions.custom_exceptions import FileOperationError, ReportError
from ..models.data_models import ImageRecord, RunStatistics
from ..utils.file import FileManager

ENHANCEMENTS = (
    "Progressive JPEG auto-conversion to baseline JPEG",
    "WebP images automatically converted to JPEG",
    "Oversized images resized for memory efficiency",
    "Very tall images height-limited to prevent display issues",
    "Intelligent retry mechanism for problematic images",
    "Automatic cleanup of temporary fixed files",
)

RECOMMENDATIONS = (
    "Re-download chapters with remaining errors if possible",
    "Check source quality for persistently problematic images",
    "Consider manual re-encoding of any remaining problematic files",
)

def _fixed_line(record: ImageRecord) -> str:
    details = ", ".join(v for v in (record.original_format, record.original_size) if v)
    line = f"{record.path} -> {record.reason}"
    return f"{line} ({details})" if details else line

def _lines(items: Iterable[str]) -> str:
    return "\n".join(items)

def render_report(
    stats: RunStatistics,
    output_path: Path,
    generated_at: Optional[datetime] = None
) -> str:
    """生成报告文本"""
    generated_at = generated_at or datetime.now(timezone.utc)
    return f"""Enhanced Manga PDF Generation Report
Generated: {generated_at.isoformat()}
Output: {output_path}

SUMMARY:
- Total images found: {stats.total}
- Successfully processed: {stats.succeeded}
- Auto-fixed on retry: {stats.repaired}
- Skipped/Errors: {stats.skipped}
- Success rate: {stats.success_rate:.1f}%

AUTO-FIXED IMAGES:
{_lines(_fixed_line(r) for r in stats.fixed_records)}

CORRUPTED/INVALID FILES:
{_lines(f"{r.path} - {r.reason}" for r in stats.corrupted_records)}

REMAINING ERRORS:
{_lines(f"{r.path} - {r.error}" for r in stats.error_records)}

ENHANCEMENTS APPLIED:
{_lines(f"- {item}" for item in ENHANCEMENTS)}

RECOMMENDATIONS:
{_lines(f"- {item}" for item in RECOMMENDATIONS)}
"""

def write_report(stats: RunStatistics, output_path: Path, report_path: Path) -> Path:
    """写入报告文件"""
    try:
        FileManager.write_text(report_path, render_report(stats, output_path))
    except FileOperationError as e:
        raise ReportError(f"写入报告失败: {str(e)}")
    return report_path

def format_summary(stats: RunStatistics) -> str:
    """控制台输出用的汇总信息"""
    lines = [
        "处理汇总:",
        f"- 图片总数: {stats.total}",
        f"- 成功添加: {stats.succeeded}",
        f"- 自动修复: {stats.repaired}",
        f"- 跳过/错误: {stats.skipped}",
        f"- 成功率: {stats.success_rate:.1f}%",
    ]

    if stats.fixed_records:
        lines.append(f"\n自动修复的图片 ({len(stats.fixed_records)}):")
        lines.extend(
            f"- {r.chapter}/{r.file_name} - {r.reason}" for r in stats.fixed_records
        )

    if stats.corrupted_records:
        lines.append(f"\n损坏/无效的文件 ({len(stats.corrupted_records)}):")
        lines.extend(
            f"- {r.chapter}/{r.file_name} - {r.reason}" for r in stats.corrupted_records
        )

    if stats.error_records:
        lines.append(f"\n仍然失败的图片 ({len(stats.error_records)}):")
        lines.extend(
            f"- {r.chapter}/{r.file_name} - {r.error}" for r in stats.error_records
        )

    return "\n".join(lines)
