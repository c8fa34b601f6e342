"""主程序入口"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from manga_pdf.config.config import DEFAULT_CONFIG_PATH, ConfigManager
from manga_pdf.core.assembler import DocumentAssembler
from manga_pdf.core.diagnostics import ImageDiagnostics
from manga_pdf.core.report import format_summary
from manga_pdf.exceptions.custom_exceptions import MangaPdfError
from manga_pdf.utils.logging import Logger

def build_parser() -> argparse.ArgumentParser:
    """创建命令行解析器"""
    parser = argparse.ArgumentParser(
        prog="manga-pdf",
        description="把按章节下载的漫画图片合成为PDF"
    )
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="配置文件路径")
    parser.add_argument("--log-file", type=Path, help="日志文件路径")
    parser.add_argument("--no-progress", action="store_true", help="不显示进度条")
    parser.add_argument("--quiet", action="store_true", help="只输出警告和错误日志")

    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="把整部漫画合成为一个PDF")
    build.add_argument("root", type=Path, help="漫画根目录，每个子目录是一个章节")
    build.add_argument("-o", "--output", help="输出PDF文件名")

    chapter = subparsers.add_parser("chapter", help="只为单个章节生成PDF")
    chapter.add_argument("chapter_dir", type=Path, help="章节目录")
    chapter.add_argument("-o", "--output", help="输出PDF文件名")

    diagnose = subparsers.add_parser("diagnose", help="检查所有图片文件是否损坏")
    diagnose.add_argument("root", type=Path, help="漫画根目录")
    diagnose.add_argument("--quarantine", action="store_true", help="把损坏的文件移动到隔离目录")

    return parser

def init_app(
    config_path: Path,
    log_file: Optional[Path] = None,
    show_progress: bool = True,
    quiet: bool = False
) -> None:
    """初始化应用"""
    config_manager = ConfigManager()
    config_manager.init_config(config_path)
    config = config_manager.config
    if not show_progress:
        config.assembly.show_progress = False

    app_logger = Logger()
    app_logger.set_level(logging.WARNING if quiet else logging.INFO)
    log_path = log_file or config.log_file
    if log_path:
        app_logger.add_file_handler(log_path)

def run_build(root: Path, output: Optional[str]) -> int:
    """合成整部漫画"""
    print(f"\n{'='*20} 开始处理 {root.name} {'='*20}")
    result = DocumentAssembler().assemble(root, output)

    print(f"\n{'='*20} 处理完成 {'='*20}")
    print(f"输出文件: {result.output_path}")
    print(f"总页数: {result.page_count}")
    print()
    print(format_summary(result.stats))
    print(f"\n详细报告: {result.report_path}")
    return 0

def run_chapter(chapter_dir: Path, output: Optional[str]) -> int:
    """合成单个章节"""
    result = DocumentAssembler().assemble_chapter(chapter_dir, output)
    print(f"章节PDF已生成: {result.output_path} ({result.page_count} 页)")
    print(format_summary(result.stats))
    return 0

def run_diagnose(root: Path, quarantine: bool) -> int:
    """诊断图片"""
    result = ImageDiagnostics().diagnose(root, quarantine)

    print("\n诊断汇总:")
    print(f"- 图片总数: {result.total_images}")
    print(f"- 有效图片: {len(result.valid_images)}")
    print(f"- 损坏图片: {len(result.corrupted_images)}")
    print(f"- 成功率: {result.success_rate:.1f}%")
    print(f"- 总大小: {result.total_size / (1024 * 1024):.1f} MB")

    if result.corrupted_images:
        print("\n损坏的文件:")
        for item in result.corrupted_images:
            print(f"- {item.chapter}/{item.file_name} - {item.reason}")
        if not quarantine:
            print("\n提示: 加上 --quarantine 可以把损坏的文件移到隔离目录")
    if result.quarantined:
        print(f"\n已移动 {len(result.quarantined)} 个文件到隔离目录")

    print(f"\n详细报告: {result.report_path}")
    return 0

def main(argv: Optional[List[str]] = None) -> int:
    """主函数"""
    args = build_parser().parse_args(argv)

    try:
        init_app(
            args.config,
            args.log_file,
            show_progress=not args.no_progress,
            quiet=args.quiet
        )

        if args.command == "build":
            return run_build(args.root, args.output)
        if args.command == "chapter":
            return run_chapter(args.chapter_dir, args.output)
        return run_diagnose(args.root, args.quarantine)

    except MangaPdfError as e:
        print(f"错误: {str(e)}")
        return 1

if __name__ == "__main__":
    sys.exit(main())
