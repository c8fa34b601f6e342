"""文档组装模块"""

from pathlib import Path
from typing import Optional, Tuple
import fitz
from tqdm import tqdm

from ..config.config import AppConfig, ConfigManager
from ..exceptions.custom_exceptions import (
    NoChaptersError,
    NoImagesError,
    PageComposeError
)
from ..models.data_models import (
    OUTCOME_FAILED,
    OUTCOME_PLACEHOLDER,
    OUTCOME_REPAIRED,
    AssemblyResult,
    Chapter,
    ChapterSet,
    Fatal,
    ImageRecord,
    Passthrough,
    Placeholder,
    RepairOutcome,
    RunStatistics
)
from ..utils.file import FileManager
from ..utils.logging import logger
from .composer import PageComposer
from .repair import ImageRepairEngine
from .report import write_report
from .validator import ImageValidator

class DocumentAssembler:
    """把章节目录中的图片组装成一个PDF"""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        validator: Optional[ImageValidator] = None,
        repair_engine: Optional[ImageRepairEngine] = None,
        composer: Optional[PageComposer] = None
    ):
        """初始化组装器，未传入的组件按配置创建"""
        self.config = config or ConfigManager().config
        self.validator = validator or ImageValidator(self.config.validation)
        self.repair_engine = repair_engine or ImageRepairEngine(self.config.repair)
        self.composer = composer or PageComposer(self.config.pdf)
        self.file_manager = FileManager()

    # ---- 输入枚举 ----

    def load_chapter(self, chapter_dir: Path) -> Chapter:
        """读取一个章节目录中的图片"""
        images = self.file_manager.list_images(
            chapter_dir,
            self.config.assembly.image_extensions,
            self.config.assembly.intermediate_markers
        )
        return Chapter(name=chapter_dir.name, path=chapter_dir, images=tuple(images))

    def build_chapter_set(self, root: Path) -> ChapterSet:
        """枚举章节和图片

        Raises:
            NoChaptersError: 根目录下没有章节目录
            NoImagesError: 所有章节中都没有图片
        """
        if not root.is_dir():
            raise NoChaptersError(f"漫画目录不存在: {root}")

        chapter_dirs = self.file_manager.list_chapters(
            root, exclude=(self.config.diagnostics.quarantine_dir,)
        )
        if not chapter_dirs:
            raise NoChaptersError(f"没有在 {root} 中找到章节目录")

        chapter_set = ChapterSet(
            root=root,
            chapters=tuple(self.load_chapter(d) for d in chapter_dirs)
        )
        if chapter_set.total_images == 0:
            raise NoImagesError(f"{root} 的 {len(chapter_dirs)} 个章节中没有图片")
        return chapter_set

    # ---- 对外接口 ----

    def assemble(self, root: Path, output_name: Optional[str] = None) -> AssemblyResult:
        """把整部漫画组装成一个PDF，并在根目录写入处理报告

        Args:
            root: 漫画根目录，每个子目录是一个章节
            output_name: 输出PDF文件名

        Returns:
            组装结果
        """
        root = Path(root)
        chapter_set = self.build_chapter_set(root)
        output_path = root / (output_name or self.config.assembly.default_output_name)

        logger.info(f"开始生成PDF: {len(chapter_set.chapters)} 个章节, {chapter_set.total_images} 张图片")
        stats, page_count = self.render(chapter_set, output_path)

        report_path = write_report(stats, output_path, root / self.config.assembly.report_name)
        logger.info(f"PDF已生成: {output_path} ({page_count} 页), 报告: {report_path}")

        return AssemblyResult(
            output_path=output_path,
            stats=stats,
            page_count=page_count,
            report_path=report_path
        )

    def assemble_chapter(
        self,
        chapter_dir: Path,
        output_name: Optional[str] = None
    ) -> AssemblyResult:
        """只为单个章节生成PDF，输出到章节的上级目录，不写报告"""
        chapter_dir = Path(chapter_dir)
        if not chapter_dir.is_dir():
            raise NoChaptersError(f"章节目录不存在: {chapter_dir}")

        chapter = self.load_chapter(chapter_dir)
        if not chapter.images:
            raise NoImagesError(f"章节 {chapter_dir} 中没有图片")

        output_path = chapter_dir.parent / (output_name or f"{chapter_dir.name}.pdf")
        chapter_set = ChapterSet(root=chapter_dir.parent, chapters=(chapter,))

        logger.info(f"开始生成章节PDF: {chapter.name}, {len(chapter.images)} 张图片")
        stats, page_count = self.render(chapter_set, output_path)
        logger.info(f"章节PDF已生成: {output_path} ({page_count} 页)")

        return AssemblyResult(output_path=output_path, stats=stats, page_count=page_count)

    # ---- 处理流程 ----

    def render(self, chapter_set: ChapterSet, output_path: Path) -> Tuple[RunStatistics, int]:
        """按章节、页码顺序处理全部图片并保存PDF"""
        stats = RunStatistics(total=chapter_set.total_images)
        doc = self.composer.new_document()

        try:
            with tqdm(
                total=stats.total,
                desc="生成PDF",
                unit="张",
                disable=not self.config.assembly.show_progress
            ) as pbar:
                for chapter in chapter_set.chapters:
                    logger.info(f"处理章节 {chapter.name}: {len(chapter.images)} 张图片")
                    for image_path in chapter.images:
                        self.process_image(doc, chapter.name, image_path, stats)
                        pbar.update(1)

            if doc.page_count == 0:
                self.composer.append_notice_page(doc, "No images could be rendered.")
        except Exception:
            doc.close()
            raise

        page_count = self.composer.save(doc, output_path)

        if not stats.check_invariants():
            logger.error(f"统计结果不一致: {stats}")

        return stats, page_count

    def process_image(
        self,
        doc: fitz.Document,
        chapter: str,
        image_path: Path,
        stats: RunStatistics
    ) -> None:
        """处理单张图片：校验 -> 直接合成 -> 修复后重试 -> 错误占位页"""
        validation = self.validator.validate(image_path)
        if not validation.valid:
            logger.warning(f"跳过 {chapter}/{image_path.name}: {validation.reason}")
            stats.record_invalid(ImageRecord(
                path=image_path,
                chapter=chapter,
                size=validation.size,
                valid=False,
                outcome=OUTCOME_FAILED,
                reason=validation.reason
            ))
            if self.config.assembly.placeholder_for_invalid:
                self._emit_error_page(doc, chapter, image_path, validation.reason)
            return

        try:
            self.composer.append_page(doc, image_path)
            stats.record_success()
            return
        except PageComposeError as e:
            compose_error = e
            logger.info(f"直接添加失败，尝试修复 {chapter}/{image_path.name}: {str(e)}")

        outcome: Optional[RepairOutcome] = None
        try:
            outcome = self.repair_engine.repair(image_path)
            self._retry_with_outcome(doc, chapter, image_path, validation.size, outcome, compose_error, stats)
        finally:
            self.repair_engine.cleanup(outcome)

    def _retry_with_outcome(
        self,
        doc: fitz.Document,
        chapter: str,
        image_path: Path,
        size: int,
        outcome: RepairOutcome,
        compose_error: PageComposeError,
        stats: RunStatistics
    ) -> None:
        """用修复后的图片重试一次，仍失败时记录错误并插入占位页"""
        if isinstance(outcome, Fatal):
            error = f"fix attempt failed: {outcome.error}"
        elif isinstance(outcome, Passthrough):
            error = f"no fix available: {compose_error}"
        else:
            try:
                self.composer.append_page(doc, outcome.fixed_path)
            except PageComposeError as e:
                error = f"post-fix error: {e}"
            else:
                logger.info(f"已添加 {chapter}/{image_path.name} (修复: {outcome.reason})")
                stats.record_fixed(ImageRecord(
                    path=image_path,
                    chapter=chapter,
                    size=size,
                    valid=True,
                    outcome=OUTCOME_PLACEHOLDER if isinstance(outcome, Placeholder) else OUTCOME_REPAIRED,
                    reason=outcome.reason,
                    original_format=outcome.original_format,
                    original_size=outcome.original_size
                ))
                return

        logger.error(f"无法添加 {chapter}/{image_path.name}: {error}")
        stats.record_error(ImageRecord(
            path=image_path,
            chapter=chapter,
            size=size,
            valid=True,
            outcome=OUTCOME_FAILED,
            error=error
        ))
        self._emit_error_page(doc, chapter, image_path, error)

    def _emit_error_page(self, doc: fitz.Document, chapter: str, image_path: Path, error: str) -> None:
        try:
            self.composer.append_error_page(doc, image_path.name, chapter, error)
        except Exception as e:
            logger.error(f"插入错误占位页失败 {chapter}/{image_path.name}: {str(e)}")
