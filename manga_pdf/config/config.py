"""配置管理模块"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import List, Optional, Tuple
import yaml

from ..exceptions.custom_exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path(__file__).parent / "settings.yaml"

@dataclass
class ValidationConfig:
    """图片校验配置"""
    min_size: int = 100
    header_window: int = 16

@dataclass
class RepairConfig:
    """图片修复配置"""
    tall_threshold: int = 10000
    pixel_threshold: int = 50_000_000
    max_height: int = 8000
    quality: int = 92
    alternate_formats: List[str] = field(default_factory=lambda: ['WEBP'])
    emergency_quality: int = 85
    emergency_max_width: int = 720
    emergency_max_height: int = 8000
    placeholder_width: int = 720
    placeholder_height: int = 1000
    placeholder_color: Tuple[int, int, int] = (240, 240, 240)
    placeholder_quality: int = 90

@dataclass
class PDFConfig:
    """PDF页面配置"""
    page_width: int = 800
    page_height: int = 15000
    error_page_height: int = 800
    error_page_margin: int = 20

@dataclass
class AssemblyConfig:
    """文档组装配置"""
    image_extensions: List[str] = field(
        default_factory=lambda: ['jpg', 'jpeg', 'png', 'gif', 'webp']
    )
    intermediate_markers: List[str] = field(
        default_factory=lambda: ['.fixed', '.recovered', '.converted']
    )
    report_name: str = "enhanced-pdf-generation-report.txt"
    default_output_name: str = "manga.pdf"
    placeholder_for_invalid: bool = True
    show_progress: bool = True

@dataclass
class DiagnosticsConfig:
    """图片诊断配置"""
    quarantine_dir: str = "_corrupted_images"
    report_name: str = "image-diagnosis-report.txt"

def _build_section(section_cls, data: Optional[dict]):
    """用YAML中的值覆盖默认配置"""
    if not data:
        return section_cls()
    known = {f.name for f in fields(section_cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"{section_cls.__name__} 包含未知配置项: {sorted(unknown)}")
    values = dict(data)
    if 'placeholder_color' in values:
        values['placeholder_color'] = tuple(values['placeholder_color'])
    return section_cls(**values)

@dataclass
class AppConfig:
    """应用配置"""
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    repair: RepairConfig = field(default_factory=RepairConfig)
    pdf: PDFConfig = field(default_factory=PDFConfig)
    assembly: AssemblyConfig = field(default_factory=AssemblyConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    log_file: Optional[Path] = None

    @classmethod
    def from_yaml(cls, config_path: Path) -> 'AppConfig':
        """从YAML文件加载配置"""
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}

            log_file = config_data.get('log_file')

            return cls(
                validation=_build_section(ValidationConfig, config_data.get('validation')),
                repair=_build_section(RepairConfig, config_data.get('repair')),
                pdf=_build_section(PDFConfig, config_data.get('pdf')),
                assembly=_build_section(AssemblyConfig, config_data.get('assembly')),
                diagnostics=_build_section(DiagnosticsConfig, config_data.get('diagnostics')),
                log_file=Path(log_file) if log_file else None
            )
        except ConfigError:
            raise
        except Exception as e:
            raise ConfigError(f"加载配置文件失败: {str(e)}")

class ConfigManager:
    """配置管理器"""
    _instance = None
    _config: Optional[AppConfig] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def config(self) -> AppConfig:
        """获取配置"""
        if self._config is None:
            raise ConfigError("配置未初始化")
        return self._config

    def init_config(self, config_path: Path = DEFAULT_CONFIG_PATH) -> None:
        """初始化配置"""
        self._config = AppConfig.from_yaml(config_path)

    def set_config(self, config: AppConfig) -> None:
        """直接设置配置对象"""
        self._config = config

    def reset(self) -> None:
        """清除已加载的配置"""
        self._config = None
