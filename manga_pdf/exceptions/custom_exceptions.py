"""自定义异常类定义"""

class MangaPdfError(Exception):
    """基础异常类"""
    pass

class ConfigError(MangaPdfError):
    """配置相关错误"""
    pass

class InputError(MangaPdfError):
    """输入目录结构错误，整个任务无法继续"""
    pass

class NoChaptersError(InputError):
    """没有找到章节目录"""
    pass

class NoImagesError(InputError):
    """所有章节中都没有图片"""
    pass

class PageComposeError(MangaPdfError):
    """PDF页面合成相关错误"""
    pass

class ReportError(MangaPdfError):
    """报告生成相关错误"""
    pass

class FileOperationError(MangaPdfError):
    """文件操作相关错误"""
    pass
