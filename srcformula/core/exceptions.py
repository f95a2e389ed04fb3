"""统一异常体系

所有业务异常继承 SrcFormulaError。
安装流水线各阶段的失败统一继承 InstallerError，流水线据此记录失败阶段；
CLI 层据此输出友好提示，Web 层据此映射 HTTP 状态码。
"""

from __future__ import annotations


class SrcFormulaError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(SrcFormulaError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(SrcFormulaError):
    """formula 内容校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class FormulaNotFoundError(SrcFormulaError):
    """指定的 formula 不存在"""

    code = "FORMULA_NOT_FOUND"


# =========================================================================
# 安装流水线异常
# =========================================================================


class InstallerError(SrcFormulaError):
    """安装流水线阶段失败基类

    output 保存外部工具的原始输出（未截断、未修改），供调用方展示。
    """

    code = "INSTALLER_ERROR"

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


class FetchError(InstallerError):
    """源码包下载或解包失败"""

    code = "FETCH_ERROR"


class IntegrityError(InstallerError):
    """源码包校验和不匹配"""

    code = "INTEGRITY_ERROR"

    def __init__(self, message: str, expected: str = "", actual: str = "") -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class MissingDependencyError(InstallerError):
    """构建依赖工具缺失"""

    code = "MISSING_DEPENDENCY"

    def __init__(self, message: str, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []


class BuildError(InstallerError):
    """构建命令执行失败或未产出目标文件"""

    code = "BUILD_ERROR"


class InstallError(InstallerError):
    """产物放置到目标目录失败"""

    code = "INSTALL_ERROR"


class VerificationError(InstallerError):
    """安装后冒烟测试未通过（不回滚安装）"""

    code = "VERIFICATION_ERROR"
