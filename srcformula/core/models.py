"""核心数据模型

Formula 及其组成部分均为不可变数据类：一个 formula 对应一个发布版本，
发布后不再修改，新版本需要新的 url / 校验和 / 版本号。
安装过程的运行时状态只存在于 InstallReport 中。
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

VERSION_PLACEHOLDER = "{version}"

# 支持的摘要算法及其十六进制摘要长度
DIGEST_LENGTHS: dict[str, int] = {"sha256": 64, "sha512": 128}


# =========================================================================
# Formula 领域模型
# =========================================================================


@dataclass(frozen=True)
class IntegrityHash:
    """源码包的期望摘要"""

    algorithm: str
    digest: str

    def __str__(self) -> str:
        return f"{self.algorithm}:{self.digest}"


@dataclass(frozen=True)
class BuildOptions:
    """构建参数，每个可替换参数一个字段

    ldflags 中的 {version} 在构建时替换为 formula 版本号，其余字段原样使用。
    std_args 为 True 时由工具链追加标准参数（输出路径、ldflags 等）。
    """

    ldflags: str = ""
    tags: tuple[str, ...] = ()
    trimpath: bool = True
    std_args: bool = False

    def rendered_ldflags(self, version: str) -> str:
        return self.ldflags.replace(VERSION_PLACEHOLDER, version)


@dataclass(frozen=True)
class BuildStep:
    """单个构建动作：外部工具 + 参数"""

    tool: str
    args: tuple[str, ...] = ()
    options: BuildOptions = field(default_factory=BuildOptions)


@dataclass(frozen=True)
class Verification:
    """安装后冒烟测试

    以 args 调用已安装的可执行文件，合并 stdout/stderr 后检查 pattern。
    """

    pattern: str
    args: tuple[str, ...] = ()
    regex: bool = False
    expect_status: int = 0


@dataclass(frozen=True)
class Formula:
    """包描述（一个发布版本）"""

    name: str
    description: str
    homepage: str
    url: str
    version: str
    integrity: IntegrityHash
    license: str
    build_dependencies: tuple[str, ...] = ()
    build_steps: tuple[BuildStep, ...] = ()
    verification: Verification | None = None
    binary: str = ""

    @property
    def executable(self) -> str:
        """安装后的可执行文件名"""
        return self.binary or self.name

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["integrity"] = str(self.integrity)
        return data


# =========================================================================
# 安装状态与报告
# =========================================================================


class InstallState(str, Enum):
    """安装流水线状态（线性推进，任何阶段失败进入 FAILED）"""

    PENDING = "pending"
    RESOLVED = "resolved"
    INTEGRITY_CHECKED = "integrity_checked"
    DEPENDENCIES_SATISFIED = "dependencies_satisfied"
    BUILT = "built"
    INSTALLED = "installed"
    VERIFIED = "verified"
    FAILED = "failed"


@dataclass
class InstallReport:
    """一次 install / test 调用的结果

    state 为最终状态；reached 为失败前最后到达的状态，成功时与 state 相同。
    """

    formula: str
    version: str
    state: InstallState = InstallState.PENDING
    reached: InstallState = InstallState.PENDING
    installed_path: str = ""
    error_code: str = ""
    error: str = ""
    output: str = ""
    durations: dict[str, float] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.state != InstallState.FAILED

    def advance(self, state: InstallState, duration: float = 0.0) -> None:
        self.state = state
        self.reached = state
        self.durations[state.value] = round(duration, 3)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["state"] = self.state.value
        data["reached"] = self.reached.value
        data["success"] = self.success
        return data
