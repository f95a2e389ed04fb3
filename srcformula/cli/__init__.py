"""srcformula 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any

import click

from srcformula import __version__
from srcformula.core.config import DEFAULT_CONFIG_FILE, init_config
from srcformula.core.exceptions import SrcFormulaError, ValidationError
from srcformula.services.container import get_container, reset_container
from srcformula.utils.logger import setup_logging_from_env


def _svc() -> Any:
    """获取全局安装服务的快捷方式"""
    return get_container().installer


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """把业务异常转换为 ClickException（退出码 1，输出到 stderr）"""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ValidationError as e:
            lines = [str(e), *(f"  - {d}" for d in e.details)]
            raise click.ClickException("\n".join(lines)) from e
        except SrcFormulaError as e:
            raise click.ClickException(str(e)) from e

    return wrapper


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "-c", "config_path", default=DEFAULT_CONFIG_FILE,
    show_default=True, help="配置文件路径（不存在时使用默认配置）",
)
@handle_errors
def main(config_path: str) -> None:
    """srcformula - 基于 formula 的源码包安装器"""
    setup_logging_from_env()
    init_config(config_path)
    reset_container()


# 注册各领域子命令
from srcformula.cli.cmd_formula import register as _reg_formula  # noqa: E402
from srcformula.cli.cmd_install import register as _reg_install  # noqa: E402

_reg_install(main)
_reg_formula(main)
