"""CLI — 安装 / 测试 / 下载命令"""

from __future__ import annotations

import click

from srcformula.cli import _svc, handle_errors
from srcformula.core.models import InstallReport


def register(group: click.Group) -> None:
    group.add_command(install)
    group.add_command(test)
    group.add_command(fetch)


def _echo_report(report: InstallReport) -> None:
    if report.success:
        click.echo(f"{report.formula}@{report.version}: {report.state.value}")
        if report.installed_path:
            click.echo(f"安装路径: {report.installed_path}")
        return
    click.echo(
        f"{report.formula}@{report.version}: 失败于 {report.reached.value} 之后 "
        f"[{report.error_code}]",
        err=True,
    )
    click.echo(report.error, err=True)
    if report.output:
        click.echo(report.output.rstrip(), err=True)
    if report.installed_path:
        click.echo(f"产物已保留: {report.installed_path}", err=True)


@click.command()
@click.argument("name")
@click.option("--test", "run_test", is_flag=True, help="安装后运行冒烟测试")
@click.option("--force-fetch", is_flag=True, help="忽略下载缓存重新下载")
@click.option("--no-overwrite", is_flag=True, help="目标已存在时失败而不是覆盖")
@handle_errors
def install(name: str, run_test: bool, force_fetch: bool, no_overwrite: bool) -> None:
    """下载、校验、构建并安装 formula"""
    report = _svc().install(
        name, force_fetch=force_fetch, run_test=run_test,
        overwrite=False if no_overwrite else None,
    )
    _echo_report(report)
    if not report.success:
        raise SystemExit(1)


@click.command()
@click.argument("name")
@handle_errors
def test(name: str) -> None:
    """对已安装的 formula 运行冒烟测试"""
    report = _svc().test(name)
    _echo_report(report)
    if not report.success:
        raise SystemExit(1)


@click.command()
@click.argument("name")
@click.option("--force", is_flag=True, help="忽略下载缓存重新下载")
@handle_errors
def fetch(name: str, force: bool) -> None:
    """只下载并校验源码归档"""
    path = _svc().fetch(name, force=force)
    click.echo(f"就绪: {name} -> {path}")
