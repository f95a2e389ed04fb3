"""CLI — formula 查询、校验与 Web 服务"""

from __future__ import annotations

import click

from srcformula.cli import _svc, handle_errors


def register(group: click.Group) -> None:
    group.add_command(list_formulas)
    group.add_command(info)
    group.add_command(audit)
    group.add_command(serve)


@click.command(name="list")
@handle_errors
def list_formulas() -> None:
    """列出全部 formula"""
    items = _svc().list_all()
    if not items:
        click.echo("没有 formula。")
        return
    for f in items:
        mark = "*" if f["installed"] else " "
        click.echo(f"{mark} {f['name']:20s} {f['version']:12s} {f['description']}")


@click.command()
@click.argument("name")
@handle_errors
def info(name: str) -> None:
    """显示 formula 详情"""
    data = _svc().info(name)
    click.echo(f"{data['name']}: {data['version']}")
    click.echo(data["description"])
    click.echo(data["homepage"])
    click.echo(f"License: {data['license']}")
    click.echo(f"Source: {data['url']}")
    click.echo(f"Checksum: {data['integrity']}")
    deps = ", ".join(data["build_dependencies"]) or "-"
    click.echo(f"Build dependencies: {deps}")
    installed = data["installed_path"] or "未安装"
    click.echo(f"Installed: {installed}")


@click.command()
@handle_errors
def audit() -> None:
    """校验 formula 目录中的全部文件"""
    problems = _svc().audit()
    if not problems:
        click.echo("全部 formula 校验通过。")
        return
    for filename, details in problems.items():
        click.echo(f"{filename}:", err=True)
        for d in details:
            click.echo(f"  - {d}", err=True)
    raise SystemExit(1)


@click.command()
@click.option("--host", default="127.0.0.1", help="监听地址")
@click.option("--port", default=8787, help="监听端口")
def serve(host: str, port: int) -> None:
    """启动 HTTP API"""
    from srcformula.web.app import run_server
    run_server(host=host, port=port)
