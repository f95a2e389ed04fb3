"""Formula 解析与校验

职责:
- YAML 映射 → Formula（不可变）
- 从 URL 推导版本号
- 校验和格式校验（按算法校验长度，不按长度猜算法）

所有问题汇总到一个 ValidationError.details 中，便于 audit 一次性报告。

formula 文件示例:

    name: itsyhome
    description: CLI tool to control HomeKit devices via Itsyhome
    homepage: https://github.com/nickustinov/itsyhome-cli
    url: https://github.com/nickustinov/itsyhome-cli/archive/refs/tags/v0.3.0.tar.gz
    sha256: e0a853e65e8f9d4254bce331022da9e1d3961253da1313dc753acc71dbc6e345
    license: MIT
    build_dependencies: [go]
    build:
      - tool: go
        args: [build]
        std_args: true
        ldflags: "-s -w -X main.version={version}"
    test:
      args: ["--help"]
      pattern: itsyhome
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from srcformula.core.exceptions import ValidationError
from srcformula.core.installer.archive import split_archive_name
from srcformula.core.installer.toolchain import supports_std_args
from srcformula.core.models import (
    DIGEST_LENGTHS,
    VERSION_PLACEHOLDER,
    BuildOptions,
    BuildStep,
    Formula,
    IntegrityHash,
    Verification,
)
from srcformula.utils.net import url_basename, validate_url_scheme
from srcformula.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

NAME_RE = re.compile(r"^[a-z0-9][a-z0-9._+-]*$")
VERSION_CHARS_RE = re.compile(r"^[0-9A-Za-z][0-9A-Za-z._+-]*$")
HEX_RE = re.compile(r"^[0-9a-f]+$")
# 归档文件名（去扩展名后）末尾的版本号: v0.3.0 / foo-1.2.3 / bar_2.0-rc1
VERSION_RE = re.compile(
    r"(?:^|[-_])v?(\d+(?:\.\d+)*(?:-?(?:alpha|beta|rc|pre)\.?\d*)?)$",
)
_PLACEHOLDER_RE = re.compile(r"\{[^{}]*\}")


def parse_integrity(value: str, algorithm: str = "") -> IntegrityHash:
    """解析校验和

    参数:
        value: "<algo>:<hex>"，或配合 algorithm 使用的裸十六进制串
        algorithm: 来自字段名（如 sha256:）的算法；为空时 value 必须带前缀

    Raises:
        ValidationError: 算法不支持、带前缀与字段名冲突、长度或字符不合法
    """
    text = str(value).strip()
    if ":" in text:
        prefix, digest = text.split(":", 1)
        prefix = prefix.strip().lower()
        if algorithm and prefix != algorithm:
            raise ValidationError(
                f"校验和前缀 '{prefix}' 与字段算法 '{algorithm}' 不一致",
            )
        algorithm = prefix
    else:
        digest = text
    if not algorithm:
        raise ValidationError(f"校验和缺少算法前缀: {text!r}")
    expected_len = DIGEST_LENGTHS.get(algorithm)
    if expected_len is None:
        raise ValidationError(
            f"不支持的校验和算法 '{algorithm}'，可用: {sorted(DIGEST_LENGTHS)}",
        )
    digest = digest.strip()
    if not HEX_RE.match(digest):
        raise ValidationError(f"{algorithm} 校验和必须是小写十六进制: {digest!r}")
    if len(digest) != expected_len:
        raise ValidationError(
            f"{algorithm} 校验和长度应为 {expected_len}，实际 {len(digest)}",
        )
    return IntegrityHash(algorithm=algorithm, digest=digest)


def version_from_url(url: str) -> str:
    """从归档文件名推导版本号，无法推导时返回空串"""
    try:
        stem, _ = split_archive_name(url_basename(url))
    except ValidationError:
        return ""
    m = VERSION_RE.search(stem)
    return m.group(1) if m else ""


# =========================================================================
# 字段读取辅助
# =========================================================================


def _str_field(data: dict[str, Any], key: str, errors: list[str], *, required: bool = True) -> str:
    value = data.get(key, "")
    if value is None:
        value = ""
    if not isinstance(value, str):
        errors.append(f"{key} 必须是字符串（数字请加引号）")
        return ""
    value = value.strip()
    if required and not value:
        errors.append(f"{key} 为必填")
    return value


def _str_list(value: Any, key: str, errors: list[str]) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        errors.append(f"{key} 必须是字符串列表")
        return ()
    return tuple(value)


def _check_placeholders(text: str, key: str, errors: list[str], *, allow_version: bool) -> None:
    for token in _PLACEHOLDER_RE.findall(text):
        if allow_version and token == VERSION_PLACEHOLDER:
            continue
        errors.append(f"{key} 包含不支持的占位符 {token}")


def _parse_step(index: int, raw: Any, errors: list[str]) -> BuildStep | None:
    key = f"build[{index}]"
    if not isinstance(raw, dict):
        errors.append(f"{key} 必须是映射")
        return None
    tool = raw.get("tool")
    if not isinstance(tool, str) or not tool.strip():
        errors.append(f"{key}.tool 为必填")
        return None
    tool = tool.strip()
    args = _str_list(raw.get("args"), f"{key}.args", errors)
    for arg in args:
        _check_placeholders(arg, f"{key}.args", errors, allow_version=False)

    ldflags = raw.get("ldflags", "") or ""
    if not isinstance(ldflags, str):
        errors.append(f"{key}.ldflags 必须是字符串")
        ldflags = ""
    _check_placeholders(ldflags, f"{key}.ldflags", errors, allow_version=True)

    std_args = bool(raw.get("std_args", False))
    if std_args and not supports_std_args(tool):
        errors.append(f"{key}: 工具 '{tool}' 不支持 std_args")
    if (ldflags or raw.get("tags")) and not std_args:
        errors.append(f"{key}: ldflags / tags 需要 std_args: true")

    options = BuildOptions(
        ldflags=ldflags,
        tags=_str_list(raw.get("tags"), f"{key}.tags", errors),
        trimpath=bool(raw.get("trimpath", True)),
        std_args=std_args,
    )
    return BuildStep(tool=tool, args=args, options=options)


def _parse_verification(raw: Any, errors: list[str]) -> Verification | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        errors.append("test 必须是映射")
        return None
    pattern = raw.get("pattern")
    if not isinstance(pattern, str) or not pattern:
        errors.append("test.pattern 为必填")
        return None
    regex = bool(raw.get("regex", False))
    if regex:
        try:
            re.compile(pattern)
        except re.error as e:
            errors.append(f"test.pattern 不是合法正则: {e}")
    expect_status = raw.get("expect_status", 0)
    if isinstance(expect_status, bool) or not isinstance(expect_status, int):
        errors.append("test.expect_status 必须是整数")
        expect_status = 0
    if "binary" in raw:
        # bin/ 下只安装一个可执行文件，测试对象即顶层 binary
        errors.append("test.binary 不受支持，请使用顶层 binary")
    return Verification(
        pattern=pattern,
        args=_str_list(raw.get("args"), "test.args", errors),
        regex=regex,
        expect_status=expect_status,
    )


# =========================================================================
# 入口
# =========================================================================


def formula_from_dict(data: dict[str, Any], *, source: str = "") -> Formula:
    """从映射构建 Formula，所有问题汇总后一次性抛出

    Raises:
        ValidationError: details 中列出每一条问题
    """
    errors: list[str] = []

    name = _str_field(data, "name", errors)
    if name and not NAME_RE.match(name):
        errors.append(f"name 含非法字符: {name!r}")
    description = _str_field(data, "description", errors)
    homepage = _str_field(data, "homepage", errors)
    if homepage:
        try:
            validate_url_scheme(homepage, context="homepage")
        except ValidationError as e:
            errors.append(str(e))
    license_id = _str_field(data, "license", errors)

    url = _str_field(data, "url", errors)
    if url:
        try:
            validate_url_scheme(url, context="url")
            split_archive_name(url_basename(url))
        except ValidationError as e:
            errors.append(str(e))

    version = _str_field(data, "version", errors, required=False)
    if not version and url:
        version = version_from_url(url)
        if not version:
            errors.append(f"无法从 URL 推导版本号，请显式填写 version: {url}")
    if version and not VERSION_CHARS_RE.match(version):
        # 版本号会拼进缓存与安装路径
        errors.append(f"version 含非法字符: {version!r}")
    elif version and url and version not in url:
        errors.append(f"url 未包含版本号 {version}: {url}")

    integrity: IntegrityHash | None = None
    try:
        if "sha256" in data and "checksum" in data:
            raise ValidationError("sha256 与 checksum 只能填写一个")
        if "sha256" in data:
            integrity = parse_integrity(data["sha256"] or "", algorithm="sha256")
        elif "checksum" in data:
            integrity = parse_integrity(data["checksum"] or "")
        else:
            errors.append("sha256 / checksum 为必填")
    except ValidationError as e:
        errors.append(str(e))

    build_deps = _str_list(data.get("build_dependencies"), "build_dependencies", errors)

    raw_steps = data.get("build")
    steps: list[BuildStep] = []
    if not isinstance(raw_steps, list) or not raw_steps:
        errors.append("build 必须是非空列表")
    else:
        for i, raw in enumerate(raw_steps):
            step = _parse_step(i, raw, errors)
            if step is None:
                continue
            if step.tool not in build_deps:
                errors.append(f"build[{i}].tool '{step.tool}' 未声明在 build_dependencies 中")
            steps.append(step)

    verification = _parse_verification(data.get("test"), errors)

    binary = data.get("binary", "") or ""
    if not isinstance(binary, str) or "/" in binary:
        errors.append("binary 必须是文件名")
        binary = ""

    if errors or integrity is None:
        label = source or name or "<formula>"
        raise ValidationError(f"formula 无效: {label}", details=errors)

    return Formula(
        name=name,
        description=description,
        homepage=homepage,
        url=url,
        version=version,
        integrity=integrity,
        license=license_id,
        build_dependencies=build_deps,
        build_steps=tuple(steps),
        verification=verification,
        binary=binary,
    )


def load_formula(path: str | Path) -> Formula:
    """读取并校验单个 formula 文件

    Raises:
        ConfigError: 文件缺失或 YAML 无效
        ValidationError: 内容校验失败
    """
    p = Path(path)
    data = load_yaml(p, required=True)
    formula = formula_from_dict(data, source=str(p))
    logger.debug("formula 已加载: %s@%s (%s)", formula.name, formula.version, p)
    return formula
