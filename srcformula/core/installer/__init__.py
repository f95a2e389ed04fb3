"""安装流水线模块

拆分说明:
- fetcher.py: 源码归档下载与缓存
- integrity.py: 校验和计算与比对
- archive.py: 归档安全解包
- toolchain.py: 构建依赖检查、工具标准参数
- builder.py: 构建步骤执行
- placer.py: 产物原子安装
- verifier.py: 安装后冒烟测试
- pipeline.py: 按状态机串联以上阶段
"""

from srcformula.core.installer.pipeline import InstallPipeline

__all__ = ["InstallPipeline"]
