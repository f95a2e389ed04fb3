"""srcformula - 基于声明式 formula 的源码包安装器"""

__version__ = "0.1.0"
