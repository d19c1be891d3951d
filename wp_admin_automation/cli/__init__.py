"""
@PURPOSE: 命令行模块
"""

from .main import app

__all__ = ["app"]
