"""
@PURPOSE: 工作流模块，后台常用操作流程
"""

from .admin_flows import (
    AdminFlows,
    build_content_request,
    build_menu_request,
    build_plugin_request,
    build_settings_request,
    build_theme_request,
)

__all__ = [
    "AdminFlows",
    "build_content_request",
    "build_menu_request",
    "build_plugin_request",
    "build_settings_request",
    "build_theme_request",
]
