"""
@PURPOSE: 支持 python -m wp_admin_automation 运行命令行
"""

from .cli.main import app

if __name__ == "__main__":
    app()
