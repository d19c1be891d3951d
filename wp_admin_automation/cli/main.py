"""
@PURPOSE: CLI 主入口 - WordPress 后台浏览器自动化命令行工具
@OUTLINE:
  - app: Typer 主应用
  - config_app: 配置命令组(show)
  - run_app: 执行命令组(settings/page/plugin/theme/menu)
  - def version(): 版本信息
@GOTCHAS:
  - 使用前需要在 .env 中配置 WP_SITE_URL / WP_USERNAME / WP_APP_PASSWORD
  - 确保 Playwright 浏览器已安装(playwright install chromium)
@DEPENDENCIES:
  - 外部: typer, rich, pyyaml, python-dotenv
  - 内部: core.engine, workflows, config
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import typer
import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from .. import __version__
from ..config.settings import create_settings, get_settings
from ..core.engine import AutomationEngine
from ..models.result import ActionResult
from ..utils.logger_setup import setup_logger
from ..workflows.admin_flows import AdminFlows

app = typer.Typer(
    name="wp-admin-automation",
    help="WordPress 后台浏览器自动化",
    add_completion=False,
    rich_markup_mode="rich",
)
config_app = typer.Typer(name="config", help="配置管理")
run_app = typer.Typer(name="run", help="执行后台操作")
app.add_typer(config_app, name="config")
app.add_typer(run_app, name="run")

console = Console()


@app.callback()
def main(
    env_file: Path = typer.Option(Path(".env"), "--env-file", help=".env 文件路径"),
):
    """加载 .env 并配置日志."""
    if env_file.exists():
        load_dotenv(env_file)
    get_settings.cache_clear()
    setup_logger(force=True)


@app.command()
def version():
    """显示版本信息."""
    settings = get_settings()
    console.print("\n[bold cyan]WordPress 后台自动化[/bold cyan]")
    console.print(f"版本: [bold]{__version__}[/bold]")
    console.print(f"  环境: {settings.environment}")
    console.print(f"  Python: {sys.version.split()[0]}")
    console.print(f"  站点: {settings.wordpress.site_url}")


@config_app.command("show")
def show(
    env: str | None = typer.Option(None, "--env", help="环境名称"),
    format: str = typer.Option("yaml", "--format", "-f", help="输出格式(yaml/json)"),
):
    """显示当前配置(隐藏凭据).

    Examples:
        wp-admin-automation config show
        wp-admin-automation config show --env production -f json
    """
    settings = create_settings(env) if env else get_settings()
    console.print(f"[bold]环境:[/bold] {settings.environment}\n")

    config_dict = settings.to_dict()
    if format == "json":
        output = json.dumps(config_dict, indent=2, ensure_ascii=False)
        syntax = Syntax(output, "json", theme="monokai", line_numbers=True)
    else:
        output = yaml.dump(config_dict, allow_unicode=True, default_flow_style=False)
        syntax = Syntax(output, "yaml", theme="monokai", line_numbers=True)
    console.print(syntax)


# ========== 执行命令 ==========

def _parse_assignments(assignments: list[str]) -> dict[str, object]:
    """解析 key=value, 值按 YAML 标量解析(true/123/文本)."""

    values: dict[str, object] = {}
    for item in assignments:
        if "=" not in item:
            raise typer.BadParameter(f"格式应为 key=value: {item}")
        key, raw = item.split("=", 1)
        parsed = yaml.safe_load(raw) if raw else ""
        values[key.strip()] = parsed if isinstance(parsed, (bool, int, float)) else raw
    return values


def _print_result(result: ActionResult) -> None:
    status = "[green]✓ 成功[/green]" if result.success else (
        "[yellow]⚠ 部分成功[/yellow]" if result.partial else "[red]✗ 失败[/red]"
    )
    console.print(f"\n{status} {result.message}")

    if result.fields:
        table = Table(title="字段结果")
        table.add_column("字段", style="cyan")
        table.add_column("状态")
        table.add_column("实际值", style="magenta")
        table.add_column("错误", style="red")
        for outcome in result.fields.outcomes:
            table.add_row(
                outcome.descriptor.label,
                outcome.status.value,
                "" if outcome.actual is None else str(outcome.actual),
                outcome.error.message if outcome.error else "",
            )
        console.print(table)

    if result.error:
        console.print(f"错误类型: {result.error.kind} (超时: {result.error.timed_out})")
    if result.data:
        console.print(f"数据: {json.dumps(result.data, ensure_ascii=False)}")
    if result.screenshot_path:
        console.print(f"截图: {result.screenshot_path}")
    console.print(f"耗时: {result.execution_time}s")


def _execute(coro_factory) -> None:
    flows = AdminFlows(AutomationEngine(get_settings()))
    result = asyncio.run(coro_factory(flows))
    _print_result(result)
    if not result.success:
        raise typer.Exit(1)


@run_app.command("settings")
def run_settings(
    page: str = typer.Option("general", "--page", "-p", help="设置页(general/reading/...)"),
    assignments: list[str] = typer.Option(..., "--set", "-s", help="设置项 key=value, 可重复"),
):
    """修改设置页并保存.

    Examples:
        wp-admin-automation run settings -p general -s blogname="My Site" -s users_can_register=true
    """
    values = _parse_assignments(assignments)
    _execute(lambda flows: flows.update_settings(page, values))


@run_app.command("page")
def run_page(
    title: str = typer.Option(..., "--title", "-t", help="标题"),
    content: str = typer.Option(..., "--content", "-c", help="正文"),
    post_type: str = typer.Option("post", "--type", help="内容类型(post/page)"),
    publish: bool = typer.Option(True, "--publish/--draft", help="是否发布"),
):
    """新建内容."""
    _execute(lambda flows: flows.create_content(title, content, post_type, publish))


@run_app.command("plugin")
def run_plugin(
    plugin_file: str = typer.Argument(..., help="插件文件, 如 akismet/akismet.php"),
    activate: bool = typer.Option(True, "--activate/--deactivate", help="启用或停用"),
):
    """启用或停用插件."""
    _execute(lambda flows: flows.set_plugin_state(plugin_file, activate))


@run_app.command("theme")
def run_theme(slug: str = typer.Argument(..., help="主题 slug")):
    """切换主题."""
    _execute(lambda flows: flows.activate_theme(slug))


@run_app.command("menu")
def run_menu(
    name: str = typer.Option(..., "--name", "-n", help="菜单名称"),
    locations: list[str] = typer.Option([], "--location", "-l", help="菜单位置, 可重复"),
    auto_add_pages: bool = typer.Option(False, "--auto-add/--no-auto-add", help="自动添加新页面"),
):
    """新建导航菜单."""
    _execute(lambda flows: flows.create_menu(name, locations, auto_add_pages))


if __name__ == "__main__":
    app()
