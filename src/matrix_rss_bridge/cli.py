import sys

import click

from . import __version__
from .config import DEFAULT_BIND_ADDRESS, AppConfig, ConfigError, ConfigManager


@click.group(name="matrix-rss-bridge", help="Matrix 房间消息 RSS 桥接机器人")
def cli():
    pass


@cli.command(help="显示版本信息")
def version():
    click.echo(f"matrix-rss-bridge {__version__}")


@cli.command(help="交互式初始化配置")
@click.option(
    "--config-dir",
    type=click.Path(),
    default=None,
    help="配置文件目录"
)
def init(config_dir):
    config_manager = ConfigManager(config_dir)

    click.echo("🚀 Matrix RSS Bridge - 初始化配置\n")

    if config_manager.exists():
        click.echo(f"检测到已有配置: {config_manager.config_path}")
        if not click.confirm("是否覆盖现有配置？", default=False):
            click.echo("已取消")
            return

    click.echo("1. Matrix 服务器")
    homeserver_url = click.prompt("   Homeserver URL", type=str, default="https://matrix.org")

    click.echo("\n2. Bot 账号")
    bot_username = click.prompt("   用户名", type=str)
    bot_password = click.prompt("   密码", type=str, hide_input=True)

    click.echo("\n3. RSS 服务监听地址")
    bind_address = click.prompt("   host:port", type=str, default=DEFAULT_BIND_ADDRESS)

    try:
        config = AppConfig(
            homeserver_url=homeserver_url,
            bot_username=bot_username,
            bot_password=bot_password,
            bind_address=bind_address,
        )
    except ValueError as e:
        click.echo(f"\n❌ 配置无效: {e}")
        sys.exit(1)

    config_manager.save(config)

    click.echo(f"\n✅ 配置已保存到: {config_manager.config_path}")
    click.echo("\n使用 'matrix-rss-bridge run' 启动服务")


@cli.command(help="显示当前配置")
@click.option(
    "--config-dir",
    type=click.Path(),
    default=None,
    help="配置文件目录"
)
def config(config_dir):
    config_manager = ConfigManager(config_dir)

    try:
        cfg = config_manager.load()
    except ConfigError as e:
        click.echo(f"❌ {e}")
        sys.exit(1)

    click.echo("📋 当前配置：\n")
    click.echo(f"  Homeserver: {cfg.homeserver_url}")
    click.echo(f"  Bot 用户名: {cfg.bot_username}")
    click.echo(f"  Bot 密码: {'*' * 8}")
    click.echo(f"  监听地址: {cfg.bind_address}")
    click.echo(f"  命令前缀: {cfg.trigger_prefix}")
    click.echo(f"  每个 Feed 最多条目: {cfg.max_feed_items}")
    click.echo(f"  标题抓取超时: {cfg.fetch_timeout}秒")
    click.echo()
    click.echo(f"  配置文件: {config_manager.config_path}")


@cli.command(help="启动机器人和 RSS 服务")
@click.argument("bind_address", required=False)
@click.option(
    "--config-dir",
    type=click.Path(),
    default=None,
    help="配置文件目录"
)
def run(bind_address, config_dir):
    config_manager = ConfigManager(config_dir)

    try:
        cfg = config_manager.load(bind_address=bind_address)
    except ConfigError as e:
        click.echo(f"❌ {e}")
        sys.exit(1)

    from .app import Application, setup_logging
    from .bot import LoginError

    # 配置日志（输出到 stdout + 文件）
    log_dir = config_manager.config_dir / "logs"
    setup_logging(log_dir)

    click.echo("🚀 启动 Matrix RSS Bridge...")
    click.echo(f"   Homeserver: {cfg.homeserver_url}")
    click.echo(f"   Starting server at {cfg.bind_address}")
    click.echo(f"   日志目录: {log_dir}\n")

    app = Application(cfg)
    try:
        app.run()
    except (LoginError, OSError) as e:
        click.echo(f"❌ {e}")
        sys.exit(1)
