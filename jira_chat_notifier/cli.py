#!/usr/bin/env python3
"""CLI for the Jira chat notifier."""

import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from .common import log_server_message, mask_secret, setup_logging
from .config import ConfigError, ConfigStore, ConfigWatcher, NotifierConfig
from .server import create_app

console = Console()
logger = logging.getLogger(__name__)


@click.group()
@click.option("--config", "config_path", default=None, help="Configuration file path")
@click.pass_context
def cli(ctx, config_path):
    """Relay Jira webhooks to chat incoming webhooks."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.option("--watch/--no-watch", default=True, help="Reload the configuration file when it changes")
@click.option("--watch-interval", default=2.0, type=float, help="Seconds between configuration file checks")
@click.option("--log-level", default=None, help="Log level (overrides NOTIFIER_LOG_LEVEL)")
@click.option("--log-dir", default=None, help="Also write logs to this directory (overrides NOTIFIER_LOG_DIR)")
@click.pass_context
def serve(ctx, watch, watch_interval, log_level, log_dir):
    """Start the webhook receiver."""
    setup_logging(log_dir, log_level)

    try:
        store = ConfigStore.from_file(ctx.obj["config_path"])
        host, port = store.current.general.bind_address()
    except ConfigError as e:
        logger.critical(f"Cannot load configuration: {e}")
        console.print(f"❌ Failed to load configuration: {e}", style="red")
        sys.exit(1)

    watcher = ConfigWatcher(store, interval=watch_interval) if watch else None
    app = create_app(store, watcher=watcher)
    log_server_message(f"Listening on {store.current.general.listen}")

    import uvicorn

    try:
        uvicorn.run(
            app,
            host=host,
            port=port,
            log_level=(log_level or "info").lower(),
        )
    except KeyboardInterrupt:
        console.print("⏹️  Server stopped by user")
    except Exception as e:
        logger.critical(f"HTTP server error: {e}")
        console.print(f"❌ Server failed: {e}", style="red")
        sys.exit(1)


@cli.command("check-config")
@click.pass_context
def check_config(ctx):
    """Validate the configuration file and show the configured routes."""
    try:
        config = NotifierConfig.load(ctx.obj["config_path"])
    except ConfigError as e:
        console.print(f"❌ Failed to load configuration: {e}", style="red")
        sys.exit(1)

    general = config.general
    console.print(f"📋 Configuration: {config.source}")
    console.print(f"  Secret: {mask_secret(general.secret)}")
    console.print(f"  Ticket URL: {general.ticket_url or 'Not set'}")
    console.print(f"  Listen: {general.listen}")
    console.print(f"  Request timeout: {general.request_timeout}s")

    table = Table(title="Configured Projects")
    table.add_column("Project", style="cyan")
    table.add_column("Webhook", style="green")
    table.add_column("Ticket URL", style="yellow")
    table.add_column("Events", style="magenta")

    for project, targets in sorted(config.projects.items()):
        if not targets:
            table.add_row(project, "-", "-", "-")
        for target in targets:
            table.add_row(
                project,
                target.webhook,
                target.ticket_url or f"{general.ticket_url} (default)",
                ", ".join(target.on_events) or "all",
            )

    console.print(table)
    console.print("✅ Configuration is valid")


if __name__ == "__main__":
    cli()
