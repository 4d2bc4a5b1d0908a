"""Back-office ERP support modules (Python)."""

import json
import logging

import click
from dotenv import load_dotenv

from .cache import CacheEntry, CacheManager
from .config import AppConfig, load_config
from .context import ERPContext, ServiceRegistry, ServiceRole
from .errors import ConfigError, normalize_error
from .notification import build_notification_service

__version__ = "0.1.0"

logger = logging.getLogger("erp-modules")


@click.group()
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (can be used multiple times)",
)
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to .env file",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to JSON config file (defaults to ERP_CONFIG_FILE)",
)
@click.pass_context
def main(ctx: click.Context, verbose: int, env_file: str | None, config_path: str | None) -> None:
    """ERP modules command line helpers."""
    logging_level = logging.WARNING
    if verbose == 1:
        logging_level = logging.INFO
    elif verbose >= 2:
        logging_level = logging.DEBUG

    logging.basicConfig(
        level=logging_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if env_file:
        logger.debug("Loading environment from file: %s", env_file)
        load_dotenv(env_file)
    else:
        load_dotenv()

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = ERPContext(config=config)


@main.command("show-config")
@click.pass_obj
def show_config_command(erp: ERPContext) -> None:
    """Print the effective configuration with secrets masked."""
    click.echo(json.dumps(erp.config.redacted(), indent=2))


@main.command("notify")
@click.option("--to", "recipient", required=True, help="Notification recipient")
@click.option("--title", required=True, help="Notification title")
@click.option("--message", default="", help="Notification body")
@click.pass_obj
def notify_command(erp: ERPContext, recipient: str, title: str, message: str) -> None:
    """Send a notification through the configured webhook."""
    try:
        service = build_notification_service(erp.config)
        erp.services.register(ServiceRole.NOTIFICATION, service)
        service.send_notification(recipient, title, message)
    except Exception as exc:
        click.echo(json.dumps(normalize_error("notification.send", exc), ensure_ascii=False), err=True)
        raise SystemExit(1) from exc
    click.echo("✓ Notification sent.")


__all__ = [
    "__version__",
    "AppConfig",
    "CacheEntry",
    "CacheManager",
    "ERPContext",
    "ServiceRegistry",
    "ServiceRole",
    "load_config",
    "main",
]

if __name__ == "__main__":
    main()
