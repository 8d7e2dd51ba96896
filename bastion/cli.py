"""Click CLI entry point for bastion."""
from __future__ import annotations

import logging
import sys

import click

from bastion import __version__
from bastion.config import (
    KEYS,
    Settings,
    config_path,
    load_config,
    load_settings,
    parse_value,
    save_config,
)
from bastion.engine import ENGINES
from bastion.errors import BastionError, ConfigError
from bastion.output.json_report import report_to_json
from bastion.output.terminal import render
from bastion.process import SystemProcessRunner

logger = logging.getLogger(__name__)


def _output_options(func):
    """Flags shared by every scan command."""
    func = click.option("--verbose", is_flag=True, help="Debug logging on stderr")(func)
    func = click.option("--no-color", is_flag=True, help="Disable colored output")(func)
    func = click.option(
        "--format", "output_format", type=click.Choice(["json", "human"]), default=None,
        help="Output format (default: human on a terminal, json otherwise)",
    )(func)
    return func


def _configure_logging(verbose: bool, settings: Settings) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
    )


def _resolve_format(flag: str | None, settings: Settings) -> str:
    if flag:
        return flag
    if settings.format:
        return settings.format
    return "human" if sys.stdout.isatty() else "json"


def _run_engine(name: str, output_format: str | None, no_color: bool, verbose: bool) -> None:
    try:
        settings = load_settings()
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    _configure_logging(verbose, settings)
    fmt = _resolve_format(output_format, settings)
    color = settings.color and not no_color

    runner = SystemProcessRunner(grace_period=settings.grace_period)
    try:
        report = ENGINES[name](runner=runner).run()
    except Exception as e:
        # Checks are guarded by the engine; reaching here is an internal bug
        logger.exception("%s failed", name)
        click.echo(f"Error: {name} failed: {e}", err=True)
        sys.exit(1)

    if fmt == "json":
        click.echo(report_to_json(report))
    else:
        render(report, color=color)


def _with_group_flags(
    ctx: click.Context, output_format: str | None, no_color: bool, verbose: bool,
) -> tuple[str | None, bool, bool]:
    """Merge flags given before the subcommand with its own; its own --format wins."""
    parent = ctx.obj or {}
    return (
        output_format or parent.get("output_format"),
        no_color or parent.get("no_color", False),
        verbose or parent.get("verbose", False),
    )


# ── Scan commands ───────────────────────────────────────────────────────

@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="bastion")
@_output_options
@click.pass_context
def cli(ctx: click.Context, output_format: str | None, no_color: bool, verbose: bool) -> None:
    """bastion - read-only macOS security posture audit.

    Runs the full audit when no command is given.
    """
    ctx.obj = {"output_format": output_format, "no_color": no_color, "verbose": verbose}
    if ctx.invoked_subcommand is None:
        _run_engine("audit", output_format, no_color, verbose)


@cli.command()
@_output_options
@click.pass_context
def audit(ctx: click.Context, output_format: str | None, no_color: bool, verbose: bool) -> None:
    """Full security audit with a weighted score."""
    _run_engine("audit", *_with_group_flags(ctx, output_format, no_color, verbose))


@cli.command()
@_output_options
@click.pass_context
def scan(ctx: click.Context, output_format: str | None, no_color: bool, verbose: bool) -> None:
    """Listening TCP/UDP ports and the signing status of their processes."""
    _run_engine("scan", *_with_group_flags(ctx, output_format, no_color, verbose))


@cli.command()
@_output_options
@click.pass_context
def connections(ctx: click.Context, output_format: str | None, no_color: bool, verbose: bool) -> None:
    """Established network connections by process."""
    _run_engine("connections", *_with_group_flags(ctx, output_format, no_color, verbose))


@cli.command()
@_output_options
@click.pass_context
def persistence(ctx: click.Context, output_format: str | None, no_color: bool, verbose: bool) -> None:
    """LaunchAgents, LaunchDaemons, login items, cron jobs and kernel extensions."""
    _run_engine("persistence", *_with_group_flags(ctx, output_format, no_color, verbose))


@cli.command()
@_output_options
@click.pass_context
def permissions(ctx: click.Context, output_format: str | None, no_color: bool, verbose: bool) -> None:
    """Applications holding privacy permission grants."""
    _run_engine("permissions", *_with_group_flags(ctx, output_format, no_color, verbose))


# ── Config ──────────────────────────────────────────────────────────────

@cli.group()
def config() -> None:
    """Manage bastion configuration."""
    pass


def _display(value: object) -> str:
    if value is None:
        return "auto"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Set a configuration value. Keys: format, color, grace_period, log_level."""
    try:
        parsed = parse_value(key, value)
        path = config_path()
        cfg = load_config(path)
        cfg[key] = parsed
        save_config(path, cfg)
    except ConfigError as e:
        click.echo(str(e), err=True)
        sys.exit(1)
    except OSError as e:
        click.echo(f"Could not write config: {e}", err=True)
        sys.exit(1)
    click.echo(f"{key}: {_display(parsed)}")


@config.command("get")
@click.argument("key")
def config_get(key: str) -> None:
    """Get a configuration value (the file value, or its default)."""
    if key not in KEYS:
        click.echo(f"Unknown config key: {key}", err=True)
        sys.exit(1)
    cfg = load_config(config_path())
    try:
        value = parse_value(key, cfg[key]) if key in cfg else getattr(Settings(), key)
    except BastionError as e:
        click.echo(str(e), err=True)
        sys.exit(1)
    click.echo(f"{key}: {_display(value)}")


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
