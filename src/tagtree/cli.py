"""tagtree CLI - build and serve tag trees."""

import json
import logging
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console
from rich.markup import escape

from tagtree import __version__
from tagtree.config import (
    ConfigLoadError,
    ConfigValidationError,
    VALID_LOG_LEVELS,
    VALID_OUTPUT_FORMATS,
    TagtreeConfig,
    generate_config_template,
    get_config,
    get_global_config_path,
    get_project_config_path,
    load_config_file,
)
from tagtree.renderers import OutputFormat, render_tree
from tagtree.sources import FileTagSource, TagSourceError
from tagtree.tree.builder import build_tree

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)


def _fail(message: str) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {escape(message)}")
    raise SystemExit(1)


def _get_config(ctx: click.Context) -> TagtreeConfig:
    """Effective config, failing the command if a config file was invalid."""
    if ctx.obj.get("config_error"):
        _fail(ctx.obj["config_error"])
    return ctx.obj["config"]


def _resolve_source(config: TagtreeConfig, source: str | None) -> FileTagSource:
    """Pick the tag file from the argument or the configured source."""
    path = source or config.source.path
    if not path:
        _fail("No tag source given. Pass a SOURCE file or set source.path in config")
    try:
        return FileTagSource(Path(path), format=config.source.format)
    except TagSourceError as e:
        _fail(str(e))


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(VALID_LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level (default: from config, WARNING if unset)",
)
@click.pass_context
def main(ctx: click.Context, log_level: str | None) -> None:
    """tagtree - turn flat tag relations into a browsable tree."""
    ctx.ensure_object(dict)

    # A broken config file must not stop "config validate" from reporting it
    try:
        config = get_config(project_root=Path.cwd())
        config.validate()
        ctx.obj["config_error"] = None
    except (ConfigLoadError, ConfigValidationError) as e:
        config = TagtreeConfig()
        ctx.obj["config_error"] = str(e)

    level = getattr(logging, (log_level or config.defaults.log_level).upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("tagtree").setLevel(level)
    logger.debug("Log level set to %s", logging.getLevelName(level))

    ctx.obj["config"] = config


@main.command()
def version() -> None:
    """Show version."""
    console.print(f"tagtree {__version__}")


@main.command()
@click.argument("source", required=False)
@click.option(
    "--format", "-f", "output_format",
    type=click.Choice(VALID_OUTPUT_FORMATS),
    default=None,
    help="Output format (default: from config)",
)
@click.option("--depth", "-d", type=click.IntRange(min=0), default=None, help="Maximum depth to render")
@click.pass_context
def tree(ctx: click.Context, source: str | None, output_format: str | None, depth: int | None) -> None:
    """Print the tag tree built from SOURCE (a JSON or YAML tag file)."""
    config = _get_config(ctx)
    tag_source = _resolve_source(config, source)

    try:
        tags = tag_source.fetch_all()
    except TagSourceError as e:
        _fail(str(e))

    forest = build_tree(tags)
    fmt = OutputFormat(output_format or config.defaults.output_format)

    output = render_tree(forest, format=fmt, depth=depth)
    click.echo(output, nl=fmt == OutputFormat.JSON)


@main.command()
@click.argument("source", required=False)
@click.option("--host", default=None, help="Bind address (default: from config)")
@click.option("--port", "-p", type=int, default=None, help="Port (default: from config)")
@click.pass_context
def serve(ctx: click.Context, source: str | None, host: str | None, port: int | None) -> None:
    """Serve the tag tree over HTTP at /api/tags/tree."""
    from tagtree.server import start_server

    config = _get_config(ctx)
    if host:
        config.server.host = host
    if port is not None:
        config.server.port = port

    try:
        config.validate()
    except ConfigValidationError as e:
        _fail(str(e))

    start_server(_resolve_source(config, source), config)


# -----------------------------------------------------------------------------


@main.group()
def config() -> None:
    """Configuration management."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show effective configuration (merged from all sources).

    Output is JSON format for easy parsing.
    """
    print(json.dumps(_get_config(ctx).to_dict(), indent=2))


@config.command("init")
@click.option("--global", "is_global", is_flag=True, help="Create global config at ~/.tagtree_config.json")
@click.option("--force", "-f", is_flag=True, help="Overwrite existing config file")
def config_init(is_global: bool, force: bool) -> None:
    """Initialize a configuration file with template.

    By default, creates project config in .tagtree/config.json.
    Use --global to create ~/.tagtree_config.json instead.
    """
    if is_global:
        config_path = get_global_config_path()
    else:
        config_path = get_project_config_path(Path.cwd())

    if config_path.exists() and not force:
        err_console.print(f"[red]Error:[/red] Config file already exists: {config_path}")
        err_console.print("Use --force to overwrite")
        raise SystemExit(1)

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(generate_config_template(), indent=2))

    console.print(f"[green]Created config file:[/green] {config_path}")


@config.command("validate")
def config_validate() -> None:
    """Validate configuration files.

    Checks both global and project config files for valid JSON, known
    field names and valid values. Exits non-zero if errors are found.
    """
    errors = []
    validated = []

    candidates = [
        ("Global config", get_global_config_path()),
        ("Project config", get_project_config_path(Path.cwd())),
    ]
    for label, path in candidates:
        if not path.exists():
            continue
        try:
            load_config_file(path, strict=True).validate()
            validated.append(f"{label}: {path}")
        except (ConfigLoadError, ConfigValidationError) as e:
            errors.append(f"{label} ({path}): {e}")

    for v in validated:
        console.print(f"[green]Valid:[/green] {v}")

    if errors:
        for e in errors:
            err_console.print(f"[red]Error:[/red] {escape(e)}")
        raise SystemExit(1)

    if not validated:
        console.print("[dim]No config files found to validate[/dim]")
    else:
        console.print("\n[green]All config files are valid![/green]")


if __name__ == "__main__":
    main()
