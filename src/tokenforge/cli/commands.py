"""Theme build CLI commands.

This module provides the ``tokenforge`` command group: building a theme,
validating it, reporting contrast, generating type declarations and listing
available plugins.
"""

import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .. import __version__
from ..config import BuildSettings, load_config
from ..errors import ThemeBuildError, ThemeValidationFailed
from ..pipeline import run_pipeline
from ..theme_engine.refs import resolve_color_ref
from ..theme_engine.registry import PluginRegistry
from ..theme_engine.scale import generate_all_color_scales
from ..theme_engine.typegen import write_type_declarations
from ..theme_engine.utils import calculate_contrast_ratio
from ..theme_engine.validator import CONTRAST_PAIRS, contrast_thresholds

logger = logging.getLogger(__name__)


def get_console() -> Console:
    return Console()


def configure_logging(level: str) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)],
        force=True,
    )


def _settings(ctx, **overrides) -> BuildSettings:
    settings: BuildSettings = ctx.obj['settings']
    changes = {k: v for k, v in overrides.items() if v is not None}
    return dataclasses.replace(settings, **changes) if changes else settings


def _load_plugins(settings: BuildSettings, names: Tuple[str, ...]) -> List:
    registry = PluginRegistry(settings.plugins_dir)
    selected = list(names) or settings.plugins
    if not selected:
        return registry.load_all()
    return registry.load_many(selected)


def _print_validation(console: Console, result) -> None:
    if result.errors:
        table = Table(title="Errors", show_header=True, header_style="bold red")
        table.add_column("Type", style="red")
        table.add_column("Plugin", style="cyan")
        table.add_column("Message")
        for error in result.errors:
            table.add_row(error.type.value, error.plugin_id or "-", error.message)
        console.print(table)

    for warning in result.warnings:
        console.print(f"[yellow]warning[/yellow] ({warning.type.value}) {warning.message}")


plugin_option = click.option(
    "--plugin", "-p", "plugin_names", multiple=True,
    help="Plugin name or module:attribute (repeatable; defaults to configured plugins)",
)


@click.group()
@click.version_option(__version__, prog_name="tokenforge")
@click.option("--config", type=click.Path(), help="Path to settings file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx, config, verbose):
    """TokenForge - build design-token themes from plugins."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose

    try:
        settings = load_config(Path(config) if config else None)
    except Exception as e:
        get_console().print(f"[red]Configuration error: {e}[/red]")
        sys.exit(1)

    ctx.obj['settings'] = settings
    configure_logging("DEBUG" if verbose else settings.log_level)


@main.command()
@plugin_option
@click.option("--output-dir", "-o", type=click.Path(), help="Directory for assets and font CSS")
@click.option("--types-output", type=click.Path(), help="Path for the type declarations")
@click.option("--standard", type=click.Choice(['AA', 'AAA']), help="WCAG contrast standard")
@click.option("--fail-on-contrast", is_flag=True, default=None, help="Treat contrast violations as errors")
@click.pass_context
def build(ctx, plugin_names, output_dir, types_output, standard, fail_on_contrast):
    """Build the theme and write its artifacts."""
    console = get_console()
    try:
        settings = _settings(
            ctx,
            output_dir=output_dir,
            types_output=types_output,
            contrast_standard=standard,
            fail_on_contrast=fail_on_contrast,
        )
        plugins = _load_plugins(settings, plugin_names)
        result = run_pipeline(plugins, settings)
    except ThemeValidationFailed as e:
        _print_validation(console, e.result)
        console.print(f"[red]Build failed: {len(e.result.errors)} validation error(s)[/red]")
        sys.exit(1)
    except ThemeBuildError as e:
        console.print(f"[red]Build failed: {e}[/red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Error building theme: {e}[/red]")
        sys.exit(1)

    _print_validation(console, result.validation)
    for warning in result.warnings:
        console.print(f"[yellow]warning[/yellow] {warning}")

    summary = result.summary()
    table = Table(show_header=False, box=None)
    table.add_column("Item", style="cyan")
    table.add_column("Value")
    table.add_row("Plugins", " -> ".join(result.plugin_order))
    table.add_row("Colors", str(summary['colors']))
    table.add_row("Variants", ", ".join(result.config.themes))
    table.add_row("Assets copied", str(summary['assets']))
    table.add_row("Contrast violations", str(summary['contrast_violations']))
    if result.font_css_path:
        table.add_row("Font CSS", str(result.font_css_path))
    if result.types_path:
        table.add_row("Types", str(result.types_path))

    console.print(Panel(table, title="[green]Theme built[/green]", border_style="green"))


@main.command()
@plugin_option
@click.option("--standard", type=click.Choice(['AA', 'AAA']), help="WCAG contrast standard")
@click.pass_context
def validate(ctx, plugin_names, standard):
    """Validate the theme without writing anything."""
    console = get_console()
    try:
        settings = _settings(ctx, contrast_standard=standard)
        plugins = _load_plugins(settings, plugin_names)
        result = run_pipeline(plugins, settings, write=False)
    except ThemeValidationFailed as e:
        _print_validation(console, e.result)
        console.print(f"[red]Theme is invalid: {len(e.result.errors)} error(s)[/red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Error validating theme: {e}[/red]")
        sys.exit(1)

    _print_validation(console, result.validation)
    console.print(
        f"[green]Theme is valid[/green] "
        f"({len(result.config.colors)} colors, {len(result.config.themes)} variants, "
        f"{len(result.validation.warnings)} warnings)"
    )


@main.command()
@plugin_option
@click.option("--standard", type=click.Choice(['AA', 'AAA']), help="WCAG contrast standard")
@click.option("--variant", help="Only report this theme variant")
@click.option("--strict", is_flag=True, help="Exit with an error when any pair fails")
@click.pass_context
def contrast(ctx, plugin_names, standard, variant, strict):
    """Report contrast ratios for semantic token pairs."""
    console = get_console()
    try:
        settings = _settings(ctx, contrast_standard=standard)
        plugins = _load_plugins(settings, plugin_names)
        result = run_pipeline(plugins, settings, write=False)
    except Exception as e:
        console.print(f"[red]Error checking contrast: {e}[/red]")
        sys.exit(1)

    config = result.config
    if variant and variant not in config.themes:
        console.print(f"[red]Unknown theme variant: {variant}[/red]")
        sys.exit(1)

    primitives = generate_all_color_scales(dict(config.colors))
    thresholds = contrast_thresholds(settings.contrast_standard, config)

    failures = 0
    for name, tokens in config.themes.items():
        if variant and name != variant:
            continue

        table = Table(title=f"{name} ({settings.contrast_standard})", show_header=True, header_style="bold")
        table.add_column("Foreground", style="cyan")
        table.add_column("Background", style="cyan")
        table.add_column("Ratio", justify="right")
        table.add_column("Required", justify="right")
        table.add_column("Result")

        items = tokens.as_dict()
        for fg, bg, category in CONTRAST_PAIRS:
            required = thresholds['focus'] if fg == 'focus' else thresholds[category]
            try:
                ratio = calculate_contrast_ratio(
                    resolve_color_ref(items[fg], primitives),
                    resolve_color_ref(items[bg], primitives),
                )
            except (KeyError, ValueError) as e:
                table.add_row(fg, bg, "-", f"{required:.1f}", Text(f"skipped ({e})", style="yellow"))
                continue

            passed = ratio >= required
            failures += 0 if passed else 1
            table.add_row(
                fg,
                bg,
                f"{ratio:.2f}",
                f"{required:.1f}",
                Text("pass", style="green") if passed else Text("fail", style="red"),
            )

        console.print(table)

    if failures:
        console.print(f"[yellow]{failures} pair(s) below the required ratio[/yellow]")
        if strict:
            sys.exit(1)
    else:
        console.print("[green]All pairs meet the required ratio[/green]")


@main.command()
@plugin_option
@click.option("--output", "-o", type=click.Path(), help="Output path ('-' for stdout)")
@click.option("--module-name", help="Module that exports the ColorRef type")
@click.option("--jsdoc/--no-jsdoc", default=None, help="Include JSDoc comments")
@click.pass_context
def types(ctx, plugin_names, output, module_name, jsdoc):
    """Generate TypeScript declarations for the color registry."""
    console = get_console()
    try:
        settings = _settings(ctx, module_name=module_name, include_jsdoc=jsdoc)
        plugins = _load_plugins(settings, plugin_names)
        result = run_pipeline(plugins, settings, write=False)

        target: Optional[str] = output or settings.types_output
        if target == '-' or not target:
            click.echo(result.types, nl=False)
            return
        path = write_type_declarations(target, result.types)
    except Exception as e:
        console.print(f"[red]Error generating types: {e}[/red]")
        sys.exit(1)

    console.print(f"[green]Wrote type declarations to {path}[/green]")


@main.command(name="list")
@click.pass_context
def list_plugins(ctx):
    """List available plugins."""
    console = get_console()
    try:
        settings: BuildSettings = ctx.obj['settings']
        registry = PluginRegistry(settings.plugins_dir)
        plugins = registry.list_plugins()
    except Exception as e:
        console.print(f"[red]Error listing plugins: {e}[/red]")
        sys.exit(1)

    table = Table(title="Available Plugins", show_header=True, header_style="bold")
    table.add_column("Name", style="cyan", min_width=12)
    table.add_column("Id", style="cyan")
    table.add_column("Version", style="magenta")
    table.add_column("Type", style="blue", width=8)
    table.add_column("Depends on")
    table.add_column("Description")

    for info in plugins:
        if info.get('error'):
            table.add_row(info['name'], "-", "-", info['type'], "-", f"[red]{info['error']}[/red]")
            continue
        deps = ", ".join(d['id'] for d in info.get('dependencies', [])) or "-"
        table.add_row(
            info['name'],
            info['id'],
            info['version'],
            info['type'],
            deps,
            info.get('description') or "",
        )

    console.print(table)
