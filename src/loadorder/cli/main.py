"""CLI entry point for loadorder.

Invoked as::

    loadorder [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m loadorder.cli.main

Commands
--------
resolve     Resolve a YAML catalog into a load order
features    List registered feature capabilities
version     Show version information
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

if TYPE_CHECKING:
    from loadorder.catalog.descriptor import PluginDescriptor
    from loadorder.config import LoaderSettings
    from loadorder.session.session import ResolutionSession

console = Console()
err_console = Console(stderr=True)


def _configure_logging(level: str) -> None:
    """Route the package loggers through rich on stderr."""
    package_logger = logging.getLogger("loadorder")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    rich_handler = RichHandler(console=err_console, show_path=False)
    rich_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    package_logger.addHandler(rich_handler)
    package_logger.setLevel(level)


def _load_settings(config: str | None, host_version: str | None) -> LoaderSettings:
    """Build loader settings, exiting on invalid configuration."""
    from pydantic import ValidationError

    from loadorder.config import LoaderSettings

    overrides = {"host_version": host_version} if host_version else {}
    try:
        if config:
            return LoaderSettings.from_yaml(config, **overrides)
        return LoaderSettings(**overrides)
    except (OSError, ValueError, ValidationError) as exc:
        err_console.print(f"[red]Error:[/red] Invalid configuration: {exc}")
        sys.exit(1)


def _load_catalog_or_exit(path: str) -> list[PluginDescriptor]:
    """Load a YAML catalog, printing errors and exiting on failure."""
    from loadorder.catalog import load_catalog
    from loadorder.errors import ManifestError

    try:
        return load_catalog(path)
    except (OSError, ManifestError) as exc:
        err_console.print(f"[red]Catalog error:[/red] {exc}")
        sys.exit(1)


def _severity_color(severity_name: str) -> str:
    """Map an IssueSeverity name to a Rich color string."""
    colors = {
        "ERROR": "red",
        "WARNING": "yellow",
        "INFORMATION": "blue",
    }
    return colors.get(severity_name, "white")


def _print_tables(session: ResolutionSession, catalog_path: str) -> None:
    order = Table(title=f"Load order: {catalog_path}")
    order.add_column("#", justify="right")
    order.add_column("Name", style="bold")
    order.add_column("Id")
    order.add_column("Version")
    order.add_column("Features")
    for position, d in enumerate(session.accepted, start=1):
        name = f"{d.name} [dim](bare)[/dim]" if d.is_bare else d.name
        features = ", ".join(f.request.text for f in d.features if f.request is not None)
        order.add_row(str(position), name, d.id or "", str(d.version), features)
    console.print(order)

    removed = [*session.disabled, *session.ignored]
    if removed:
        table = Table(title="Not loaded", show_lines=True)
        table.add_column("Severity", style="bold", min_width=10)
        table.add_column("Code", min_width=6)
        table.add_column("Plugin")
        table.add_column("Reason")
        for d in removed:
            reason = session.reason_for(d)
            if reason is None:
                table.add_row("", "", str(d), "")
                continue
            color = _severity_color(reason.effective_severity.name)
            table.add_row(
                f"[{color}]{reason.effective_severity.name}[/{color}]",
                reason.code,
                str(d),
                reason.message + (f"\n[dim]{reason.detail}[/dim]" if reason.detail else ""),
            )
        console.print(table)

    findings = [i for i in session.issues if session.reason_for(i.descriptor) is not i]
    if findings:
        table = Table(title="Other findings", show_lines=True)
        table.add_column("Severity", style="bold", min_width=10)
        table.add_column("Code", min_width=6)
        table.add_column("Plugin")
        table.add_column("Message")
        for issue in findings:
            color = _severity_color(issue.effective_severity.name)
            table.add_row(
                f"[{color}]{issue.effective_severity.name}[/{color}]",
                issue.code,
                issue.descriptor.name,
                issue.message + (f"\n[dim]{issue.detail}[/dim]" if issue.detail else ""),
            )
        console.print(table)

    console.print(f"\n[bold]Summary:[/bold] {session.summary()}")
    if session.newly_disabled:
        console.print(
            f"[yellow]Added to the disabled list:[/yellow] {', '.join(session.newly_disabled)}"
        )


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="loadorder")
def cli() -> None:
    """Plugin catalog resolution: conflicts, dependencies and load order."""


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from loadorder import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]loadorder[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# features command
# ---------------------------------------------------------------------------


@cli.command(name="features")
@click.option(
    "--entrypoints/--no-entrypoints",
    default=True,
    help="Include capabilities installed by other packages",
)
def features_command(entrypoints: bool) -> None:
    """List registered feature capabilities."""
    from loadorder.features import FeatureRegistry

    settings = _load_settings(None, None)
    registry = FeatureRegistry()
    if entrypoints:
        registry.load_entrypoints(settings.feature_entrypoint_group)

    table = Table(title="Registered features")
    table.add_column("Name", style="bold")
    table.add_column("Class")
    table.add_column("Kind")
    for name in registry.list_features():
        cls = registry.get(name)
        table.add_row(name, f"{cls.__module__}.{cls.__qualname__}", "feature")
    for name in registry.list_templates():
        cls = registry.find_template(name)
        if cls is not None:
            table.add_row(name, f"{cls.__module__}.{cls.__qualname__}", "template")
    console.print(table)


# ---------------------------------------------------------------------------
# resolve command
# ---------------------------------------------------------------------------


@cli.command(name="resolve")
@click.argument("catalog", type=click.Path(exists=False))
@click.option(
    "--disabled",
    "-d",
    "disabled_ids",
    multiple=True,
    help="Identity to treat as disabled (repeatable)",
)
@click.option("--host-version", default=None, help="Host version to check plugins against")
@click.option("--config", "-c", default=None, help="YAML settings file")
@click.option(
    "--features/--no-features",
    default=True,
    help="Negotiate feature requests after ordering",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json", "yaml"], case_sensitive=False),
    default="table",
    help="Output format",
)
@click.option("--output", "-o", default=None, help="Output file path (defaults to stdout)")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
@click.option("--strict", is_flag=True, default=False, help="Exit 1 if any plugin was ignored")
def resolve_command(
    catalog: str,
    disabled_ids: tuple[str, ...],
    host_version: str | None,
    config: str | None,
    features: bool,
    output_format: str,
    output: str | None,
    verbose: bool,
    strict: bool,
) -> None:
    """Resolve a plugin catalog into a load order.

    CATALOG is the path to a YAML file of plugin manifests.

    Examples:

    \b
        loadorder resolve plugins.yaml
        loadorder resolve plugins.yaml -d BrokenPlugin --format json
        loadorder resolve plugins.yaml --host-version 1.29.1 --strict
    """
    from loadorder.features import FeatureRegistry
    from loadorder.report import ReportSerializer
    from loadorder.resolver import LoadOrderResolver

    settings = _load_settings(config, host_version)
    _configure_logging("DEBUG" if verbose else settings.log_level)

    descriptors = _load_catalog_or_exit(catalog)
    disabled_store = {*settings.disabled_ids, *disabled_ids}

    registry = FeatureRegistry()
    registry.load_entrypoints(settings.feature_entrypoint_group)
    resolver = LoadOrderResolver(disabled_store=disabled_store, settings=settings, registry=registry)
    session = resolver.resolve(descriptors)
    if features:
        resolver.evaluate_features(session)

    if output_format == "table":
        _print_tables(session, catalog)
    else:
        serializer = ReportSerializer()
        if output_format == "json":
            text = serializer.to_json(session, indent=2)
        else:
            text = serializer.to_yaml(session)
        if output:
            Path(output).write_text(text, encoding="utf-8")
            console.print(f"[green]Report written to[/green] {output}")
        else:
            click.echo(text)

    if strict and session.ignored:
        sys.exit(1)


if __name__ == "__main__":
    cli()
