"""
Topoform — CLI entrypoint.

Usage:
    python -m topoform.main --help
    python -m topoform.main config check
    python -m topoform.main generate compose -o docker-compose.yml
    python -m topoform.main generate cluster -o k8s/
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from topoform import __app_name__, __version__
from topoform.core.observability.logging_config import configure_from_cli


@click.group()
@click.version_option(version=__version__, prog_name=__app_name__)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to topoform.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Topoform — render a project topology into deployment manifests."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    configure_from_cli(debug=debug, verbose=verbose, quiet=quiet)


@cli.group()
def config() -> None:
    """Project configuration commands."""


@config.command("check")
@click.option(
    "--dev-resources",
    "dev_resources_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Dev-resources file to validate alongside the project.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, dev_resources_path: str | None, as_json: bool) -> None:
    """Validate topoform.yml configuration."""
    from topoform.core.use_cases.config_check import check_config

    result = check_config(
        config_path=ctx.obj.get("config_path"),
        dev_resources_path=Path(dev_resources_path) if dev_resources_path else None,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.project is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Project: {result.project.id}")
        click.echo(f"   Components: {len(result.project.components)}")
        click.echo(f"   Resources: {len(result.project.resources)}")
        click.echo(f"   Sub-edges: {len(result.project.sub_edge_defs())}")
        click.echo(f"   Endpoints: {len(result.project.endpoints)}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings and not ctx.obj.get("quiet"):
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


# ── Register sub-command groups from topoform/ui/cli/ ───────────

from topoform.ui.cli.generate import generate  # noqa: E402

cli.add_command(generate)


if __name__ == "__main__":
    cli()
