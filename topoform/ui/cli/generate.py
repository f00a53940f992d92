"""
CLI commands for manifest generation.

Thin wrappers over ``topoform.core.use_cases.generate``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from topoform.core.services.generate import Backend

_dev_resources_option = click.option(
    "--dev-resources",
    "dev_resources_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Dev-resources file mapping resources to local services.",
)
_json_option = click.option(
    "--json-output", "--json", "as_json", is_flag=True, help="Output as JSON."
)


@click.group()
def generate() -> None:
    """Generate deployment manifests — compose file, cluster manifests."""


def _run(
    ctx: click.Context,
    backend: Backend,
    out: str,
    dev_resources_path: str | None,
    as_json: bool,
    include_edges: bool = True,
) -> None:
    from topoform.core.use_cases.generate import run_generate

    result = run_generate(
        backend,
        Path(out),
        config_path=ctx.obj.get("config_path"),
        dev_resources_path=Path(dev_resources_path) if dev_resources_path else None,
        include_edges=include_edges,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if not result.ok:
        click.secho(f"❌ {result.message}", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")
        click.echo()
        sys.exit(1)

    if not ctx.obj.get("quiet"):
        click.secho(f"✅ {result.message}", fg="green")
        if ctx.obj.get("verbose"):
            for path in result.written:
                click.echo(f"   {path}")


@generate.command("compose")
@click.option(
    "--out-file",
    "-o",
    "out",
    required=True,
    type=click.Path(),
    help="Path of the compose file to write.",
)
@click.option("--no-edges", is_flag=True, help="Skip reverse-proxy services for sub-edges.")
@_dev_resources_option
@_json_option
@click.pass_context
def compose(
    ctx: click.Context,
    out: str,
    no_edges: bool,
    dev_resources_path: str | None,
    as_json: bool,
) -> None:
    """Generate a Docker Compose (v3) file."""
    _run(ctx, Backend.COMPOSE, out, dev_resources_path, as_json, include_edges=not no_edges)


@generate.command("cluster")
@click.option(
    "--out-dir",
    "-o",
    "out",
    required=True,
    type=click.Path(),
    help="Existing directory to write Kubernetes manifests into.",
)
@_dev_resources_option
@_json_option
@click.pass_context
def cluster(
    ctx: click.Context,
    out: str,
    dev_resources_path: str | None,
    as_json: bool,
) -> None:
    """Generate Kubernetes service/deployment manifests (one file each)."""
    _run(ctx, Backend.CLUSTER, out, dev_resources_path, as_json)
