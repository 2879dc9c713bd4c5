"""
CLI commands for pixi workspaces.

Thin wrappers over ``rosenv.core.services.pixi``.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click


@click.group()
def pixi() -> None:
    """Pixi workspaces — bridge project envs with global installs."""


@pixi.command()
@click.option(
    "--workspace",
    "-w",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Workspace root (default: current directory).",
)
@click.pass_context
def activate(ctx: click.Context, workspace: Path) -> None:
    """Generate activation script for pixi workspace."""
    from rosenv.core.config.loader import ConfigError, load_settings
    from rosenv.core.services.pixi import generate_workspace_script

    try:
        settings = load_settings(ctx.obj.get("config_path"), ctx.obj["environ"])
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    try:
        script = generate_workspace_script(workspace, settings)
    except OSError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    click.echo(script, nl=False)
