"""
rosenv — CLI entrypoint.

Usage:
    rosenv --help
    rosenv setup
    eval "$(rosenv activate humble)"

Commands whose output is meant for ``eval`` (activate, deactivate,
init, pixi activate) write only shell code to stdout; errors always go to stderr.
"""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import NoReturn

import click

from rosenv import __version__
from rosenv.core.config.loader import ConfigError, load_settings
from rosenv.core.errors import RosenvError
from rosenv.core.models.links import (
    BROKEN,
    CANCELLED,
    CREATED,
    REMOVED,
    REPLACED,
    UP_TO_DATE,
    LinkResult,
)
from rosenv.core.models.settings import Settings
from rosenv.core.observability.logging_config import resolve_level, setup_logging

GUIDE_URL = "https://github.com/alvgaona/ros2env/blob/main/SETUP_GUIDE.md"


@click.group()
@click.version_option(version=__version__, prog_name="rosenv")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to config.yml (default: ~/.config/rosenv/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """rosenv — ROS 2 distribution environment manager."""
    ctx.ensure_object(dict)

    # The environment is read once here and handed down as plain data.
    environ = dict(os.environ)
    ctx.obj["environ"] = environ
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(debug, verbose, quiet, environ.get("ROSENV_LOG_LEVEL")),
        log_file=environ.get("ROSENV_LOG_FILE"),
        log_file_level=environ.get("ROSENV_LOG_FILE_LEVEL"),
    )


# ── Helpers ─────────────────────────────────────────────────────


def _settings(ctx: click.Context) -> Settings:
    """Load settings once per invocation; exit 1 on a bad config."""
    if "settings" not in ctx.obj:
        try:
            ctx.obj["settings"] = load_settings(ctx.obj.get("config_path"), ctx.obj["environ"])
        except ConfigError as e:
            _fail(str(e))
    return ctx.obj["settings"]


def _environ(ctx: click.Context) -> Mapping[str, str]:
    return ctx.obj["environ"]


def _detect_shell(environ: Mapping[str, str]) -> str:
    """Basename of $SHELL, defaulting to bash."""
    shell = environ.get("SHELL", "")
    return shell.rsplit("/", 1)[-1] or "bash"


def _fail(message: str, hint: str = "") -> NoReturn:
    click.secho(f"❌ {message}", fg="red", err=True)
    if hint:
        click.echo(f"\n{hint}", err=True)
    sys.exit(1)


def _fail_error(error: RosenvError | OSError) -> NoReturn:
    if isinstance(error, RosenvError):
        _fail(error.message, error.hint)
    _fail(str(error))


def _confirm(question: str) -> bool:
    return click.confirm(question, default=False)


def _echo_link_result(settings: Settings, result: LinkResult) -> None:
    link = settings.canonical_path(result.version)
    if result.action == CREATED:
        click.secho(f"  ✓ {link} → {result.target}", fg="green")
    elif result.action == REPLACED:
        click.secho(f"  ✓ {link} → {result.target}", fg="green", nl=False)
        click.echo(f"  (was {result.previous or 'a directory'})")
    elif result.action == UP_TO_DATE:
        click.echo(f"  ✓ {link} (already points to correct location)")
    else:
        click.secho(f"  ⊘ {link} skipped", fg="yellow")


# ── Linking ─────────────────────────────────────────────────────


@cli.command()
@click.option("--force", "-f", is_flag=True, help="Overwrite existing entries without asking.")
@click.pass_context
def setup(ctx: click.Context, force: bool) -> None:
    """Auto-detect pixi ROS installations and create symlinks."""
    from rosenv.core.services.links import setup_links
    from rosenv.core.services.scanner import scan_installations

    settings = _settings(ctx)
    click.echo(f"Scanning {settings.cache_dir} for ROS 2 installations...\n")

    try:
        installs = scan_installations(settings)
    except OSError as e:
        _fail_error(e)

    if not installs:
        click.secho(f"⚠️  No ROS distributions found in {settings.cache_dir}", fg="yellow")
        click.echo("\nInstall with pixi global:")
        click.echo("  pixi global install --environment ros-humble -c robostack-staging ros-humble-desktop")
        click.echo("  pixi global install --environment ros-jazzy -c robostack-staging ros-jazzy-desktop")
        click.echo("\nThen: rosenv setup")
        return

    click.secho("Found distributions:", bold=True)
    for inst in installs:
        click.echo(f"  • {settings.prefix}{inst.version}-*  → {inst.path}")
    click.echo()

    click.echo("Creating symlinks:")
    try:
        for result in setup_links(settings, _confirm, force=force, installations=installs):
            _echo_link_result(settings, result)
    except (RosenvError, OSError) as e:
        _fail_error(e)

    click.echo()
    click.secho("Setup complete!", fg="green", bold=True)
    click.echo("\nNext steps:")
    shell = _detect_shell(_environ(ctx))
    click.echo(f"  1. Add shell integration: rosenv init {shell} >> ~/.{shell}rc")
    click.echo(f"  2. Reload shell: source ~/.{shell}rc")
    click.echo("  3. Switch distributions: ros-distro humble")


@cli.command()
@click.argument("version")
@click.option("--force", "-f", is_flag=True, help="Remove without asking.")
@click.pass_context
def remove(ctx: click.Context, version: str, force: bool) -> None:
    """Remove a distribution symlink."""
    from rosenv.core.services.links import remove_link

    settings = _settings(ctx)
    try:
        result, install = remove_link(settings, version, _confirm, force=force)
    except (RosenvError, OSError) as e:
        _fail_error(e)

    if result.action == CANCELLED:
        click.echo("Cancelled")
        return

    click.secho(f"✓ Removed {settings.canonical_path(version)}", fg="green")
    if install is not None:
        click.echo("\nNote: The pixi installation remains at:")
        click.echo(f"  {install.path}")
        click.echo("\nTo reinstall the symlink: rosenv setup")


@cli.command()
@click.option("--force", "-f", is_flag=True, help="Remove without asking.")
@click.pass_context
def cleanup(ctx: click.Context, force: bool) -> None:
    """Remove all distribution symlinks."""
    from rosenv.core.services.links import cleanup_links
    from rosenv.core.services.scanner import list_canonical_entries

    settings = _settings(ctx)
    try:
        versions = list_canonical_entries(settings)
    except (RosenvError, OSError) as e:
        _fail_error(e)

    if not versions:
        click.echo(f"No symlinks found in {settings.canonical_dir}")
        return

    click.secho("Found symlinks:", bold=True)
    for version in versions:
        click.echo(f"  - {settings.canonical_path(version)}")
    click.echo()

    try:
        results = cleanup_links(settings, _confirm, force=force)
    except (RosenvError, OSError) as e:
        _fail_error(e)

    if any(r.action == CANCELLED for r in results):
        click.echo("Cancelled")
        return

    for result in results:
        link = settings.canonical_path(result.version)
        if result.action == REMOVED:
            click.secho(f"✓ Removed {link}", fg="green")
        else:
            click.secho(f"⊘ Kept {link} (not a symlink)", fg="yellow")

    click.echo("\nCleanup complete.")
    click.echo(f"\nNote: Pixi installations remain in {settings.cache_dir}")
    click.echo("To recreate symlinks: rosenv setup")


@cli.command()
@click.pass_context
def refresh(ctx: click.Context) -> None:
    """Refresh/update all symlinks."""
    from rosenv.core.services.links import apply_refresh, plan_refresh

    settings = _settings(ctx)
    click.echo("Scanning for changes...\n")

    try:
        plan = plan_refresh(settings)
    except (RosenvError, OSError) as e:
        _fail_error(e)

    if plan.existing:
        click.secho("Existing symlinks:", bold=True)
        for result in plan.existing:
            if result.action == BROKEN:
                click.secho(f"  ✗ {result.version}: broken symlink", fg="red")
            else:
                click.secho(f"  ✓ {result.version}: up to date", fg="green")
        click.echo()

    if not plan.new:
        click.echo("No new distributions found.")
    else:
        click.secho("New distributions found:", bold=True)
        for inst in plan.new:
            click.echo(f"  + {inst.version} → {inst.path}")
        click.echo()

        click.echo("Creating symlinks:")
        try:
            for result in apply_refresh(settings, plan, _confirm):
                _echo_link_result(settings, result)
        except (RosenvError, OSError) as e:
            _fail_error(e)

    if plan.broken:
        click.echo("\nFix broken links: rosenv remove <distro> && rosenv setup")
    click.echo("\nRefresh complete.")


# ── Inspect ─────────────────────────────────────────────────────


@cli.command("list")
@click.option("--names-only", is_flag=True, help="Only output distribution names (for scripting).")
@click.option("--short", is_flag=True, help="Output short format (space-separated names).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_versions(ctx: click.Context, names_only: bool, short: bool, as_json: bool) -> None:
    """List available ROS distributions."""
    from rosenv.core.services.reports import get_list

    settings = _settings(ctx)
    try:
        result = get_list(settings, _environ(ctx))
    except (RosenvError, OSError) as e:
        _fail_error(e)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if not result.versions:
        if not names_only and not short:
            click.echo(f"No ROS distributions found in {settings.canonical_dir}")
            click.echo("\nRun: rosenv setup")
        return

    # --short wins over --names-only
    if short:
        click.echo(" ".join(result.versions))
    elif names_only:
        for version in result.versions:
            click.echo(version)
    else:
        click.secho("Available ROS distributions:", bold=True)
        for version in result.versions:
            if version == result.current:
                click.secho(f"  * {version} (active)", fg="green")
            else:
                click.echo(f"    {version}")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show current active distribution."""
    from rosenv.core.services.reports import get_status

    settings = _settings(ctx)
    environ = _environ(ctx)
    try:
        result = get_status(settings, environ, shell=_detect_shell(environ))
    except (RosenvError, OSError) as e:
        _fail_error(e)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.active is None:
        click.echo("No ROS 2 distribution active\n")
        if result.available:
            click.secho("Available distributions:", bold=True)
            for version in result.available:
                click.echo(f"  - {version}")
            click.echo("\nActivate: ros-distro <distro>")
        else:
            click.echo("Run: rosenv setup")
        return

    click.secho(f"ROS 2 {result.active} is active\n", fg="green", bold=True)
    click.secho("Environment:", bold=True)
    for var, value in result.environment.items():
        click.echo(f"  {var + ':':<19}{value}")

    if result.setup_file is not None:
        click.secho("\nSetup file:", bold=True)
        click.echo(f"  ✓ {result.setup_file}")


@cli.command()
@click.argument("version")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def info(ctx: click.Context, version: str, as_json: bool) -> None:
    """Show information about a distribution."""
    from rosenv.core.services.reports import get_info

    settings = _settings(ctx)
    try:
        result = get_info(settings, version)
    except (RosenvError, OSError) as e:
        _fail_error(e)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    entry = result.entry
    click.echo(f"Distribution: {version}")
    click.echo(f"Path:         {entry.path}")
    if entry.is_symlink:
        click.echo("Type:         Symlink")
        click.echo(f"Target:       {entry.target}")
    else:
        click.echo("Type:         Directory")

    click.secho("\nSetup files:", bold=True)
    for name, present in result.setup_files.items():
        if present:
            click.secho(f"  ✓ {name}", fg="green")
        else:
            click.secho(f"  ✗ {name}", fg="red")

    click.secho("\nKey directories:", bold=True)
    for name, count in result.key_dirs.items():
        suffix = f" ({count} entries)" if count is not None else ""
        click.echo(f"  ✓ {name}{suffix}")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def doctor(ctx: click.Context, as_json: bool) -> None:
    """Verify installation and diagnose issues."""
    from rosenv.core.services.doctor import FAIL, WARN, run_doctor

    settings = _settings(ctx)
    report = run_doctor(settings)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    click.echo("Checking ROS 2 environment setup...\n")

    section = ""
    for check in report.checks:
        if check.section != section:
            section = check.section
            click.echo()
            if section:
                click.secho(f"Distribution: {section}", bold=True)

        indent = "  " if section else ""
        if check.status == FAIL:
            click.secho(f"{indent}✗ {check.message}", fg="red")
        elif check.status == WARN:
            click.secho(f"{indent}⚠ {check.message}", fg="yellow")
        else:
            click.secho(f"{indent}✓ {check.message}", fg="green")
        if check.hint:
            click.echo(f"{indent}  Fix: {check.hint}")

    click.echo()
    if report.ok:
        click.secho("All checks passed!", fg="green", bold=True)
    else:
        if report.errors:
            click.secho(f"{report.errors} error(s) found", fg="red")
        if report.warnings:
            click.secho(f"{report.warnings} warning(s) found", fg="yellow")


# ── Shell scripts ───────────────────────────────────────────────


@cli.command()
@click.argument("version")
@click.pass_context
def activate(ctx: click.Context, version: str) -> None:
    """Generate shell commands to activate a distribution."""
    from rosenv.core.services.scripts import generate_activation_script

    settings = _settings(ctx)
    try:
        script = generate_activation_script(settings, version, _detect_shell(_environ(ctx)))
    except (RosenvError, OSError) as e:
        _fail_error(e)
    click.echo(script, nl=False)


@cli.command()
@click.pass_context
def deactivate(ctx: click.Context) -> None:
    """Generate shell commands to deactivate the ROS environment."""
    from rosenv.core.services.scripts import generate_deactivation_script

    click.echo(generate_deactivation_script(_settings(ctx)), nl=False)


@cli.command()
@click.argument("shell")
def init(shell: str) -> None:
    """Generate shell integration code (zsh, bash)."""
    from rosenv.core.services.scripts import generate_shell_integration

    click.echo(generate_shell_integration(shell))


@cli.command("setup-guide")
def setup_guide() -> None:
    """Show guide for installing ROS 2 with pixi global."""
    click.echo("Opening ROS 2 Setup Guide in your browser...\n")
    click.echo(f"URL: {GUIDE_URL}\n")

    if click.launch(GUIDE_URL) == 0:
        click.secho("✓ Setup guide opened in your default browser", fg="green")
        click.echo("\nIf the browser didn't open, visit:")
    else:
        click.secho("✗ Failed to open browser", fg="red", err=True)
        click.echo("\nPlease visit the guide manually:")
    click.echo(f"  {GUIDE_URL}")


# ── Register sub-command groups from rosenv/ui/cli/ ───────────────

from rosenv.ui.cli.pixi import pixi

cli.add_command(pixi)


if __name__ == "__main__":
    cli()
