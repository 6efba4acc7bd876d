"""
hostprep — CLI entrypoint.

Usage:
    hostprep --help
    hostprep run
    hostprep verify
    hostprep list
    hostprep config check
"""

from __future__ import annotations

import json
import os
import signal
import sys
import threading
from contextlib import contextmanager
from pathlib import Path

import click

from hostprep import __version__
from hostprep.core.observability.logging_config import (
    FILE_ENV,
    FILE_LEVEL_ENV,
    resolve_level,
    setup_logging,
)

_RENDERERS = ["auto", "plain", "styled", "gum"]


@click.group()
@click.version_option(version=__version__, prog_name="hostprep")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to hostprep.yml (default: $HOSTPREP_CONFIG or auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """hostprep — provision a workstation from a declared step table."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(FILE_ENV),
        log_file_level=os.environ.get(FILE_LEVEL_ENV),
    )


@contextmanager
def _cancel_on_interrupt(cancel: threading.Event):
    """Turn the first Ctrl-C into cooperative cancellation.

    The step in flight finishes (or times out); the rest are recorded
    as cancelled. A second Ctrl-C falls through to the default handler.
    """

    def _handler(signum, frame):
        click.secho("\n⚠️  Interrupted: finishing current step, then stopping.", fg="yellow", err=True)
        cancel.set()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    try:
        previous = signal.signal(signal.SIGINT, _handler)
    except ValueError:
        # Not the main thread; leave signal handling alone
        yield
        return
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _echo_warnings(warnings: list[str]) -> None:
    if not warnings:
        return
    click.secho("⚠️  Warnings:", fg="yellow", err=True)
    for warn in warnings:
        click.echo(f"   • {warn}", err=True)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--only", "only", multiple=True, help="Run only these step ids (repeatable).")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.option(
    "--timeout",
    type=float,
    default=None,
    envvar="HOSTPREP_TIMEOUT",
    help="Per-install timeout in seconds (0 = unbounded).",
)
@click.option("--jobs", "-j", type=int, default=None, help="Concurrent checks during verification.")
@click.option(
    "--renderer",
    type=click.Choice(_RENDERERS),
    default=None,
    help="Report style (default: from config, else auto).",
)
@click.option("--skip-prereqs", is_flag=True, help="Skip the platform and sudo preflight.")
@click.pass_context
def run(
    ctx: click.Context,
    as_json: bool,
    only: tuple[str, ...],
    yes: bool,
    timeout: float | None,
    jobs: int | None,
    renderer: str | None,
    skip_prereqs: bool,
) -> None:
    """Provision this host: install every step, then verify.

    Exits 0 only when every step verifies as satisfied.

    Examples:

        hostprep run

        hostprep run --only tmux --only mosh --yes

        HOSTPREP_STEPS=nodejs,yarn hostprep run --skip-prereqs
    """
    from hostprep.core.use_cases.provision import run_provision
    from hostprep.ui.render import select_renderer

    quiet = ctx.obj.get("quiet", False)
    show_progress = not as_json and not quiet

    def _confirm(registry) -> bool:
        click.secho(f"\nAbout to provision {len(registry)} step(s):", fg="cyan", bold=True)
        for step in registry:
            click.echo(f"   • {step.label}")
        return click.confirm("Continue?", default=True)

    def _progress(step, outcome) -> None:
        if outcome.installed:
            click.secho(f"   ✓ {step.label}", fg="green", nl=False)
        elif outcome.skipped:
            click.secho(f"   ⊘ {step.label}", fg="yellow", nl=False)
        else:
            click.secho(f"   ✗ {step.label}", fg="red", nl=False)
        timing = f" ({outcome.duration_ms}ms)" if outcome.duration_ms else ""
        click.echo(timing)
        if outcome.failed and outcome.diagnostic and ctx.obj.get("verbose"):
            for line in outcome.diagnostic.split("\n")[:5]:
                click.echo(f"     │ {line}")

    interactive = not yes and not as_json and sys.stdin.isatty()
    cancel = threading.Event()

    with _cancel_on_interrupt(cancel):
        result = run_provision(
            config_path=ctx.obj.get("config_path"),
            only=list(only) if only else None,
            timeout=timeout,
            jobs=jobs,
            skip_prereqs=skip_prereqs,
            confirm=_confirm if interactive else None,
            cancel=cancel,
            on_progress=_progress if show_progress else None,
        )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    assert result.config is not None
    assert result.verification is not None

    preference = renderer or result.config.defaults.renderer
    click.echo()
    click.echo(select_renderer(preference).render(result.run, result.verification))
    click.echo()
    sys.exit(result.exit_code)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--only", "only", multiple=True, help="Verify only these step ids (repeatable).")
@click.option("--jobs", "-j", type=int, default=None, help="Concurrent checks.")
@click.option(
    "--renderer",
    type=click.Choice(_RENDERERS),
    default=None,
    help="Report style (default: from config, else auto).",
)
@click.pass_context
def verify(
    ctx: click.Context,
    as_json: bool,
    only: tuple[str, ...],
    jobs: int | None,
    renderer: str | None,
) -> None:
    """Check every step without installing anything."""
    from hostprep.core.use_cases.verify import run_verification
    from hostprep.ui.render import select_renderer

    result = run_verification(
        config_path=ctx.obj.get("config_path"),
        only=list(only) if only else None,
        jobs=jobs,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    assert result.config is not None
    assert result.verification is not None

    if ctx.obj.get("verbose"):
        _echo_warnings(result.warnings)

    preference = renderer or result.config.defaults.renderer
    click.echo(select_renderer(preference).render(None, result.verification))
    sys.exit(result.exit_code)


@cli.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """Show steps in execution order."""
    from hostprep.core.use_cases.steps import list_steps

    result = list_steps(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    assert result.config is not None
    if not ctx.obj.get("quiet"):
        click.secho(f"\n📋 {result.config.name}", fg="cyan", bold=True)
        if result.config.description:
            click.echo(f"   {result.config.description}")
        click.echo()

    for i, step in enumerate(result.steps, start=1):
        marker = click.style("●", fg="green") if step.bound else click.style("○", fg="yellow")
        install = step.install.name if step.install else "—"
        check = step.check.name if step.check else "—"
        click.echo(f"   {i:>2}. {marker} {step.id:<16} {step.label}")
        click.echo(f"         install: {install}  check: {check}")

    click.echo()
    click.secho(f"   Steps: {len(result.steps)}", fg="white", bold=True)
    unbound = [s.id for s in result.steps if not s.bound]
    if unbound:
        click.secho(f"   Unbound: {', '.join(unbound)}", fg="yellow")
    click.echo()


@cli.group()
def config() -> None:
    """Provisioning configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate hostprep.yml configuration."""
    from hostprep.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Name: {result.config.name}")
        click.echo(f"   Steps: {len(result.config.steps)}")
        if result.unbound:
            click.echo(f"   Unbound: {', '.join(result.unbound)}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


if __name__ == "__main__":
    cli()
