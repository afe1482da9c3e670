# cli.py
from __future__ import annotations

import sys
from pathlib import Path

import click

from betabuild.action import toolchain_version
from betabuild.config import DaemonConfig, MarkerPolicy
from betabuild.errors import BuildCancelled, BuildError, BuildFailed, RepositoryError, SetupError, StartupError
from betabuild.git_facts.git import current_version_tag
from betabuild.poller import Poller
from betabuild.runner import run_build
from betabuild.targets import DEFAULT_PREFIX, artifact_name, targets
from betabuild.ui.console import Console, get_console, set_console


def load_config(**overrides) -> DaemonConfig:
    """
    Environment-backed config with CLI options layered on top.

    Options left at None keep the environment (or built-in) value.
    """
    console = get_console()
    try:
        base = DaemonConfig.from_env()
        values = dict(vars(base))
        values.update({k: v for k, v in overrides.items() if v is not None})
        return DaemonConfig(**values)
    except ValueError as e:
        console.print_error("Invalid configuration", str(e))
        sys.exit(2)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """betabuild: cross-compile every new commit for all platforms."""
    # Initialize console with debug flag
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.option("--repo-url", default=None, help="Repository to watch")
@click.option("--checkout", "checkout_dir", default=None, type=click.Path(path_type=Path), help="Local checkout path")
@click.option("--output", "output_dir", default=None, type=click.Path(path_type=Path), help="Output base directory")
@click.option("--marker", "marker_file", default=None, type=click.Path(path_type=Path), help="Commit marker file")
@click.option("--poll-interval", default=None, type=float, help="Seconds between polls")
@click.option("--retry-delay", default=None, type=float, help="Seconds to wait after a failed pull")
@click.option("--workers", default=None, type=int, help="Number of parallel builds (default: CPU count)")
@click.option("--job-timeout", default=None, type=float, help="Per-target build timeout in seconds")
@click.option("--prefix", default=None, help="Artifact name prefix")
@click.option(
    "--marker-policy",
    default=None,
    type=click.Choice([p.value for p in MarkerPolicy]),
    help="Advance the marker past a failed build, or retry it next cycle",
)
@click.pass_context
def run(ctx, **options):
    """Run the build daemon until interrupted."""
    console = get_console()
    config = load_config(**options)

    try:
        console.print_info(toolchain_version())
    except BuildError as e:
        console.print_error("Toolchain", str(e), suggestion="Install Go and make sure `go` is on PATH.")
        sys.exit(1)

    poller = Poller(config)
    poller.install_signal_handlers()

    try:
        poller.run()
    except StartupError as e:
        console.print_error("Startup failed", str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)


@cli.command()
@click.option("--source", "source_dir", default=".", type=click.Path(path_type=Path), show_default=True, help="Checkout to build")
@click.option("--output", "output_dir", default=None, type=click.Path(path_type=Path), help="Output base directory")
@click.option("--version", "version", default=None, help="Version tag (default: git describe)")
@click.option("--workers", default=None, type=int, help="Number of parallel builds (default: CPU count)")
@click.option("--job-timeout", default=None, type=float, help="Per-target build timeout in seconds")
@click.option("--prefix", default=None, help="Artifact name prefix")
@click.pass_context
def build(ctx, source_dir, output_dir, version, workers, job_timeout, prefix):
    """Build the matrix once for the checkout in --source."""
    console = get_console()
    config = load_config(output_dir=output_dir, workers=workers, job_timeout=job_timeout, prefix=prefix)

    if version is None:
        try:
            version = current_version_tag(source_dir)
        except RepositoryError as e:
            console.print_error(
                "Could not determine version",
                str(e),
                suggestion="Run inside a git checkout or pass --version explicitly.",
            )
            sys.exit(1)

    try:
        report = run_build(
            version,
            config.output_dir,
            source_dir=source_dir,
            workers=config.workers,
            prefix=config.prefix,
            job_timeout=config.job_timeout,
            console=console,
        )
    except SetupError as e:
        console.print_error("Output directory", str(e))
        sys.exit(1)
    except BuildCancelled as e:
        console.print_info(str(e))
        sys.exit(130)
    except BuildFailed as e:
        console.print_error("Build failed", f"version {e.version}", details=[str(f) for f in e.failures])
        if e.report is not None:
            console.print_results(e.report)
        sys.exit(1)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)

    console.print_results(report)


@cli.command(name="targets")
@click.option("--version", "version", default="VERSION", show_default=True, help="Version used in the artifact names")
@click.option("--prefix", default=DEFAULT_PREFIX, show_default=True, help="Artifact name prefix")
def list_targets(version, prefix):
    """List the build matrix and the artifact each target produces."""
    console = get_console()
    for target in targets():
        console.print_info(f"{str(target):<16} {artifact_name(prefix, version, target)}")


if __name__ == "__main__":
    cli()
