"""CLI entry point using Click."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from deploybundle import __version__
from deploybundle.config import load_config
from deploybundle.errors import BundleError, ManifestWriteError
from deploybundle.logger import log_context, setup_logging
from deploybundle.manifest import generate_manifest
from deploybundle.matcher import excluded_by_pattern
from deploybundle.rules import load_rule_set
from deploybundle.walker import walk

_ROOT_ARGUMENT = click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path)


@click.group()
@click.version_option(__version__, prog_name="deploybundle")
def main() -> None:
    """Deploybundle - compute the files to include in a deployment bundle."""


@main.command("manifest")
@click.argument("root", type=_ROOT_ARGUMENT, default=".")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Write the manifest to this file instead of stdout")
@click.option("--workers", "-w", type=int, default=None, help="Threads used for matching")
@click.option("--batch-size", type=int, default=None, help="Candidates per matching batch")
@click.option("--follow-symlinks/--no-follow-symlinks", default=None,
              help="Follow symlinked files and directories")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON")
def manifest_command(
    root: Path,
    output: Path | None,
    workers: int | None,
    batch_size: int | None,
    follow_symlinks: bool | None,
    debug: bool,
    json_logs: bool,
) -> None:
    """Print or write the bundle manifest for ROOT."""
    cli_args: dict[str, Any] = {}
    if output is not None:
        cli_args["manifest_path"] = str(output)
    if workers is not None:
        cli_args["workers"] = workers
    if batch_size is not None:
        cli_args["batch_size"] = batch_size
    if follow_symlinks is not None:
        cli_args["follow_symlinks"] = follow_symlinks
    if debug:
        cli_args["debug"] = True
    if json_logs:
        cli_args["json_logs"] = True

    try:
        config = load_config(cli_args=cli_args, root=root)
    except BundleError as exc:
        raise click.ClickException(str(exc)) from exc
    setup_logging(debug=config.debug, json_output=config.json_logs)

    try:
        with log_context(root=config.root):
            files = generate_manifest(
                config.root,
                config.manifest_path,
                workers=config.workers,
                batch_size=config.batch_size,
                follow_symlinks=config.follow_symlinks,
                exclude_manifest=config.exclude_manifest,
            )
    except ManifestWriteError as exc:
        raise click.ClickException(f"{exc} ({len(exc.files)} files were selected)") from exc
    except BundleError as exc:
        raise click.ClickException(str(exc)) from exc

    if config.manifest_path is None:
        for name in files:
            click.echo(name)
    else:
        click.echo(f"Wrote {len(files)} files to {config.manifest_path}", err=True)


@main.command("check-pattern")
@click.argument("pattern")
@click.argument("root", type=_ROOT_ARGUMENT, default=".")
def check_pattern_command(pattern: str, root: Path) -> None:
    """List the files under ROOT that PATTERN alone would exclude."""
    for name in excluded_by_pattern(walk(root), pattern):
        click.echo(name)


@main.command("rules")
@click.argument("root", type=_ROOT_ARGUMENT, default=".")
def rules_command(root: Path) -> None:
    """Show the ignore rules parsed for ROOT."""
    rules = load_rule_set(root)
    if rules.is_empty:
        click.echo("No ignore rules.", err=True)
        return
    for name in sorted(rules.exact_rules):
        click.echo(f"exact_name\t{name}")
    for pattern in rules.pattern_rules:
        click.echo(f"{pattern.kind}\t{pattern.body}")
