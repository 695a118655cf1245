"""
gitver.cli — Command-line interface for gitver.

Usage:
    gitver show                 Show the version context for HEAD
    gitver show -c <sha>        Evaluate a specific commit
    gitver show --json          Emit the context as JSON
    gitver config -b <branch>   Show the effective configuration for a branch
    gitver init                 Write a GitVersion.json branching-model preset
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gitver.core.errors import GitVersionError
from gitver.core.models import (
    CONFIG_FILE_NAME,
    Branch,
    BranchingModel,
    EffectiveConfiguration,
    GitVersionConfig,
    config_for_model,
)

console = Console()


def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s — %(message)s",
        datefmt="%H:%M:%S",
    )


def _open(path: str, config_path: Path | None):
    from gitver.vcs.repository import GitRepository
    repo = GitRepository(path)
    if config_path is not None:
        config = GitVersionConfig.load(config_path)
    else:
        config = GitVersionConfig.for_project(repo.root)
    return repo, config


def _find_branch(repo, name: str | None) -> Branch | None:
    if name is None:
        return None
    for b in repo.branches():
        if b.name == name:
            return b
    raise GitVersionError(f"Branch '{name}' not found")


def _config_table(cfg: EffectiveConfiguration, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    for key, value in cfg.model_dump(mode="json").items():
        table.add_row(key, "—" if value is None else escape(str(value)))
    return table


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """gitver — semantic versions from Git history."""
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------

@main.command()
@click.option("--path", default=".", help="Repository path.")
@click.option("-c", "--commit", "commit_id", default=None, help="Commit SHA to evaluate instead of the branch tip.")
@click.option("-b", "--branch", "branch_name", default=None, help="Branch to evaluate instead of HEAD.")
@click.option("--all-branches", is_flag=True, help="Also consider untracked local branches for a detached HEAD.")
@click.option(
    "--config", "config_path", default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help=f"Configuration file (default: {CONFIG_FILE_NAME} in the repository root).",
)
@click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of a table.")
def show(
    path: str,
    commit_id: str | None,
    branch_name: str | None,
    all_branches: bool,
    config_path: Path | None,
    as_json: bool,
) -> None:
    """Show the version context: commit, branch, configuration, and existing version tag."""
    from gitver.operations.context import build_context

    try:
        repo, config = _open(path, config_path)
        ctx = build_context(
            repo,
            config,
            only_tracked_branches=not all_branches,
            commit_id=commit_id,
            branch=_find_branch(repo, branch_name),
        )
    except GitVersionError as exc:
        console.print(f"[red]✗[/red] {escape(exc.message)}")
        sys.exit(1)

    if as_json:
        click.echo(ctx.model_dump_json(indent=2))
        return

    table = Table(title="Version Context")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Commit", ctx.current_commit.sha)
    table.add_row("Branch", escape(ctx.current_branch.name))
    table.add_row("Branch pattern", escape(ctx.configuration.branch_key) or "—")
    table.add_row("Mode", ctx.configuration.mode.value)
    table.add_row("Increment", ctx.configuration.increment.value)
    table.add_row("Tagged version", str(ctx.current_commit_tagged_version or "—"))
    console.print(table)


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------

@main.command("config")
@click.option("--path", default=".", help="Repository path.")
@click.option("-b", "--branch", "branch_name", default=None, help="Branch name (default: HEAD).")
@click.option("--all-branches", is_flag=True, help="Also consider untracked local branches for a detached HEAD.")
@click.option(
    "--config", "config_path", default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Configuration file.",
)
def show_config(path: str, branch_name: str | None, all_branches: bool, config_path: Path | None) -> None:
    """Show the effective configuration for a branch."""
    from gitver.core.errors import NoBranchError
    from gitver.operations.configuration import resolve_effective_configuration
    from gitver.operations.context import resolve_current_branch

    try:
        repo, config = _open(path, config_path)
        branch = _find_branch(repo, branch_name) or repo.head()
        if branch is None:
            raise NoBranchError()
        commit = branch.tip
        branch = resolve_current_branch(repo, config, branch, commit, not all_branches)
        _, effective = resolve_effective_configuration(commit, branch, config)
    except GitVersionError as exc:
        console.print(f"[red]✗[/red] {escape(exc.message)}")
        sys.exit(1)

    console.print(_config_table(effective, f"Configuration — {escape(branch.name)}"))


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@main.command()
@click.option("--path", default=".", help="Project root to write the configuration to.")
@click.option(
    "--model",
    type=click.Choice([m.value for m in BranchingModel], case_sensitive=False),
    default=BranchingModel.GITFLOW.value,
    help="Branching-model preset.",
)
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file.")
def init(path: str, model: str, force: bool) -> None:
    """Write a GitVersion.json preset for the chosen branching model."""
    target = Path(path) / CONFIG_FILE_NAME
    if target.exists() and not force:
        console.print(f"[yellow]![/yellow] {target} already exists (use --force to overwrite)")
        sys.exit(1)

    config = config_for_model(BranchingModel(model.lower()))
    config.save(target)
    console.print(f"[green]✓[/green] Wrote {model} configuration to [bold]{target}[/bold]")
    console.print(f"  Branch patterns: {len(config.branches)}")


if __name__ == "__main__":
    main()
