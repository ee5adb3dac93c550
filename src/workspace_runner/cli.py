from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from .config import RunnerConfig, load_config
from .core import SCOPES, RunSummary, WorkspaceRun
from .errors import UsageError, WorkspaceError
from .logging import apply_env_level, attach_log_file, get_logger
from .scaffold import KINDS, scaffold as scaffold_package


app = typer.Typer(add_completion=False, help="Dependency-ordered task runner for the workspace")
log = get_logger("cli")

RUN_USAGE = """Usage: wsrun run <package-folder> <command-name> [--parallel]

Examples:
  wsrun run all build
  wsrun run libs start --parallel
  wsrun run apps dev --parallel

Flags:
  --parallel    Run commands in parallel with dependency-ordered startup"""


def _setup(root: str, config: Optional[str], **overrides) -> tuple[Path, RunnerConfig]:
    """Resolve the workspace root and effective config; flags win over files and env."""
    root_path = Path(root).resolve()
    load_dotenv(root_path / ".env")
    apply_env_level()
    cfg = load_config(root_path, config).with_overrides(**overrides)
    if cfg.log_file:
        log_file = cfg.log_file if cfg.log_file.is_absolute() else root_path / cfg.log_file
        attach_log_file(log_file)
    return root_path, cfg


def _fail(e: WorkspaceError) -> typer.Exit:
    typer.echo(f"Error: {e}", err=True)
    return typer.Exit(code=e.exit_code)


def _report(summary: RunSummary) -> None:
    typer.echo("")
    typer.echo("Script execution completed:")
    typer.echo(f"   Total packages: {summary.discovered}")
    typer.echo(f"   In scope: {summary.in_scope}")
    typer.echo(f"   Executed: {len(summary.executed)}")
    if summary.skipped:
        typer.echo(f'   Skipped (no "{summary.task}" script): {len(summary.skipped)}')


def _report_stop(workspace: Optional[WorkspaceRun]) -> None:
    summary = workspace.summary if workspace else None
    if summary is None:
        typer.echo("Nothing was executed.", err=True)
        return
    typer.echo(
        f"Stopped after {len(summary.executed)} package(s) "
        f"({summary.discovered} discovered, {summary.in_scope} in scope).",
        err=True,
    )


@app.command()
def run(
    category: Optional[str] = typer.Argument(None, help=f"Package folder: {', '.join(SCOPES)}"),
    task: Optional[str] = typer.Argument(None, help="Script to run in each package"),
    parallel: bool = typer.Option(
        False, "--parallel", help="Start long-running scripts with dependency-ordered startup"
    ),
    settle_interval: Optional[float] = typer.Option(
        None, help="Seconds to wait between parallel starts (heuristic, not a readiness check)"
    ),
    root: str = typer.Option(".", help="Workspace root"),
    config: Optional[str] = typer.Option(None, help="Path to YAML config"),
):
    """Run a script in every package of a folder, dependencies first."""
    workspace: Optional[WorkspaceRun] = None
    try:
        if not category or not task:
            raise UsageError(RUN_USAGE)
        root_path, cfg = _setup(root, config, settle_interval=settle_interval)
        mode = " (parallel)" if parallel else ""
        typer.echo(f'Running command "{task}" in {category} packages{mode}...')
        workspace = WorkspaceRun(root_path, cfg)
        summary = workspace.execute(category, task, parallel=parallel)
    except WorkspaceError as e:
        if workspace is not None:
            _report_stop(workspace)
        raise _fail(e)
    except KeyboardInterrupt:
        if workspace is not None:
            workspace.shutdown.set()
            log.info("Interrupted in state %s", workspace.state.value)
        typer.echo("\nInterrupted, stopping all processes.", err=True)
        raise typer.Exit(code=130)
    _report(summary)


@app.command("list")
def list_packages(
    category: str = typer.Argument("all", help=f"Package folder: {', '.join(SCOPES)}"),
    task: Optional[str] = typer.Option(None, help="Mark packages that declare this script"),
    root: str = typer.Option(".", help="Workspace root"),
    config: Optional[str] = typer.Option(None, help="Path to YAML config"),
):
    """List packages in dependency order."""
    try:
        root_path, cfg = _setup(root, config)
        discovered, in_scope = WorkspaceRun(root_path, cfg).plan(category, task or "")
    except WorkspaceError as e:
        raise _fail(e)
    if not in_scope:
        typer.echo(f"No packages found in {category}/ ({len(discovered)} discovered in total).")
        raise typer.Exit(code=0)
    typer.echo(f"Packages in {category} (dependency order):")
    for i, p in enumerate(in_scope, start=1):
        mark = ""
        if task:
            mark = " ✓" if p.has_target_task else f' (no "{task}")'
        typer.echo(f"{i:>3}. {p.qualified_name} [{p.category.value}] {p.path}{mark}")
        if p.internal_dependencies:
            typer.echo(f"       depends on: {', '.join(p.internal_dependencies)}")


@app.command()
def scaffold(
    kind: Optional[str] = typer.Argument(None, help=f"Package type: {', '.join(KINDS)}"),
    name: Optional[str] = typer.Argument(None, help="kebab-case name without scope"),
    root: str = typer.Option(".", help="Workspace root"),
    config: Optional[str] = typer.Option(None, help="Path to YAML config"),
):
    """Create a minimal package skeleton."""
    try:
        if not kind or not name:
            raise UsageError("Usage: wsrun scaffold <lib|domain|package|app> <name>")
        root_path, cfg = _setup(root, config)
        target = scaffold_package(root_path, kind, name, cfg)
    except WorkspaceError as e:
        raise _fail(e)
    typer.echo(f"Created {target.relative_to(root_path)}")


def main():  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
