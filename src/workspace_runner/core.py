from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Union

from .config import RunnerConfig
from .discovery import ALL, Category, PackageDescriptor, discover_workspace
from .errors import CycleError, DuplicatePackageError, UnknownScopeError, WorkspaceError
from .logging import get_logger
from .runner import (
    ProcessRunner,
    ShutdownSignal,
    TaskRunner,
    eligible,
    run_sequential,
    start_staggered,
)


Scope = Union[Category, str]

SCOPES = (ALL,) + tuple(c.value for c in Category)

_IN_PROGRESS = 1
_DONE = 2


def parse_scope(value: str) -> Scope:
    if value == ALL:
        return ALL
    try:
        return Category(value)
    except ValueError:
        raise UnknownScopeError(value, SCOPES) from None


def topo_sort(packages: Iterable[PackageDescriptor]) -> list[PackageDescriptor]:
    """Order packages so every internal dependency precedes its dependents.

    Depth-first over an explicit stack. Roots are taken in discovery order and
    dependencies in declaration order, so a fixed discovery gives a fixed
    result. Dependencies that were not discovered are leaves. Re-entering a
    package that is still in progress raises CycleError naming it.
    """
    packages = list(packages)
    by_name: dict[str, PackageDescriptor] = {}
    for p in packages:
        if p.qualified_name in by_name:
            raise DuplicatePackageError(
                p.qualified_name, [by_name[p.qualified_name].path, p.path]
            )
        by_name[p.qualified_name] = p

    marks: dict[str, int] = {}
    ordered: list[PackageDescriptor] = []
    for root in packages:
        if marks.get(root.qualified_name) == _DONE:
            continue
        marks[root.qualified_name] = _IN_PROGRESS
        stack = [(root.qualified_name, iter(root.internal_dependencies))]
        while stack:
            name, deps = stack[-1]
            for dep in deps:
                if dep not in by_name or marks.get(dep) == _DONE:
                    continue
                if marks.get(dep) == _IN_PROGRESS:
                    path = [n for n, _ in stack]
                    raise CycleError(dep, path[path.index(dep):] + [dep])
                marks[dep] = _IN_PROGRESS
                stack.append((dep, iter(by_name[dep].internal_dependencies)))
                break
            else:
                stack.pop()
                marks[name] = _DONE
                ordered.append(by_name[name])
    return ordered


def select_scope(ordered: Iterable[PackageDescriptor], scope: Scope) -> list[PackageDescriptor]:
    """Narrow a globally sorted list to one category, keeping its order."""
    if scope == ALL:
        return list(ordered)
    category = Category(scope)
    return [p for p in ordered if p.category is category]


class RunState(str, Enum):
    PENDING = "pending"
    DISCOVERING = "discovering"
    GRAPH_BUILDING = "graph_building"
    SORTING = "sorting"
    FILTERING = "filtering"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class RunSummary:
    task: str
    scope: str
    parallel: bool
    discovered: int
    in_scope: int
    executed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


class WorkspaceRun:
    def __init__(
        self,
        root: Path,
        config: RunnerConfig | None = None,
        runner: TaskRunner | None = None,
        shutdown: ShutdownSignal | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.root = Path(root)
        self.config = config or RunnerConfig()
        self.runner = runner or ProcessRunner(self.config.runner, cwd=self.root)
        self.shutdown = shutdown or ShutdownSignal()
        self.sleep = sleep
        self.state = RunState.PENDING
        self.history: list[RunState] = [RunState.PENDING]
        self.summary: RunSummary | None = None
        self.logger = get_logger("run")

    def _enter(self, state: RunState) -> None:
        self.state = state
        self.history.append(state)
        self.logger.debug("State: %s", state.value)

    def plan(self, scope: str, task: str) -> tuple[list[PackageDescriptor], list[PackageDescriptor]]:
        """Discover, sort and filter. Returns (all discovered, in scope in order)."""
        try:
            selected_scope = parse_scope(scope)
        except WorkspaceError:
            self._enter(RunState.FAILED)
            raise

        self._enter(RunState.DISCOVERING)
        discovered = discover_workspace(
            self.root, task, self.config.internal_prefix, self.config.manifest_name
        )
        self.logger.info("Discovered %d package(s) in %s", len(discovered), self.root)

        # Edges live on the descriptors; building them is part of discovery.
        self._enter(RunState.GRAPH_BUILDING)
        edges = sum(len(p.internal_dependencies) for p in discovered)
        self.logger.debug("Dependency graph: %d node(s), %d edge(s)", len(discovered), edges)

        self._enter(RunState.SORTING)
        try:
            ordered = topo_sort(discovered)
        except (CycleError, DuplicatePackageError) as e:
            self._enter(RunState.FAILED)
            self.logger.error("%s", e)
            raise

        self._enter(RunState.FILTERING)
        in_scope = select_scope(ordered, selected_scope)
        self.logger.info(
            "Selected packages: %s",
            " → ".join(p.qualified_name for p in in_scope) or "(none)",
        )
        return discovered, in_scope

    def execute(
        self,
        scope: str,
        task: str,
        parallel: bool = False,
        settle_interval: float | None = None,
    ) -> RunSummary:
        """Run ``task`` across ``scope``.

        Sequential mode returns once every eligible package has finished.
        Parallel mode starts everything and then blocks on the shutdown
        signal; it returns only if that signal is set from outside.
        """
        discovered, in_scope = self.plan(scope, task)
        runnable = eligible(in_scope)
        self.summary = RunSummary(
            task=task,
            scope=scope,
            parallel=parallel,
            discovered=len(discovered),
            in_scope=len(in_scope),
            skipped=[p.qualified_name for p in in_scope if not p.has_target_task],
        )

        self._enter(RunState.EXECUTING)
        if not runnable:
            self.logger.warning('No package with "%s" script found in %s/', task, scope)
            self._enter(RunState.COMPLETED)
            return self.summary

        mode = "parallel" if parallel else "sequential"
        self.logger.info('Running "%s" in %d package(s) (%s)', task, len(runnable), mode)
        try:
            if parallel:
                interval = self.config.settle_interval if settle_interval is None else settle_interval
                start_staggered(
                    runnable,
                    task,
                    self.runner,
                    interval,
                    sleep=self.sleep,
                    started=self.summary.executed,
                )
            else:
                run_sequential(runnable, task, self.runner, executed=self.summary.executed)
        except WorkspaceError:
            self._enter(RunState.FAILED)
            raise

        self._enter(RunState.COMPLETED)
        if parallel:
            self.logger.info("All commands running. Press Ctrl+C to stop all processes")
            self.shutdown.wait()
        return self.summary
