from __future__ import annotations

import shutil
import subprocess
import threading
import time
from pathlib import Path
from typing import Callable, Iterable, Protocol

from .discovery import PackageDescriptor
from .errors import SpawnError, TaskExitError
from .logging import get_logger


log = get_logger("runner")


class TaskRunner(Protocol):
    def run(self, package: PackageDescriptor, task: str) -> None: ...

    def start(self, package: PackageDescriptor, task: str) -> object: ...


class ProcessRunner:
    """Runs a package task through the workspace package manager.

    The command is ``<executable> --filter <qualified_name> <task>`` and the
    child inherits stdin/stdout/stderr. Children stay in the caller's process
    group, so an interrupt delivered to the terminal reaches them too.
    """

    def __init__(self, executable: str = "pnpm", cwd: Path | None = None):
        self.executable = executable
        self.cwd = cwd

    def command(self, package: PackageDescriptor, task: str) -> list[str]:
        exe = shutil.which(self.executable) or self.executable
        return [exe, "--filter", package.qualified_name, task]

    def run(self, package: PackageDescriptor, task: str) -> None:
        try:
            completed = subprocess.run(self.command(package, task), cwd=self.cwd)
        except OSError as e:
            raise SpawnError(package.qualified_name, task, str(e)) from e
        if completed.returncode != 0:
            raise TaskExitError(package.qualified_name, task, completed.returncode)

    def start(self, package: PackageDescriptor, task: str) -> subprocess.Popen:
        try:
            return subprocess.Popen(self.command(package, task), cwd=self.cwd)
        except OSError as e:
            raise SpawnError(package.qualified_name, task, str(e)) from e


class ShutdownSignal:
    """Blocking primitive that keeps the parent alive while children run.

    :meth:`wait` blocks until something outside the run calls :meth:`set`
    (or the process is interrupted). It is not a completion signal: nothing in
    the runner ever sets it.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)


def eligible(packages: Iterable[PackageDescriptor]) -> list[PackageDescriptor]:
    return [p for p in packages if p.has_target_task]


def run_sequential(
    packages: Iterable[PackageDescriptor],
    task: str,
    runner: TaskRunner,
    executed: list[str] | None = None,
) -> list[str]:
    """Run ``task`` in each package, in order, blocking on each one.

    The first failure propagates and later packages are left unexecuted.
    Qualified names that ran are appended to ``executed`` as they finish.
    """
    executed = [] if executed is None else executed
    for package in packages:
        if not package.has_target_task:
            log.debug("Skip %s: no %r script", package.qualified_name, task)
            continue
        log.info('Running "%s" in %s...', task, package.qualified_name)
        try:
            runner.run(package, task)
        except (SpawnError, TaskExitError):
            log.error('Script "%s" failed in %s', task, package.qualified_name)
            raise
        executed.append(package.qualified_name)
    return executed


def start_staggered(
    packages: Iterable[PackageDescriptor],
    task: str,
    runner: TaskRunner,
    settle_interval: float,
    sleep: Callable[[float], None] = time.sleep,
    started: list[str] | None = None,
) -> list[str]:
    """Start ``task`` in each package, pausing ``settle_interval`` after each start.

    The pause approximates "the previous package is ready"; nothing checks that
    it actually is, and started children are not watched afterwards. A spawn
    failure propagates and no further package is started.
    """
    started = [] if started is None else started
    for package in packages:
        if not package.has_target_task:
            log.debug("Skip %s: no %r script", package.qualified_name, task)
            continue
        log.info('Starting "%s" in %s...', task, package.qualified_name)
        try:
            runner.start(package, task)
        except SpawnError:
            log.error('Failed to start "%s" in %s', task, package.qualified_name)
            raise
        started.append(package.qualified_name)
        sleep(settle_interval)
        log.info("%s started", package.qualified_name)
    return started
