"""Process-spawn collaborator: replace the current image or spawn and wait."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import sys
from collections.abc import Mapping, Sequence
from typing import Protocol

from sratools_driver.models import (
    ChildExitFailure,
    ChildOutcome,
    ChildSignaled,
    ChildSuccess,
    ExitCode,
)

logger = logging.getLogger(__name__)


class ProcessLauncher(Protocol):
    """Protocol implemented by process launchers."""

    def replace(self, path: str, display_name: str, argv: Sequence[str]) -> None:
        """Replace the current process with ``path``; returns only on failure."""

    def run_and_wait(
        self,
        path: str,
        display_name: str,
        argv: Sequence[str],
        environment: Mapping[str, str],
    ) -> ChildOutcome:
        """Run ``path`` with ``environment`` overlaid and wait for it to finish."""


class SubprocessLauncher:
    """Launcher backed by ``os.execv`` and ``subprocess``."""

    def __init__(self, *, os_name: str | None = None) -> None:
        self._os_name = os_name or os.name

    def replace(self, path: str, display_name: str, argv: Sequence[str]) -> None:
        logger.debug("Replacing process with %s (%s)", display_name, path)
        sys.stdout.flush()
        sys.stderr.flush()
        if self._os_name == "nt":
            # no exec on Windows: run the tool and leave with its status
            outcome = self.run_and_wait(path, display_name, argv, {})
            sys.exit(_outcome_status(outcome))
        os.execv(path, list(argv))

    def run_and_wait(
        self,
        path: str,
        display_name: str,
        argv: Sequence[str],
        environment: Mapping[str, str],
    ) -> ChildOutcome:
        env = os.environ.copy()
        env.update(environment)
        logger.debug("Running %s (%s) with %d argument(s)", display_name, path, len(argv))
        completed = subprocess.run(  # noqa: S603
            list(argv),
            executable=path,
            env=env,
            check=False,
        )
        return outcome_from_returncode(completed.returncode)


def outcome_from_returncode(returncode: int) -> ChildOutcome:
    """Translate a ``subprocess`` return code into a child outcome."""

    if returncode == 0:
        return ChildSuccess()
    if returncode < 0:
        return ChildSignaled(signal=-returncode, name=signal_name(-returncode))
    return ChildExitFailure(exit_code=returncode)


def signal_name(signum: int) -> str | None:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return None


def _outcome_status(outcome: ChildOutcome) -> int:
    if isinstance(outcome, ChildExitFailure):
        return outcome.exit_code
    if isinstance(outcome, ChildSignaled):
        return ExitCode.SIGNALED
    return ExitCode.OK
