"""Per-accession dispatch loop with multi-source retry and fail-fast policy."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import NoReturn, Protocol

from sratools_driver.argv_builder import ArgumentVector, ArgvBuilder, ArgvMode
from sratools_driver.errors import (
    ChildExitError,
    ChildSignaledError,
    ExecError,
    TemporaryFailureError,
)
from sratools_driver.failure_classifier import OutcomeAction, classify_outcome
from sratools_driver.models import ChildSignaled, ExitCode
from sratools_driver.process import ProcessLauncher
from sratools_driver.sources.base import DataSource, ResolutionParams, SourceGateway

logger = logging.getLogger(__name__)


class DispatchTarget(Protocol):
    """What the engine needs to know about the tool it runs."""

    @property
    def tool_name(self) -> str: ...

    @property
    def executable(self) -> str: ...

    @property
    def argv0(self) -> str: ...

    def resolution_params(self) -> ResolutionParams: ...

    def populate_argv(
        self,
        builder: ArgvBuilder,
        acc_index: int,
        accessions: Sequence[str],
    ) -> None: ...


class DispatchEngine:
    """Runs the real tool once per accession, trying candidate sources in order.

    Accessions and sources are processed strictly one at a time. A child
    that exits with the temporary-failure status moves on to the next
    source; any other failure ends the whole dispatch immediately by
    raising a :class:`~sratools_driver.errors.DriverError` that carries the
    exit status the process must end with.
    """

    def __init__(self, *, gateway: SourceGateway, launcher: ProcessLauncher) -> None:
        self._gateway = gateway
        self._launcher = launcher

    def exec_direct(self, target: DispatchTarget, accessions: Sequence[str]) -> NoReturn:
        """Replace the current process with the tool, passing every accession."""

        builder = ArgvBuilder()
        target.populate_argv(builder, len(accessions), accessions)
        argv = builder.build(target.argv0, accessions, mode=ArgvMode.REPLACE)
        try:
            self._launcher.replace(target.executable, target.tool_name, argv.args)
        except OSError as error:
            argv.release()
            raise ExecError(target.tool_name, error) from error
        argv.release()
        raise ExecError(target.tool_name, None)

    def run(self, target: DispatchTarget, accessions: Sequence[str]) -> int:
        if not accessions:
            self.exec_direct(target, accessions)

        source_set = self._gateway.resolve(accessions, target.resolution_params())

        for acc_index, accession in enumerate(accessions):
            sources = source_set.sources_for(accession)
            if not sources:
                continue

            # index is the position on the command line, skipped accessions included
            builder = ArgvBuilder()
            target.populate_argv(builder, acc_index, accessions)

            with builder.build(target.argv0, (accession,), mode=ArgvMode.WAIT) as argv:
                success = self._run_accession(target, accession, argv, sources)

            if not success:
                raise TemporaryFailureError(accession, [source.service for source in sources])
        return ExitCode.OK

    def _run_accession(
        self,
        target: DispatchTarget,
        accession: str,
        argv: ArgumentVector,
        sources: Sequence[DataSource],
    ) -> bool:
        for source in sources:
            try:
                outcome = self._launcher.run_and_wait(
                    target.executable,
                    target.tool_name,
                    argv.args,
                    source.environment,
                )
            except OSError as error:
                raise ExecError(target.tool_name, error) from error

            classification = classify_outcome(outcome)
            if classification.action is OutcomeAction.SUCCESS:
                logger.info("Processed %s with data from %s", accession, source.service)
                return True
            if classification.action is OutcomeAction.TRY_NEXT_SOURCE:
                logger.info("Failed to get data for %s from %s", accession, source.service)
                continue
            if isinstance(outcome, ChildSignaled):
                raise ChildSignaledError(target.tool_name, outcome.signal, outcome.name)
            raise ChildExitError(target.tool_name, classification.exit_code)
        return False
