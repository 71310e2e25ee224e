"""Driver error taxonomy; every error knows the exit status it maps to."""

from __future__ import annotations

from collections.abc import Sequence

from sratools_driver.models import ExitCode


class DriverError(RuntimeError):
    """Fatal driver error reported once and turned into an exit status."""

    def __init__(self, message: str, *, exit_code: int = ExitCode.SOFTWARE) -> None:
        super().__init__(message)
        self.exit_code = int(exit_code)


class ConstructionError(DriverError):
    """Startup failure detected before any option parsing."""


class InvalidToolError(ConstructionError):
    def __init__(self, basename: str) -> None:
        super().__init__(
            f"Invalid tool requested: {basename!r}",
            exit_code=ExitCode.USAGE,
        )
        self.basename = basename


class InvalidVersionError(ConstructionError):
    def __init__(self, requested: str, toolkit: str) -> None:
        super().__init__(
            f"Invalid tool version: requested {requested}, toolkit is {toolkit}",
            exit_code=ExitCode.CONFIG,
        )
        self.requested = requested
        self.toolkit = toolkit


class SourceResolutionError(DriverError):
    """The locator service could not be queried at all."""

    def __init__(self, message: str) -> None:
        super().__init__(message, exit_code=ExitCode.TEMPFAIL)


class TemporaryFailureError(DriverError):
    """No candidate source produced a successful run for an accession."""

    def __init__(self, accession: str, services: Sequence[str]) -> None:
        lines = [f"Could not get any data for {accession}, tried to get data from:"]
        lines.extend(f"\t{service}" for service in services)
        lines.append("This may be temporary, you should retry later.")
        super().__init__("\n".join(lines), exit_code=ExitCode.TEMPFAIL)
        self.accession = accession
        self.services = tuple(services)


class ChildExitError(DriverError):
    """Child tool failed with a non-retryable exit status."""

    def __init__(self, tool_name: str, exit_code: int) -> None:
        super().__init__(f"{tool_name} quit with error code {exit_code}", exit_code=exit_code)
        self.tool_name = tool_name


class ChildSignaledError(DriverError):
    """Child tool was killed by a signal."""

    def __init__(self, tool_name: str, signal: int, signal_name: str | None) -> None:
        detail = f"signal {signal} {signal_name}" if signal_name else f"signal {signal}"
        super().__init__(f"{tool_name} was killed ({detail})", exit_code=ExitCode.SIGNALED)
        self.tool_name = tool_name
        self.signal = signal
        self.signal_name = signal_name


class ExecError(DriverError):
    """Replacing the current process image with the tool failed."""

    def __init__(self, tool_name: str, error: OSError | None) -> None:
        if error is None:
            message = f"Failed to exec {tool_name}: process image was not replaced"
        else:
            message = f"Failed to exec {tool_name}: {error}"
        exit_code = (
            ExitCode.NO_INPUT if isinstance(error, FileNotFoundError) else ExitCode.SOFTWARE
        )
        super().__init__(message, exit_code=exit_code)
        self.tool_name = tool_name
