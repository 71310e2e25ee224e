"""Launcher entry point: one program impersonating several SRA tools."""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence

import rich_click as click
from click.exceptions import Exit

from sratools_driver.cloud import CloudEnvironment
from sratools_driver.config import Settings
from sratools_driver.dispatch import DispatchEngine
from sratools_driver.errors import ConstructionError, DriverError
from sratools_driver.identity import IdentityCheck
from sratools_driver.models import ExitCode
from sratools_driver.process import ProcessLauncher, SubprocessLauncher
from sratools_driver.sources import SdlGateway, SourceGateway
from sratools_driver.tool_path import ToolPath
from sratools_driver.tools import ToolVariant, create_variant

click.rich_click.SHOW_ARGUMENTS = True

logger = logging.getLogger(__name__)

_PACKAGE_LOGGER = "sratools_driver"
_HANDLER_NAME = "sratools-driver-stderr"


def main(
    argv: Sequence[str] | None = None,
    *,
    settings: Settings | None = None,
    gateway: SourceGateway | None = None,
    launcher: ProcessLauncher | None = None,
) -> int:
    """Resolve the imposter, parse and validate its options, then dispatch.

    Returns the exit status. ``gateway`` and ``launcher`` replace the
    locator client and the process launcher (tests inject fakes).
    """

    args = list(sys.argv if argv is None else argv)
    if not args:
        click.echo("Missing program name", err=True)
        return ExitCode.SOFTWARE

    try:
        settings = settings or Settings.from_env()
        settings.validate()
    except ValueError as error:
        click.echo(f"Configuration error: {error}", err=True)
        return ExitCode.CONFIG

    tool_path = ToolPath.from_invocation(
        args[0],
        toolkit_version=settings.toolkit_version,
        impersonate=settings.impersonate,
    )
    try:
        check = IdentityCheck.resolve(tool_path)
    except ConstructionError as error:
        click.echo(str(error), err=True)
        return error.exit_code

    variant = create_variant(check, debug_options=settings.debug_options)
    command = build_command(variant)
    try:
        # eager parameters (help) are handled before the full parse
        with command.make_context(tool_path.basename, args[1:]) as ctx:
            variant.load(ctx.params)
    except Exit as exit_request:
        return exit_request.exit_code
    except click.ClickException as error:
        error.show()
        return ExitCode.USAGE

    configure_logging(variant.options.verbosity, prog_name=variant.tool_name)
    logger.debug("%s", check.describe())
    for line in variant.show():
        logger.debug("%s", line)

    cloud = CloudEnvironment.from_settings(settings.cloud)
    if not variant.check(cloud=cloud, dry_run=settings.dry_run):
        return ExitCode.USAGE

    if variant.options.version:
        click.echo(f"\n{variant.tool_name} : {variant.version}\n")
        return ExitCode.OK

    owned_gateway = SdlGateway.from_settings(settings, cloud=cloud) if gateway is None else None
    engine = DispatchEngine(
        gateway=gateway if gateway is not None else owned_gateway,
        launcher=launcher or SubprocessLauncher(),
    )
    try:
        return variant.run(engine)
    except DriverError as error:
        click.echo(str(error), err=True)
        return error.exit_code
    finally:
        if owned_gateway is not None:
            owned_gateway.close()


def build_command(variant: ToolVariant) -> click.RichCommand:
    """Command surface of one imposter: its own options plus the shared ones."""

    return click.RichCommand(
        name=variant.tool_name,
        params=variant.add_options(),
        help=variant.summary,
        context_settings={
            "help_option_names": ["-h", "--help"],
            # tool options the variant does not list are forwarded, not rejected
            "ignore_unknown_options": True,
        },
    )


def configure_logging(verbosity: int, *, prog_name: str) -> None:
    """Route package logs to stderr; each ``-v`` lowers the threshold one level."""

    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            package_logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(f"{prog_name}: %(levelname)s: %(message)s"))
    package_logger.addHandler(handler)


def run() -> None:  # pragma: no cover
    """Console-script entry point."""

    sys.exit(main())


if __name__ == "__main__":  # pragma: no cover
    run()
