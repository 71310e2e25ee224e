"""Options shared by every imposter: registration, argv rendering, validation."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

import rich_click as click

from sratools_driver.accession import accession_info_url, classify_accession
from sratools_driver.argv_builder import ArgvBuilder
from sratools_driver.cloud import CloudEnvironment
from sratools_driver.models import AccessionType

MAX_ACCESSIONS = 256
LOG_LEVELS = frozenset(
    {"fatal", "sys", "int", "err", "warn", "info", "debug", "0", "1", "2", "3", "4", "5", "6"},
)

PERM_OUTSIDE_CLOUD_MESSAGE = (
    "Currently, --perm can only be used from inside a cloud computing environment.\n"
    "Please run inside of a supported cloud computing environment, or get an ngc file "
    "from dbGaP and reissue the command with --ngc <ngc file> instead of --perm <perm file>."
)
PERM_NEEDS_IDENTITY_MESSAGE = (
    "--perm requires a cloud instance identity, please run vdb-config --interactive "
    "and enable the option to report cloud instance identity."
)
CONTAINER_SUMMARY_MESSAGE = (
    "Automatic expansion of container accessions is not currently available. "
    "See the above link(s) for information about the accessions."
)


class VerbosityStyle(str, Enum):
    """How ``-v`` counts are rendered for the child tool."""

    STANDARD = "standard"
    REPEATED = "repeated"


@dataclass(slots=True)
class ValidationReport:
    """Counted problems plus every message to show, in order."""

    problems: int = 0
    messages: list[str] = field(default_factory=list)

    def problem(self, message: str) -> None:
        self.problems += 1
        self.messages.append(message)

    def note(self, message: str) -> None:
        self.messages.append(message)


@dataclass(slots=True)
class CommonOptions:
    """Parsed values of the options every imposter accepts."""

    accessions: tuple[str, ...] = ()
    ngc_file: str | None = None
    perm_file: str | None = None
    location: str | None = None
    cart_file: str | None = None
    disable_multithreading: bool = False
    version: bool = False
    verbosity: int = 0
    debug_flags: tuple[str, ...] = ()
    log_level: str | None = None
    option_file: str | None = None

    @classmethod
    def from_params(cls, params: Mapping[str, object]) -> CommonOptions:
        """Build from click's parsed parameters; raise usage error on too many accessions."""

        accessions = tuple(params.get("accessions") or ())
        if len(accessions) > MAX_ACCESSIONS:
            raise click.UsageError(
                f"Too many accessions: {len(accessions)} given, at most {MAX_ACCESSIONS} allowed.",
            )
        return cls(
            accessions=accessions,
            ngc_file=params.get("ngc_file") or None,
            perm_file=params.get("perm_file") or None,
            location=params.get("location") or None,
            cart_file=params.get("cart_file") or None,
            disable_multithreading=bool(params.get("disable_multithreading", False)),
            version=bool(params.get("version", False)),
            verbosity=int(params.get("verbosity") or 0),
            debug_flags=_split_debug_flags(params.get("debug_flags") or ()),
            log_level=params.get("log_level") or None,
            option_file=params.get("option_file") or None,
        )

    def show(self) -> list[str]:
        lines = [f"acc  = {accession}" for accession in self.accessions]
        if self.ngc_file:
            lines.append(f"ngc-file : {self.ngc_file}")
        if self.perm_file:
            lines.append(f"perm-file: {self.perm_file}")
        if self.location:
            lines.append(f"location : {self.location}")
        if self.cart_file:
            lines.append(f"cart-file: {self.cart_file}")
        if self.disable_multithreading:
            lines.append("disable multithreading")
        if self.version:
            lines.append("version")
        if self.verbosity:
            lines.append(f"verbosity: {self.verbosity}")
        if self.debug_flags:
            lines.append(f"debug modules:{','.join(self.debug_flags)}")
        if self.log_level:
            lines.append(f"log-level: {self.log_level}")
        if self.option_file:
            lines.append(f"option-file: {self.option_file}")
        return lines

    def populate_common_argv(
        self,
        builder: ArgvBuilder,
        *,
        style: VerbosityStyle = VerbosityStyle.STANDARD,
    ) -> None:
        builder.add_option_list("-+", self.debug_flags)
        if self.disable_multithreading:
            builder.add_option("--disable-multithreading")
        if self.log_level:
            builder.add_option("-L", self.log_level)
        if self.option_file:
            builder.add_option("--option-file", self.option_file)
        if self.ngc_file:
            builder.add_option("--ngc", self.ngc_file)
        if self.verbosity > 0:
            if style is VerbosityStyle.REPEATED:
                # fastq-dump can't handle -vvv
                for _ in range(self.verbosity):
                    builder.add_option("-v")
            else:
                builder.add_option("-" + "v" * self.verbosity)

    def validate(
        self,
        *,
        cloud: CloudEnvironment,
        path_exists: Callable[[str], bool] = os.path.exists,
        classify: Callable[[str], AccessionType] = classify_accession,
    ) -> ValidationReport:
        """Collect every problem with the parsed values without stopping early."""

        report = ValidationReport()
        if self.log_level and self.log_level not in LOG_LEVELS:
            report.problem(f"invalid log-level: {self.log_level}")

        if self.perm_file:
            if self.ngc_file:
                report.problem("--perm and --ngc are mutually exclusive. Please use only one.")
            if not path_exists(self.perm_file):
                report.problem(f"--perm {self.perm_file}\nFile not found.")
            if not cloud.has_cloud_provider():
                report.problem(PERM_OUTSIDE_CLOUD_MESSAGE)
            elif not cloud.can_send_ce_token():
                report.problem(PERM_NEEDS_IDENTITY_MESSAGE)

        if self.ngc_file and not path_exists(self.ngc_file):
            report.problem(f"--ngc {self.ngc_file}\nFile not found.")
        if self.cart_file and not path_exists(self.cart_file):
            report.problem(f"--cart {self.cart_file}\nFile not found.")

        containers = 0
        for accession in self.accessions:
            if path_exists(accession):
                continue
            if classify(accession) is not AccessionType.CONTAINER:
                continue
            containers += 1
            report.problem(
                f"{accession} is not a run accession. "
                f"For more information, see {accession_info_url(accession)}",
            )
        if containers > 0:
            report.note(CONTAINER_SUMMARY_MESSAGE)
        return report

    def check(
        self,
        *,
        cloud: CloudEnvironment,
        dry_run: bool = False,
        path_exists: Callable[[str], bool] = os.path.exists,
        classify: Callable[[str], AccessionType] = classify_accession,
    ) -> bool:
        """Report validation problems on stderr; True when the run may proceed."""

        report = self.validate(cloud=cloud, path_exists=path_exists, classify=classify)
        for message in report.messages:
            click.echo(message, err=True)
        if report.problems == 0:
            return True
        if dry_run:
            click.echo("Problems allowed for testing purposes!", err=True)
            return True
        return False


def common_parameters(*, multithreading: bool, debug_options: bool) -> list[click.Parameter]:
    """Click parameters for the shared options, in help order."""

    params: list[click.Parameter] = [
        click.Argument(["accessions"], nargs=-1),
        click.Option(["--ngc", "ngc_file"], metavar="<path>", help="<path> to ngc file"),
        click.Option(
            ["--perm", "perm_file"],
            metavar="<path>",
            help="<path> to permission file",
        ),
        click.Option(["--location", "location"], metavar="<location>", help="location in cloud"),
        click.Option(["--cart", "cart_file"], metavar="<path>", help="<path> to cart file"),
    ]
    if multithreading:
        params.append(
            click.Option(
                ["--disable-multithreading", "disable_multithreading"],
                is_flag=True,
                default=False,
                help="disable multithreading",
            ),
        )
    params.append(
        click.Option(
            ["-V", "--version", "version"],
            is_flag=True,
            default=False,
            help="Display the version of the program",
        ),
    )
    params.append(
        click.Option(
            ["-v", "--verbose", "verbosity"],
            count=True,
            help=(
                "Increase the verbosity of the program status messages. "
                "Use multiple times for more verbosity."
            ),
        ),
    )
    if debug_options:
        params.append(
            click.Option(
                ["-+", "--debug", "debug_flags"],
                multiple=True,
                metavar="<Module[-Flag]>",
                help="Turn on debug output for module. All flags if not specified.",
            ),
        )
    params.append(
        click.Option(
            ["-L", "--log-level", "log_level"],
            metavar="<level>",
            help=(
                "Logging level as number or enum string. One of "
                "(fatal|sys|int|err|warn|info|debug) or (0-6) Current/default is warn"
            ),
        ),
    )
    params.append(
        click.Option(
            ["--option-file", "option_file"],
            metavar="<file>",
            help="Read more options and parameters from the file.",
        ),
    )
    return params


def _split_debug_flags(values: Iterable[object]) -> tuple[str, ...]:
    flags: list[str] = []
    for value in values:
        flags.extend(part.strip() for part in str(value).split(",") if part.strip())
    return tuple(flags)
