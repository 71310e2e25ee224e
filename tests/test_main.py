from __future__ import annotations

from collections.abc import Sequence

import allure
import pytest
from conftest import FakeGateway, FakeLauncher, remote

from sratools_driver.config import CloudSettings, Settings
from sratools_driver.errors import SourceResolutionError
from sratools_driver.main import main
from sratools_driver.models import ChildExitFailure, ExitCode
from sratools_driver.sources.base import ResolutionParams

pytestmark = [
    allure.epic("Launcher"),
    allure.feature("Command Line"),
]

BIN = "/opt/sra/bin"


def _run(
    argv: Sequence[str],
    settings: Settings,
    gateway: FakeGateway,
    launcher: FakeLauncher,
) -> int:
    return main(argv, settings=settings, gateway=gateway, launcher=launcher)


def test_missing_program_name(settings: Settings) -> None:
    assert main([], settings=settings) == ExitCode.SOFTWARE


def test_invalid_configuration(capsys: pytest.CaptureFixture[str]) -> None:
    status = main([f"{BIN}/fastq-dump"], settings=Settings(toolkit_version="three"))

    assert status == ExitCode.CONFIG
    assert "Configuration error" in capsys.readouterr().err


def test_unknown_tool_name(
    settings: Settings,
    gateway: FakeGateway,
    launcher: FakeLauncher,
    capsys: pytest.CaptureFixture[str],
) -> None:
    status = _run([f"{BIN}/sratools", "SRR000001"], settings, gateway, launcher)

    assert status == ExitCode.USAGE
    assert "Invalid tool requested: 'sratools'" in capsys.readouterr().err
    assert launcher.launches == []


def test_version_mismatch(settings: Settings, gateway: FakeGateway, launcher: FakeLauncher) -> None:
    status = _run([f"{BIN}/fastq-dump.2.0.0", "SRR000001"], settings, gateway, launcher)

    assert status == ExitCode.CONFIG
    assert launcher.launches == []


def test_version_flag(
    settings: Settings,
    gateway: FakeGateway,
    launcher: FakeLauncher,
    capsys: pytest.CaptureFixture[str],
) -> None:
    status = _run([f"{BIN}/fastq-dump", "--version"], settings, gateway, launcher)

    assert status == ExitCode.OK
    assert capsys.readouterr().out == "\nfastq-dump : 3.0.10\n\n"
    assert gateway.calls == []


def test_help_exits_cleanly(settings: Settings, gateway: FakeGateway, launcher: FakeLauncher) -> None:
    assert _run([f"{BIN}/vdb-dump", "-h"], settings, gateway, launcher) == ExitCode.OK
    assert launcher.launches == []


@pytest.mark.parametrize(
    "argv",
    [
        ["fastq-dump", "--perm"],
        ["fasterq-dump", "--disable-multithreading", "SRR000001"],
        ["fastq-dump", "-+", "VFS", "SRR000001"],
        ["fastq-dump", "--ngc"],
    ],
)
def test_usage_errors(
    argv: list[str],
    settings: Settings,
    gateway: FakeGateway,
    launcher: FakeLauncher,
) -> None:
    argv = [f"{BIN}/{argv[0]}", *argv[1:]]

    assert _run(argv, settings, gateway, launcher) == ExitCode.USAGE
    assert launcher.launches == []


def test_too_many_accessions(
    settings: Settings,
    gateway: FakeGateway,
    launcher: FakeLauncher,
) -> None:
    accessions = [f"SRR{index:06d}" for index in range(257)]

    assert _run([f"{BIN}/fastq-dump", *accessions], settings, gateway, launcher) == ExitCode.USAGE
    assert gateway.calls == []


def test_validation_failure_stops_before_dispatch(
    settings: Settings,
    gateway: FakeGateway,
    launcher: FakeLauncher,
    capsys: pytest.CaptureFixture[str],
) -> None:
    status = _run([f"{BIN}/fastq-dump", "SRP000001"], settings, gateway, launcher)

    assert status == ExitCode.USAGE
    assert "SRP000001 is not a run accession" in capsys.readouterr().err
    assert gateway.calls == []


def test_dry_run_lets_validation_problems_through(
    gateway: FakeGateway,
    launcher: FakeLauncher,
    capsys: pytest.CaptureFixture[str],
) -> None:
    settings = Settings(toolkit_version="3.0.10", dry_run=True, cloud=CloudSettings(provider="none"))

    status = _run([f"{BIN}/fastq-dump", "-L", "loud", "SRR000001"], settings, gateway, launcher)

    assert status == ExitCode.OK
    assert "Problems allowed for testing purposes!" in capsys.readouterr().err
    assert gateway.calls[0][0] == ("SRR000001",)


def test_dispatches_each_accession(
    settings: Settings,
    gateway: FakeGateway,
    launcher: FakeLauncher,
) -> None:
    gateway.table = {
        "SRR000001": (remote("ncbi", "https://ncbi/1"),),
        "SRR000002": (remote("ncbi", "https://ncbi/2"),),
    }

    status = _run(
        [f"{BIN}/fastq-dump", "-L", "warn", "-v", "SRR000001", "SRR000002"],
        settings,
        gateway,
        launcher,
    )

    assert status == ExitCode.OK
    assert [record.argv for record in launcher.launches] == [
        (f"{BIN}/fastq-dump", "-L", "warn", "-v", "SRR000001"),
        (f"{BIN}/fastq-dump", "-L", "warn", "-v", "SRR000002"),
    ]
    assert launcher.launches[0].path == f"{BIN}/fastq-dump-orig.3.0.10"
    assert gateway.calls[0][1] == ResolutionParams()


def test_child_exit_code_becomes_launcher_exit_code(
    settings: Settings,
    gateway: FakeGateway,
    launcher: FakeLauncher,
    capsys: pytest.CaptureFixture[str],
) -> None:
    gateway.table = {"SRR000001": (remote("ncbi", "https://ncbi/1"),)}
    launcher.outcomes["https://ncbi/1"] = ChildExitFailure(exit_code=2)

    status = _run([f"{BIN}/sam-dump", "SRR000001"], settings, gateway, launcher)

    assert status == 2
    assert "sam-dump quit with error code 2" in capsys.readouterr().err


def test_exhausted_sources_exit_temporary_failure(
    settings: Settings,
    gateway: FakeGateway,
    launcher: FakeLauncher,
    capsys: pytest.CaptureFixture[str],
) -> None:
    gateway.table = {"SRR000001": (remote("s3", "u1"), remote("ncbi", "u2"))}
    launcher.outcomes = {"u1": ChildExitFailure(75), "u2": ChildExitFailure(75)}

    status = _run([f"{BIN}/vdb-dump", "SRR000001"], settings, gateway, launcher)

    assert status == ExitCode.TEMPFAIL
    assert "Could not get any data for SRR000001" in capsys.readouterr().err


def test_locator_failure_exits_temporary_failure(
    settings: Settings,
    launcher: FakeLauncher,
) -> None:
    class Unreachable(FakeGateway):
        def resolve(self, accessions, params):  # type: ignore[override]
            raise SourceResolutionError("Timeout contacting data locator service")

    status = main(
        [f"{BIN}/fastq-dump", "SRR000001"],
        settings=settings,
        gateway=Unreachable(),
        launcher=launcher,
    )

    assert status == ExitCode.TEMPFAIL


def test_split_output_announces_per_accession_files(
    settings: Settings,
    gateway: FakeGateway,
    launcher: FakeLauncher,
    capsys: pytest.CaptureFixture[str],
) -> None:
    gateway.table = {
        "SRR000001": (remote("ncbi", "u1"),),
        "SRR000002": (remote("ncbi", "u2"),),
    }

    status = _run(
        [f"{BIN}/fasterq-dump", "-o", "all.fastq", "SRR000001", "SRR000002"],
        settings,
        gateway,
        launcher,
    )

    assert status == ExitCode.OK
    out = capsys.readouterr().out
    assert "\tSRR000001.fastq" in out
    assert "\tSRR000002.fastq" in out
    assert [record.argv[1:3] for record in launcher.launches] == [
        ("--outfile", "SRR000001.fastq"),
        ("--outfile", "SRR000002.fastq"),
    ]


def test_direct_tools_replace_the_process(
    settings: Settings,
    gateway: FakeGateway,
    launcher: FakeLauncher,
) -> None:
    status = _run([f"{BIN}/srapath", "--json", "SRR000001", "SRR000002"], settings, gateway, launcher)

    # the fake launcher returns instead of replacing the process
    assert status == ExitCode.SOFTWARE
    assert gateway.calls == []
    (replacement,) = launcher.replacements
    assert replacement.path == f"{BIN}/srapath-orig.3.0.10"
    assert replacement.argv == (f"{BIN}/srapath", "--json", "SRR000001", "SRR000002")


def test_missing_tool_binary_exits_no_input(
    settings: Settings,
    gateway: FakeGateway,
    launcher: FakeLauncher,
) -> None:
    launcher.replace_error = FileNotFoundError("prefetch-orig.3.0.10")

    status = _run([f"{BIN}/prefetch", "SRR000001"], settings, gateway, launcher)

    assert status == ExitCode.NO_INPUT


def test_no_accessions_hands_over_to_the_tool(
    settings: Settings,
    gateway: FakeGateway,
    launcher: FakeLauncher,
) -> None:
    _run([f"{BIN}/fastq-dump", "-L", "info"], settings, gateway, launcher)

    assert gateway.calls == []
    assert launcher.replacements[0].argv == (f"{BIN}/fastq-dump", "-L", "info")


def test_impersonation(gateway: FakeGateway, launcher: FakeLauncher) -> None:
    settings = Settings(
        toolkit_version="3.0.10",
        impersonate="vdb-dump",
        cloud=CloudSettings(provider="none"),
    )
    gateway.table = {"SRR000001": (remote("ncbi", "u1"),)}

    status = _run([f"{BIN}/sratools", "SRR000001"], settings, gateway, launcher)

    assert status == ExitCode.OK
    assert launcher.launches[0].path == f"{BIN}/vdb-dump-orig.3.0.10"
    assert launcher.launches[0].argv[0] == f"{BIN}/vdb-dump"


def test_debug_options_are_forwarded_when_enabled(
    gateway: FakeGateway,
    launcher: FakeLauncher,
) -> None:
    settings = Settings(
        toolkit_version="3.0.10",
        debug_options=True,
        cloud=CloudSettings(provider="none"),
    )
    gateway.table = {"SRR000001": (remote("ncbi", "u1"),)}

    status = _run([f"{BIN}/fastq-dump", "-+", "VFS", "SRR000001"], settings, gateway, launcher)

    assert status == ExitCode.OK
    assert launcher.launches[0].argv[1:3] == ("-+", "VFS")


def test_tool_options_reach_the_child_before_the_accession(
    settings: Settings,
    gateway: FakeGateway,
    launcher: FakeLauncher,
) -> None:
    gateway.table = {"SRR000001": (remote("ncbi", "u1"),)}

    status = _run(
        [
            f"{BIN}/fastq-dump",
            "--defline-seq",
            "@$ac.$si",
            "--some-future-switch",
            "--future-level=3",
            "SRR000001",
        ],
        settings,
        gateway,
        launcher,
    )

    assert status == ExitCode.OK
    assert launcher.launches[0].argv == (
        f"{BIN}/fastq-dump",
        "--defline-seq",
        "@$ac.$si",
        "--some-future-switch",
        "--future-level=3",
        "SRR000001",
    )
    assert gateway.calls[0][0] == ("SRR000001",)


def test_repeated_tool_option_keeps_every_value(
    settings: Settings,
    gateway: FakeGateway,
    launcher: FakeLauncher,
) -> None:
    _run([f"{BIN}/srapath", "-p", "a=1", "-p", "b=2", "SRR000001"], settings, gateway, launcher)

    (replacement,) = launcher.replacements
    assert replacement.argv == (
        f"{BIN}/srapath",
        "--param",
        "a=1",
        "--param",
        "b=2",
        "SRR000001",
    )


def test_split_output_follows_command_line_position(
    settings: Settings,
    gateway: FakeGateway,
    launcher: FakeLauncher,
    capsys: pytest.CaptureFixture[str],
) -> None:
    gateway.table = {"SRR000002": (remote("ncbi", "u2"),)}

    status = _run(
        [f"{BIN}/fasterq-dump", "-o", "all.fastq", "SRR000001", "SRR000002"],
        settings,
        gateway,
        launcher,
    )

    assert status == ExitCode.OK
    assert "\tSRR000002.fastq" in capsys.readouterr().out
    assert launcher.launches[0].argv[1:] == ("--outfile", "SRR000002.fastq", "SRR000002")
