"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import pytest

from sratools_driver.cloud import CloudEnvironment
from sratools_driver.config import CloudSettings, Settings
from sratools_driver.models import ChildOutcome, ChildSuccess
from sratools_driver.sources.base import DataSource, ResolutionParams, SourceSet

TOOLKIT_VERSION = "3.0.10"


@dataclass
class LaunchRecord:
    path: str
    display_name: str
    argv: tuple[str, ...]
    environment: dict[str, str]


@dataclass
class FakeLauncher:
    """Records launches; outcomes are looked up by ``VDB_REMOTE_URL``."""

    outcomes: dict[str, ChildOutcome] = field(default_factory=dict)
    replace_error: OSError | None = None
    launches: list[LaunchRecord] = field(default_factory=list)
    replacements: list[LaunchRecord] = field(default_factory=list)

    def replace(self, path: str, display_name: str, argv: Sequence[str]) -> None:
        self.replacements.append(LaunchRecord(path, display_name, tuple(argv), {}))
        if self.replace_error is not None:
            raise self.replace_error

    def run_and_wait(
        self,
        path: str,
        display_name: str,
        argv: Sequence[str],
        environment: Mapping[str, str],
    ) -> ChildOutcome:
        self.launches.append(LaunchRecord(path, display_name, tuple(argv), dict(environment)))
        return self.outcomes.get(environment.get("VDB_REMOTE_URL", ""), ChildSuccess())

    @property
    def accessions_run(self) -> list[str]:
        return [record.argv[-1] for record in self.launches]


@dataclass
class FakeGateway:
    """Serves a fixed source table and records every resolution call."""

    table: dict[str, tuple[DataSource, ...]] = field(default_factory=dict)
    calls: list[tuple[tuple[str, ...], ResolutionParams]] = field(default_factory=list)

    def resolve(self, accessions: Sequence[str], params: ResolutionParams) -> SourceSet:
        self.calls.append((tuple(accessions), params))
        return SourceSet(
            by_accession={accession: self.table.get(accession, ()) for accession in accessions},
        )


def remote(service: str, url: str, **extra: str) -> DataSource:
    return DataSource(service=service, environment={"VDB_REMOTE_URL": url, **extra})


@pytest.fixture()
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        toolkit_version=TOOLKIT_VERSION,
        cloud=CloudSettings(provider="none"),
    )


@pytest.fixture()
def no_cloud() -> CloudEnvironment:
    return CloudEnvironment(provider_override="none")
