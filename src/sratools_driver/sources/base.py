"""Source resolution interface: accession -> ordered candidate data sources."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True, slots=True)
class DataSource:
    """One candidate location for an accession.

    ``environment`` is overlaid on the child's environment only for the
    attempt that uses this source.
    """

    service: str
    environment: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ResolutionParams:
    """Per-call parameters of one batched resolution."""

    location: str | None = None
    perm_file: str | None = None
    ngc_file: str | None = None


@dataclass(slots=True)
class SourceSet:
    """Candidate sources per accession, in retry-priority order.

    An empty tuple means the gateway already reported why the accession
    could not be resolved.
    """

    by_accession: dict[str, tuple[DataSource, ...]] = field(default_factory=dict)

    def sources_for(self, accession: str) -> tuple[DataSource, ...]:
        return self.by_accession.get(accession, ())

    def __len__(self) -> int:
        return len(self.by_accession)


class SourceGateway(Protocol):
    """Protocol implemented by source resolvers."""

    def resolve(self, accessions: Sequence[str], params: ResolutionParams) -> SourceSet:
        """Resolve every accession in one batch."""
