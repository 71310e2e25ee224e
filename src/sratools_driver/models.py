"""Domain models shared by identity resolution, validation and dispatch."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


class ToolIdentity(str, Enum):
    """Tool identities the launcher can impersonate."""

    SRAPATH = "srapath"
    PREFETCH = "prefetch"
    FASTQ_DUMP = "fastq-dump"
    FASTERQ_DUMP = "fasterq-dump"
    SRA_PILEUP = "sra-pileup"
    SAM_DUMP = "sam-dump"
    VDB_DUMP = "vdb-dump"
    INVALID = "invalid"


class AccessionType(str, Enum):
    """Coarse accession classes used by option validation."""

    UNKNOWN = "unknown"
    RUN = "run"
    CONTAINER = "container"


class ExitCode(IntEnum):
    """Process exit statuses (sysexits convention plus driver specials)."""

    OK = 0
    SIGNALED = 3
    USAGE = 64
    NO_INPUT = 66
    SOFTWARE = 70
    TEMPFAIL = 75
    CONFIG = 78


@dataclass(frozen=True, slots=True)
class ChildOutcome:
    """Result of one spawn-and-wait of a child tool."""


@dataclass(frozen=True, slots=True)
class ChildSuccess(ChildOutcome):
    """Child exited with status zero."""


@dataclass(frozen=True, slots=True)
class ChildExitFailure(ChildOutcome):
    """Child exited with a non-zero status."""

    exit_code: int


@dataclass(frozen=True, slots=True)
class ChildSignaled(ChildOutcome):
    """Child was terminated by a signal."""

    signal: int
    name: str | None = None
