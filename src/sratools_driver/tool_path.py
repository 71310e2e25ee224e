"""Where the launcher was invoked from and where the real tool lives."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import PurePath, PurePosixPath, PureWindowsPath

_EXE_SUFFIX = ".exe"
_VERSIONED_NAME_RE = re.compile(r"^(?P<name>.+?)\.(?P<version>\d+\.\d+\.\d+)$")


@dataclass(frozen=True, slots=True)
class ToolPath:
    """Invocation path split into directory, tool basename and version.

    ``fullpath`` is what the user invoked and is handed to the child as its
    ``argv[0]``. ``basename`` has the platform executable suffix and any
    trailing ``.<major>.<minor>.<release>`` removed. ``version`` is the
    version requested by the invocation name, or the toolkit version when
    the name carries none.
    """

    fullpath: str
    directory: str
    basename: str
    version: str
    toolkit_version: str
    os_name: str = "posix"

    @classmethod
    def from_invocation(
        cls,
        argv0: str,
        *,
        toolkit_version: str,
        impersonate: str | None = None,
        os_name: str | None = None,
    ) -> ToolPath:
        current_os_name = os_name or os.name
        path = _pure_path(argv0, current_os_name)
        name = impersonate or path.name
        directory = str(path.parent) if str(path.parent) not in {"", "."} else ""
        fullpath = str(path.with_name(name)) if impersonate and path.name else argv0

        if current_os_name == "nt" and name.lower().endswith(_EXE_SUFFIX):
            name = name[: -len(_EXE_SUFFIX)]

        version = toolkit_version
        match = _VERSIONED_NAME_RE.match(name)
        if match is not None:
            name = match.group("name")
            version = match.group("version")

        return cls(
            fullpath=fullpath,
            directory=directory,
            basename=name,
            version=version,
            toolkit_version=toolkit_version,
            os_name=current_os_name,
        )

    @property
    def version_matches(self) -> bool:
        return self.version == self.toolkit_version

    def private_path(self) -> str:
        """Path of the real tool binary the launcher stands in for."""

        filename = f"{self.basename}-orig.{self.version}"
        if self.os_name == "nt":
            filename += _EXE_SUFFIX
        if not self.directory:
            return filename
        return str(_pure_path(self.directory, self.os_name) / filename)


def _pure_path(value: str, os_name: str) -> PurePath:
    if os_name == "nt":
        return PureWindowsPath(value)
    return PurePosixPath(value)
