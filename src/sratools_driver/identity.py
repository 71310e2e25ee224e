"""Imposter detection: which tool the launcher was asked to be."""

from __future__ import annotations

from dataclasses import dataclass

from sratools_driver.errors import InvalidToolError, InvalidVersionError
from sratools_driver.models import ToolIdentity
from sratools_driver.tool_path import ToolPath

_IDENTITY_BY_NAME: dict[str, ToolIdentity] = {
    identity.value: identity for identity in ToolIdentity if identity is not ToolIdentity.INVALID
}


def detect_identity(basename: str) -> ToolIdentity:
    """Map an invocation basename to a tool identity (exact, case-sensitive)."""

    return _IDENTITY_BY_NAME.get(basename, ToolIdentity.INVALID)


@dataclass(frozen=True, slots=True)
class IdentityCheck:
    """Identity and version verdict computed once at startup."""

    tool_path: ToolPath
    identity: ToolIdentity
    version_matches: bool

    @classmethod
    def inspect(cls, tool_path: ToolPath) -> IdentityCheck:
        return cls(
            tool_path=tool_path,
            identity=detect_identity(tool_path.basename),
            version_matches=tool_path.version_matches,
        )

    @classmethod
    def resolve(cls, tool_path: ToolPath) -> IdentityCheck:
        """Inspect and raise on version mismatch or unknown tool."""

        check = cls.inspect(tool_path)
        if not check.version_matches:
            raise InvalidVersionError(tool_path.version, tool_path.toolkit_version)
        if check.invalid:
            raise InvalidToolError(tool_path.basename)
        return check

    @property
    def invalid(self) -> bool:
        return self.identity is ToolIdentity.INVALID

    def describe(self) -> str:
        return (
            f"{self.identity.name}"
            f" runpath={self.tool_path.fullpath}"
            f" basename={self.tool_path.basename}"
            f" requested_version={self.tool_path.version}"
            f" toolkit_version={self.tool_path.toolkit_version}"
            f" version_ok={'YES' if self.version_matches else 'NO'}"
        )
