"""Runtime configuration for the launcher, read from ``SRATOOLS_*`` variables."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from urllib.parse import urlparse

from sratools_driver import __version__

DEFAULT_SDL_URL = "https://locate.ncbi.nlm.nih.gov/sdl/2/retrieve"
SUPPORTED_CLOUD_PROVIDERS = ("aws", "gcp", "none")

_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+$")
_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off"})


@dataclass(slots=True)
class SdlSettings:
    """Locator service client settings."""

    url: str = DEFAULT_SDL_URL
    timeout_seconds: float = 30.0
    max_retries: int = 3
    accept_proto: str = "https"


@dataclass(slots=True)
class CloudSettings:
    """Cloud identity settings."""

    provider: str | None = None
    report_identity: bool = False
    ce_token: str | None = None


@dataclass(slots=True)
class Settings:
    """Launcher settings grouped by concern."""

    toolkit_version: str = __version__
    impersonate: str | None = None
    dry_run: bool = False
    debug_options: bool = False
    sdl: SdlSettings = field(default_factory=SdlSettings)
    cloud: CloudSettings = field(default_factory=CloudSettings)

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from the environment, falling back to defaults."""

        return cls(
            toolkit_version=os.getenv("SRATOOLS_TOOLKIT_VERSION", __version__).strip(),
            impersonate=_env_str("SRATOOLS_IMPERSONATE"),
            dry_run=_env_bool("SRATOOLS_DRY_RUN", default=False),
            debug_options=_env_bool("SRATOOLS_DEBUG_OPTIONS", default=False),
            sdl=SdlSettings(
                url=os.getenv("SRATOOLS_SDL_URL", DEFAULT_SDL_URL).strip(),
                timeout_seconds=_env_float("SRATOOLS_SDL_TIMEOUT_SECONDS", "30.0"),
                max_retries=_env_int("SRATOOLS_SDL_MAX_RETRIES", "3"),
                accept_proto=os.getenv("SRATOOLS_SDL_ACCEPT_PROTO", "https").strip(),
            ),
            cloud=CloudSettings(
                provider=_env_str("SRATOOLS_CLOUD_PROVIDER"),
                report_identity=_env_bool("SRATOOLS_REPORT_CLOUD_IDENTITY", default=False),
                ce_token=_env_str("SRATOOLS_CE_TOKEN"),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error if any setting is out of range."""

        if not _VERSION_RE.match(self.toolkit_version):
            raise ValueError(
                "SRATOOLS_TOOLKIT_VERSION must look like <major>.<minor>.<release>: "
                f"{self.toolkit_version!r}",
            )
        parsed = urlparse(self.sdl.url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(
                f"Invalid SRATOOLS_SDL_URL: {self.sdl.url!r}. "
                "Expected an absolute URL with http:// or https:// scheme.",
            )
        if self.sdl.timeout_seconds <= 0:
            raise ValueError("SRATOOLS_SDL_TIMEOUT_SECONDS must be > 0.")
        if self.sdl.max_retries < 0:
            raise ValueError("SRATOOLS_SDL_MAX_RETRIES must be >= 0.")
        if not self.sdl.accept_proto:
            raise ValueError("SRATOOLS_SDL_ACCEPT_PROTO must not be empty.")
        if (
            self.cloud.provider is not None
            and self.cloud.provider.lower() not in SUPPORTED_CLOUD_PROVIDERS
        ):
            raise ValueError(
                f"Unsupported SRATOOLS_CLOUD_PROVIDER: {self.cloud.provider!r}. "
                f"Expected one of {', '.join(SUPPORTED_CLOUD_PROVIDERS)}.",
            )


def _env_str(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default).strip()
    try:
        return int(raw)
    except ValueError as error:
        raise ValueError(f"Invalid integer value for {name}: {raw!r}") from error


def _env_float(name: str, default: str) -> float:
    raw = os.getenv(name, default).strip()
    try:
        return float(raw)
    except ValueError as error:
        raise ValueError(f"Invalid numeric value for {name}: {raw!r}") from error


def _env_bool(name: str, *, default: bool) -> bool:
    """Read a yes/no switch; an unset or blank variable keeps ``default``."""

    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_WORDS:
        return True
    if raw in _FALSE_WORDS:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {raw!r}")
