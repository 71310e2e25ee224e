"""Cloud provider detection and cloud identity (CE token) policy."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from sratools_driver.config import CloudSettings

logger = logging.getLogger(__name__)

DEFAULT_DMI_ROOT = Path("/sys/class/dmi/id")


class CloudProvider(str, Enum):
    """Cloud providers the locator service understands."""

    AWS = "aws"
    GCP = "gcp"


@dataclass(slots=True)
class CloudEnvironment:
    """Answers the cloud questions asked by validation and source resolution."""

    provider_override: str | None = None
    report_identity: bool = False
    identity_token: str | None = None
    dmi_root: Path = DEFAULT_DMI_ROOT

    @classmethod
    def from_settings(cls, settings: CloudSettings) -> CloudEnvironment:
        return cls(
            provider_override=settings.provider,
            report_identity=settings.report_identity,
            identity_token=settings.ce_token,
        )

    def provider(self) -> CloudProvider | None:
        if self.provider_override is not None:
            override = self.provider_override.strip().lower()
            if override == "none":
                return None
            return CloudProvider(override)
        return self._probe_dmi()

    def has_cloud_provider(self) -> bool:
        return self.provider() is not None

    def can_send_ce_token(self) -> bool:
        return self.report_identity

    def ce_token(self) -> str | None:
        """Token to forward, or None when it may not or cannot be sent."""

        if not self.can_send_ce_token():
            return None
        return self.identity_token

    def _probe_dmi(self) -> CloudProvider | None:
        vendor = _read_dmi(self.dmi_root / "sys_vendor")
        product = _read_dmi(self.dmi_root / "product_name")
        if "amazon" in vendor or product.startswith("ec2"):
            return CloudProvider.AWS
        if "google" in vendor or "google" in product:
            return CloudProvider.GCP
        return None


def _read_dmi(path: Path) -> str:
    try:
        return path.read_text("utf-8").strip().lower()
    except OSError:
        logger.debug("DMI attribute not readable: %s", path)
        return ""
