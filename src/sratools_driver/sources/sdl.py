"""Locator service (SDL) client turning accessions into candidate sources."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import httpx
import rich_click as click

from sratools_driver import __version__
from sratools_driver.cloud import CloudEnvironment
from sratools_driver.config import DEFAULT_SDL_URL, Settings
from sratools_driver.errors import SourceResolutionError
from sratools_driver.sources.base import DataSource, ResolutionParams, SourceSet

logger = logging.getLogger(__name__)

SDL_PROTOCOL_VERSION = "130"
LOCAL_FILE_SERVICE = "local file"
DEFAULT_USER_AGENT = f"sratools-driver/{__version__}"


class SdlGateway:
    """Batched locator client; existing paths resolve locally without a request."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        url: str = DEFAULT_SDL_URL,
        timeout_seconds: float = 30.0,
        max_retries: int = 3,
        accept_proto: str = "https",
        cloud: CloudEnvironment | None = None,
        client: httpx.Client | None = None,
        path_exists: Callable[[str], bool] = os.path.exists,
    ) -> None:
        self._url = url
        self._accept_proto = accept_proto
        self._cloud = cloud or CloudEnvironment()
        self._path_exists = path_exists
        if client is None:
            client = httpx.Client(
                timeout=httpx.Timeout(timeout_seconds, connect=10.0),
                headers={"User-Agent": DEFAULT_USER_AGENT},
                transport=httpx.HTTPTransport(retries=max_retries),
                follow_redirects=True,
            )
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings, *, cloud: CloudEnvironment) -> SdlGateway:
        return cls(
            url=settings.sdl.url,
            timeout_seconds=settings.sdl.timeout_seconds,
            max_retries=settings.sdl.max_retries,
            accept_proto=settings.sdl.accept_proto,
            cloud=cloud,
        )

    def resolve(self, accessions: Sequence[str], params: ResolutionParams) -> SourceSet:
        by_accession: dict[str, tuple[DataSource, ...]] = {}
        remote: list[str] = []
        for accession in accessions:
            if accession in by_accession or accession in remote:
                continue
            if self._path_exists(accession):
                by_accession[accession] = (
                    DataSource(
                        service=LOCAL_FILE_SERVICE,
                        environment={"VDB_LOCAL_URL": accession},
                    ),
                )
                continue
            remote.append(accession)

        if remote:
            payload = self._request(remote, params)
            by_accession.update(self._parse(remote, payload))
        return SourceSet(by_accession=by_accession)

    def _request(self, accessions: list[str], params: ResolutionParams) -> Any:
        data: dict[str, str | list[str]] = {
            "acc": accessions,
            "accept-proto": self._accept_proto,
            "version": SDL_PROTOCOL_VERSION,
        }
        if params.location:
            data["location"] = params.location
        files: dict[str, tuple[str, bytes]] = {}
        if params.perm_file:
            files["perm"] = _read_upload(params.perm_file)
            token = self._cloud.ce_token()
            if token:
                data["ident"] = token
        if params.ngc_file:
            files["ngc"] = _read_upload(params.ngc_file)

        logger.debug("Resolving %d accession(s) via %s", len(accessions), self._url)
        try:
            response = self._client.post(self._url, data=data, files=files or None)
        except httpx.TimeoutException as error:
            raise SourceResolutionError(
                f"Timeout contacting data locator service {self._url}",
            ) from error
        except httpx.HTTPError as error:
            raise SourceResolutionError(
                f"Failed to contact data locator service {self._url}: {error}",
            ) from error

        if not response.is_success:
            raise SourceResolutionError(
                f"Data locator service {self._url} answered HTTP {response.status_code}",
            )
        try:
            return response.json()
        except ValueError as error:
            raise SourceResolutionError(
                f"Data locator service {self._url} returned invalid JSON",
            ) from error

    def _parse(self, accessions: list[str], payload: Any) -> dict[str, tuple[DataSource, ...]]:
        results = payload.get("result") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            raise SourceResolutionError(
                f"Data locator service {self._url} returned an unexpected response",
            )

        token = self._cloud.ce_token()
        wanted = set(accessions)
        resolved: dict[str, tuple[DataSource, ...]] = {}
        for bundle in results:
            if not isinstance(bundle, dict):
                continue
            accession = str(bundle.get("bundle", ""))
            if accession not in wanted:
                logger.debug("Ignoring unrequested bundle %r", accession)
                continue
            status = _as_int(bundle.get("status", 200))
            if status != 200:
                _report(f"{accession}: {bundle.get('msg') or f'status {status}'}")
                resolved[accession] = ()
                continue
            sources = _sources_from_files(bundle.get("files") or [], token)
            if not sources:
                _report(f"{accession}: no data sources available")
            resolved[accession] = sources

        for accession in accessions:
            if accession not in resolved:
                _report(f"{accession}: not found by the data locator service")
                resolved[accession] = ()
        return resolved

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> SdlGateway:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def _sources_from_files(files: list[Any], token: str | None) -> tuple[DataSource, ...]:
    usable = [item for item in files if isinstance(item, dict)]
    preferred = [item for item in usable if item.get("type") == "sra"] or usable

    sources: list[DataSource] = []
    for item in preferred:
        for location in item.get("locations") or []:
            if not isinstance(location, dict) or not location.get("link"):
                continue
            environment = {"VDB_REMOTE_URL": str(location["link"])}
            if location.get("ceRequired"):
                environment["VDB_REMOTE_NEED_CE"] = "1"
                if token:
                    environment["VDB_CE_TOKEN"] = token
            if location.get("payRequired"):
                environment["VDB_REMOTE_NEED_PMT"] = "1"
            service = str(location.get("service") or "unknown")
            region = location.get("region")
            label = f"{service} ({region})" if region else service
            sources.append(DataSource(service=label, environment=environment))
    return tuple(sources)


def _read_upload(path: str) -> tuple[str, bytes]:
    try:
        return Path(path).name, Path(path).read_bytes()
    except OSError as error:
        raise SourceResolutionError(f"Can not read {path}: {error}") from error


def _as_int(value: object) -> int:
    try:
        return int(str(value))
    except ValueError:
        return 0


def _report(message: str) -> None:
    click.echo(message, err=True)
