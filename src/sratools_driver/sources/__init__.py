"""Source resolution gateways."""

from sratools_driver.sources.base import DataSource, ResolutionParams, SourceGateway, SourceSet
from sratools_driver.sources.sdl import SdlGateway

__all__ = [
    "DataSource",
    "ResolutionParams",
    "SdlGateway",
    "SourceGateway",
    "SourceSet",
]
