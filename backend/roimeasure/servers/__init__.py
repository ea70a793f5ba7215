"""Tile source interface and an in-memory implementation."""

from roimeasure.servers.memory import InMemoryTileSource
from roimeasure.servers.types import (
    ChannelType,
    ImageChannel,
    PixelCalibration,
    RegionRequest,
    TileReadError,
    TileRequest,
    TileSource,
)

__all__ = [
    "ChannelType",
    "ImageChannel",
    "InMemoryTileSource",
    "PixelCalibration",
    "RegionRequest",
    "TileReadError",
    "TileRequest",
    "TileSource",
]
