"""
Exporter configuration.
"""

from ..errors import ConfigError
from .schema import (
    ExporterConfig,
    HddtempConfig,
    LmSensorsConfig,
    PwrstatConfig,
    WebConfig,
    parse_address,
)

__all__ = [
    "ConfigError",
    "ExporterConfig",
    "HddtempConfig",
    "LmSensorsConfig",
    "PwrstatConfig",
    "WebConfig",
    "parse_address",
]
