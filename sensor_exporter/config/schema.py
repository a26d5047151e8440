"""
Configuration schema with dataclasses for validation and type safety.

Configuration comes from command-line flags; each section is built from
the parsed argparse namespace by its from_args() classmethod.
"""

import argparse
from dataclasses import dataclass, field

from ..const import (
    DEFAULT_HDDTEMP_ADDRESS,
    DEFAULT_HWMON_PATH,
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_METRICS_PATH,
)
from ..errors import ConfigError


def parse_address(address: str, default_host: str = "") -> tuple[str, int]:
    """
    Split a "host:port" socket address.

    Accepts ":9255", "localhost:9255", "10.0.0.1:7634" and "[::1]:9255".

    Args:
        address: Address string
        default_host: Host used when the address has none

    Returns:
        (host, port) tuple

    Raises:
        ConfigError: If the address cannot be parsed
    """
    address = address.strip()

    if address.startswith("["):
        host, sep, port_str = address[1:].partition("]:")
        if not sep:
            raise ConfigError(f"Invalid address {address!r}: expected [host]:port")
    else:
        host, sep, port_str = address.rpartition(":")
        if not sep:
            raise ConfigError(f"Invalid address {address!r}: missing port")
        if ":" in host:
            raise ConfigError(f"Invalid address {address!r}: IPv6 hosts must be bracketed")

    try:
        port = int(port_str)
    except ValueError:
        raise ConfigError(f"Invalid port in address {address!r}") from None

    if not 0 <= port <= 65535:
        raise ConfigError(f"Port out of range in address {address!r}")

    return host or default_host, port


@dataclass
class WebConfig:
    """HTTP exposition configuration."""
    listen_address: str = DEFAULT_LISTEN_ADDRESS
    telemetry_path: str = DEFAULT_METRICS_PATH

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "WebConfig":
        return cls(
            listen_address=args.listen_address,
            telemetry_path=args.telemetry_path,
        )

    @property
    def host(self) -> str:
        return parse_address(self.listen_address)[0]

    @property
    def port(self) -> int:
        return parse_address(self.listen_address)[1]


@dataclass
class HddtempConfig:
    """hddtemp daemon collector configuration."""
    enabled: bool = True
    address: str = DEFAULT_HDDTEMP_ADDRESS

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "HddtempConfig":
        return cls(
            enabled=args.collector_hddtemp,
            address=args.hddtemp_address,
        )

    @property
    def host(self) -> str:
        return parse_address(self.address, default_host="localhost")[0]

    @property
    def port(self) -> int:
        return parse_address(self.address)[1]


@dataclass
class LmSensorsConfig:
    """Chip sensor collector configuration."""
    enabled: bool = True
    hwmon_path: str = DEFAULT_HWMON_PATH

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "LmSensorsConfig":
        return cls(
            enabled=args.collector_lmsensors,
            hwmon_path=args.hwmon_path,
        )


@dataclass
class PwrstatConfig:
    """UPS collector configuration."""
    enabled: bool = True

    # Stop the exporter when the UPS query fails instead of skipping the UPS
    fail_fast: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "PwrstatConfig":
        return cls(
            enabled=args.collector_pwrstat,
            fail_fast=args.pwrstat_fail_fast,
        )


@dataclass
class ExporterConfig:
    """Root configuration."""
    web: WebConfig = field(default_factory=WebConfig)
    hddtemp: HddtempConfig = field(default_factory=HddtempConfig)
    lmsensors: LmSensorsConfig = field(default_factory=LmSensorsConfig)
    pwrstat: PwrstatConfig = field(default_factory=PwrstatConfig)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "ExporterConfig":
        """Create ExporterConfig from parsed command-line arguments."""
        return cls(
            web=WebConfig.from_args(args),
            hddtemp=HddtempConfig.from_args(args),
            lmsensors=LmSensorsConfig.from_args(args),
            pwrstat=PwrstatConfig.from_args(args),
        )

    def validate(self) -> list[str]:
        """
        Validate configuration.

        Returns:
            List of warnings

        Raises:
            ConfigError: If the configuration cannot be used
        """
        warnings: list[str] = []

        path = self.web.telemetry_path
        if not path.startswith("/"):
            raise ConfigError(f"Telemetry path must start with '/': {path!r}")
        if path == "/":
            raise ConfigError("Telemetry path cannot be '/', it serves the landing page")

        # Raise early on malformed addresses
        parse_address(self.web.listen_address)
        if self.hddtemp.enabled:
            parse_address(self.hddtemp.address)

        if not (self.hddtemp.enabled or self.lmsensors.enabled or self.pwrstat.enabled):
            warnings.append("All collectors are disabled, only the landing page will be useful")

        if self.pwrstat.fail_fast and not self.pwrstat.enabled:
            warnings.append("pwrstat fail-fast is set but the pwrstat collector is disabled")

        return warnings
