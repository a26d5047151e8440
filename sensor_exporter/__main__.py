"""
Entry point for Sensor Exporter.

Usage:
    python -m sensor_exporter
    python -m sensor_exporter --web.listen-address :9255 --hddtemp-address 127.0.0.1:7634
    python -m sensor_exporter --help
"""

import argparse
import asyncio
import sys

from . import __version__
from .app import run_app
from .config.schema import ExporterConfig
from .const import (
    DEFAULT_HDDTEMP_ADDRESS,
    DEFAULT_HWMON_PATH,
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_METRICS_PATH,
)
from .errors import CollectorError, ConfigError
from .logging import LogConfig, get_logger, setup_logging

logger = get_logger("main")


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="sensor-exporter",
        description="Prometheus exporter for chip sensors, hddtemp and CyberPower UPS status",
    )

    web = parser.add_argument_group("web")
    web.add_argument(
        "--web.listen-address",
        dest="listen_address",
        default=DEFAULT_LISTEN_ADDRESS,
        metavar="ADDRESS",
        help=f"Address on which to expose metrics and web interface (default: {DEFAULT_LISTEN_ADDRESS})",
    )
    web.add_argument(
        "--web.telemetry-path",
        dest="telemetry_path",
        default=DEFAULT_METRICS_PATH,
        metavar="PATH",
        help=f"Path under which to expose metrics (default: {DEFAULT_METRICS_PATH})",
    )

    collectors = parser.add_argument_group("collectors")
    collectors.add_argument(
        "--hddtemp-address",
        dest="hddtemp_address",
        default=DEFAULT_HDDTEMP_ADDRESS,
        metavar="ADDRESS",
        help=f"Address to fetch hdd metrics from (default: {DEFAULT_HDDTEMP_ADDRESS})",
    )
    collectors.add_argument(
        "--hwmon-path",
        dest="hwmon_path",
        default=DEFAULT_HWMON_PATH,
        metavar="PATH",
        help=f"hwmon class directory to enumerate chips from (default: {DEFAULT_HWMON_PATH})",
    )
    for name, what in (
        ("hddtemp", "disk temperatures from hddtemp"),
        ("lmsensors", "chip sensors"),
        ("pwrstat", "UPS status from pwrstat"),
    ):
        collectors.add_argument(
            f"--collector.{name}",
            dest=f"collector_{name}",
            action=argparse.BooleanOptionalAction,
            default=True,
            help=f"Collect {what} (default: enabled)",
        )
    collectors.add_argument(
        "--pwrstat.fail-fast",
        dest="pwrstat_fail_fast",
        action="store_true",
        help="Stop the exporter when the UPS cannot be queried",
    )

    logging_group = parser.add_argument_group("logging")
    logging_group.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging (INFO level)",
    )
    logging_group.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Enable debug logging (DEBUG level)",
    )
    logging_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (only errors)",
    )
    logging_group.add_argument(
        "--log-file",
        metavar="PATH",
        help="Write logs to file",
    )
    logging_group.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def log_config_from_args(args: argparse.Namespace) -> LogConfig:
    """Build logging configuration from command line flags."""
    log_config = LogConfig()

    if args.debug:
        log_config.console_level = "debug"
    elif args.verbose:
        log_config.console_level = "info"
    elif args.quiet:
        log_config.console_level = "error"
    else:
        log_config.console_level = "warning"

    if args.no_color:
        log_config.console_colors = False

    if args.log_file:
        log_config.file_enabled = True
        log_config.file_path = args.log_file

    return log_config


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(log_config_from_args(args))

    try:
        config = ExporterConfig.from_args(args)
        return asyncio.run(run_app(config))
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except CollectorError as e:
        # Startup failures, e.g. chip enumeration
        logger.error(f"Failed to initialize collectors: {e}")
        return 1
    except OSError as e:
        logger.error(f"Failed to start HTTP server: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
