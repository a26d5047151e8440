"""
Main application orchestrator.

Handles:
- Collector creation and initialization
- Registration with the Prometheus registry
- HTTP serving
- Graceful and fatal shutdown
"""

import asyncio
import signal

from prometheus_client import CollectorRegistry

from .collectors.base import Collector
from .collectors.hddtemp import HddtempClient, HddtempCollector
from .collectors.lmsensors import HwmonChipSource, LmSensorsCollector
from .collectors.pwrstat import PwrstatCollector
from .config.schema import ExporterConfig
from .errors import FatalCollectorError
from .exporter import SensorExporter
from .logging import Loggers
from .models.registry import DescriptorTable, build_descriptor_table
from .server import MetricsServer, make_wsgi_app

logger = Loggers.app()


class Application:
    """
    Main application class.

    Builds collectors once, registers them behind a SensorExporter and
    serves scrapes until a shutdown signal or a fatal collector failure.
    """

    def __init__(self, config: ExporterConfig):
        """
        Initialize application.

        Args:
            config: Application configuration
        """
        self.config = config
        self.table: DescriptorTable = build_descriptor_table()
        self.registry = CollectorRegistry()
        self.collectors: list[Collector] = []
        self.exporter: SensorExporter | None = None
        self.server: MetricsServer | None = None

        # State
        self.exit_code = 0
        self._loop: asyncio.AbstractEventLoop | None = None
        self._shutdown_event: asyncio.Event | None = None

    def _create_collectors(self) -> list[Collector]:
        """Create all enabled collectors."""
        collectors: list[Collector] = []

        if self.config.hddtemp.enabled:
            client = HddtempClient(self.config.hddtemp.host, self.config.hddtemp.port)
            collectors.append(HddtempCollector(client))

        if self.config.lmsensors.enabled:
            source = HwmonChipSource(self.config.lmsensors.hwmon_path)
            collectors.append(LmSensorsCollector(source))

        if self.config.pwrstat.enabled:
            collectors.append(PwrstatCollector(fail_fast=self.config.pwrstat.fail_fast))

        return collectors

    def _initialize_collectors(self) -> None:
        """
        Initialize all collectors.

        Exceptions propagate: a collector that cannot initialize (for
        example, chip enumeration failing) aborts startup.
        """
        for collector in self.collectors:
            collector.initialize()
            logger.info(f"Initialized collector: {collector.name}")

    def setup(self) -> None:
        """Create, initialize and register collectors."""
        self.collectors = self._create_collectors()
        logger.info(f"Created {len(self.collectors)} collectors")

        self._initialize_collectors()

        self.exporter = SensorExporter(
            self.collectors,
            self.table,
            on_fatal=self._fatal_handler,
        )
        self.registry.register(self.exporter)

        self.server = MetricsServer(
            self.config.web.host,
            self.config.web.port,
            make_wsgi_app(self.registry, self.config.web.telemetry_path),
        )

    def _fatal_handler(self, error: FatalCollectorError) -> None:
        """Stop the process after a fatal collector failure (called from server threads)."""
        logger.critical(f"Stopping after fatal failure in collector {error.collector}")
        self.exit_code = 1
        self.request_shutdown()

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._signal_handler)

    def _signal_handler(self) -> None:
        """Handle shutdown signals."""
        logger.info("Received shutdown signal")
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    async def start(self) -> None:
        """Start serving and wait for shutdown."""
        logger.info("Starting Sensor Exporter")

        self._loop = asyncio.get_running_loop()
        self._shutdown_event = asyncio.Event()

        if self.server is None:
            self.setup()

        self.server.start()
        self._setup_signal_handlers()

        logger.info("Sensor Exporter started successfully")

        await self._shutdown_event.wait()
        await self.stop()

    async def stop(self) -> None:
        """Stop the application."""
        logger.info("Stopping Sensor Exporter")

        if self.server is not None and self.server.running:
            # shutdown() blocks until serve_forever returns
            await asyncio.to_thread(self.server.stop)

        logger.info("Sensor Exporter stopped")

    def request_shutdown(self) -> None:
        """Ask a running application to stop (thread-safe)."""
        if self._loop is None or self._shutdown_event is None:
            return
        if self._loop.is_closed():
            logger.debug("Shutdown requested after the event loop closed")
            return
        try:
            self._loop.call_soon_threadsafe(self._shutdown_event.set)
        except RuntimeError:
            # Loop closed between the check and the call
            logger.debug("Shutdown requested after the event loop closed")

    async def run(self) -> int:
        """
        Run the application until shutdown.

        Returns:
            Process exit code
        """
        try:
            await self.start()
        except Exception as e:
            logger.error(f"Application error: {e}")
            raise
        return self.exit_code


async def run_app(config: ExporterConfig) -> int:
    """
    Validate configuration and run the application.

    Args:
        config: Exporter configuration

    Returns:
        Process exit code
    """
    for warning in config.validate():
        logger.warning(f"Config warning: {warning}")

    logger.debug(f"Listen address: {config.web.listen_address}")
    logger.debug(f"Telemetry path: {config.web.telemetry_path}")

    app = Application(config)
    app.setup()
    return await app.run()
