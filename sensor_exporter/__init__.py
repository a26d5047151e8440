"""
Sensor Exporter - hardware telemetry for Prometheus.

Collects chip sensor, hddtemp and UPS readings on every scrape and
serves them in the Prometheus text exposition format.
"""

from .const import APP_VERSION

__version__ = APP_VERSION
__all__ = ["__version__"]
