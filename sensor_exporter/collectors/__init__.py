"""
Metric collectors for hardware telemetry.
"""

from .base import Collector, CollectorResult
from .hddtemp import HddRecord, HddtempClient, HddtempCollector
from .lmsensors import HwmonChipSource, LmSensorsCollector
from .pwrstat import PwrstatCollector, PwrstatSource

__all__ = [
    "Collector",
    "CollectorResult",
    "HddRecord",
    "HddtempClient",
    "HddtempCollector",
    "HwmonChipSource",
    "LmSensorsCollector",
    "PwrstatCollector",
    "PwrstatSource",
]
