"""
Base collector interface for metric collection.

All collectors inherit from the abstract Collector class, declare their
metric descriptors once (describe_metrics) and implement collect() to
turn one native data source into samples on every scrape.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..errors import FatalCollectorError
from ..logging import Loggers
from ..models.metric import MetricDescriptor, Sample


@dataclass
class CollectorResult:
    """Result of a collection cycle."""

    # Collector that produced this result
    collector: str

    # Samples gathered during the cycle
    samples: list[Sample] = field(default_factory=list)

    # Error raised by the collector, if the cycle failed
    error: Exception | None = None

    # Wall-clock duration of the cycle in seconds
    duration: float = 0.0

    @property
    def available(self) -> bool:
        """Whether the cycle succeeded."""
        return self.error is None

    def set_error(self, error: Exception) -> None:
        """Mark collection as failed; a failed cycle contributes no samples."""
        self.error = error
        self.samples = []

    def __repr__(self) -> str:
        status = "OK" if self.available else f"ERROR: {self.error}"
        return f"CollectorResult({self.collector!r}, {len(self.samples)} samples, {status})"


class Collector(ABC):
    """
    Abstract base class for metric collectors.

    Each collector is responsible for:
    1. Declaring its metric descriptors (describe_metrics)
    2. One-time setup at process start (initialize)
    3. Producing samples on each scrape (collect)

    Collectors hold adapter-local configuration only. Nothing read during
    collect() is kept between cycles, so concurrent scrapes are safe.
    """

    # Source name used in logs (override in subclasses)
    SOURCE_TYPE: str = "unknown"

    def __init__(self, name: str | None = None):
        """
        Initialize collector.

        Args:
            name: Human-readable collector name (defaults to SOURCE_TYPE)
        """
        self.name = name or self.SOURCE_TYPE
        self.logger = Loggers.collector(self.SOURCE_TYPE)

    def initialize(self) -> None:
        """
        Initialize the collector.

        Called once at process start, before the collector is registered.
        Override to perform setup such as discovering chips. Exceptions
        raised here abort startup.
        """

    @abstractmethod
    def describe_metrics(self) -> list[MetricDescriptor]:
        """
        Metric descriptors this collector may emit.

        Returns:
            List of MetricDescriptor instances
        """
        pass

    @abstractmethod
    def collect(self) -> list[Sample]:
        """
        Collect samples from the source.

        Called once per scrape.

        Returns:
            List of samples

        Raises:
            CollectorError: If the source could not be read
        """
        pass

    def safe_collect(self) -> CollectorResult:
        """
        Collect samples, catching exceptions.

        Returns:
            CollectorResult, with error set if collection failed

        Raises:
            FatalCollectorError: Never caught here; the orchestrator decides
        """
        result = CollectorResult(collector=self.name)
        started = time.monotonic()

        try:
            result.samples = self.collect()
        except FatalCollectorError:
            raise
        except Exception as e:
            result.set_error(e)
        finally:
            result.duration = time.monotonic() - started

        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"
