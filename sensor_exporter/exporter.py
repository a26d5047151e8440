"""
Collection orchestrator.

SensorExporter is registered with a prometheus_client CollectorRegistry.
Every scrape calls collect(), which runs one pass over all collectors:
a failing collector is logged and contributes no samples, while the
others still report.
"""

from collections.abc import Callable, Iterable, Iterator

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector as RegistryCollector

from .collectors.base import Collector
from .errors import FatalCollectorError
from .logging import Loggers
from .models.metric import MetricDescriptor, MetricKind, Sample
from .models.registry import DescriptorTable

logger = Loggers.exporter()

FatalHandler = Callable[[FatalCollectorError], None]


def _family(descriptor: MetricDescriptor) -> GaugeMetricFamily:
    if descriptor.kind is not MetricKind.GAUGE:
        raise ValueError(f"Unsupported metric kind for {descriptor.name}: {descriptor.kind}")
    return GaugeMetricFamily(
        descriptor.name,
        descriptor.help,
        labels=list(descriptor.label_names),
    )


class SensorExporter(RegistryCollector):
    """
    Fans a scrape out to every collector and encodes the samples.

    Args:
        collectors: Initialized collectors
        table: Descriptor table every sample is checked against
        on_fatal: Called when a collector escalates a fatal failure;
            without it the failure propagates and the scrape fails
    """

    def __init__(
        self,
        collectors: Iterable[Collector],
        table: DescriptorTable,
        on_fatal: FatalHandler | None = None,
    ):
        self.collectors = list(collectors)
        self.table = table
        self.on_fatal = on_fatal

    def described(self) -> list[MetricDescriptor]:
        """Descriptors declared by all collectors, in declaration order."""
        seen: dict[str, MetricDescriptor] = {}
        for collector in self.collectors:
            for descriptor in collector.describe_metrics():
                if not self.table.knows(descriptor):
                    raise ValueError(
                        f"Collector {collector.name} declares unknown metric {descriptor.name}"
                    )
                seen.setdefault(descriptor.name, descriptor)
        return list(seen.values())

    def describe(self) -> Iterator[GaugeMetricFamily]:
        """Yield empty families so registration does not trigger a scrape."""
        for descriptor in self.described():
            yield _family(descriptor)

    def collect_samples(self) -> list[Sample]:
        """
        Run one collection pass.

        Returns:
            Samples from every collector that succeeded
        """
        samples: list[Sample] = []
        fatal: FatalCollectorError | None = None

        for collector in self.collectors:
            try:
                result = collector.safe_collect()
            except FatalCollectorError as e:
                logger.critical(f"Collector {collector.name} failed fatally: {e.cause}")
                fatal = fatal or e
                continue

            if not result.available:
                logger.error(
                    f"Collector {collector.name} failed after {result.duration:.3f}s: "
                    f"{type(result.error).__name__}: {result.error}"
                )
                continue

            logger.debug(
                f"Collector {collector.name}: {len(result.samples)} samples "
                f"in {result.duration:.3f}s"
            )
            for sample in result.samples:
                if not self.table.knows(sample.descriptor):
                    logger.error(
                        f"Collector {collector.name} emitted unregistered metric "
                        f"{sample.descriptor.name}, dropping sample"
                    )
                    continue
                samples.append(sample)

        if fatal is not None:
            if self.on_fatal is None:
                raise fatal
            self.on_fatal(fatal)

        return samples

    def collect(self) -> Iterator[GaugeMetricFamily]:
        """prometheus_client hook: one pass per scrape, grouped by family."""
        families: dict[str, GaugeMetricFamily] = {}

        for sample in self.collect_samples():
            name = sample.descriptor.name
            if name not in families:
                families[name] = _family(sample.descriptor)
            families[name].add_metric(list(sample.label_values), sample.value)

        yield from families.values()

    def __repr__(self) -> str:
        names = ", ".join(c.name for c in self.collectors)
        return f"SensorExporter([{names}])"
