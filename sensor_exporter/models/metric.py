"""
Metric descriptor and sample model.

A MetricDescriptor is the static schema of one metric family. A Sample is
a single observation for one scrape, bound to its descriptor.
"""

from dataclasses import dataclass, field
from enum import Enum


class MetricKind(Enum):
    """Value semantics of a metric family."""
    GAUGE = "gauge"


@dataclass(frozen=True)
class MetricDescriptor:
    """Static schema for a metric family."""

    name: str
    help: str
    label_names: tuple[str, ...] = ()
    kind: MetricKind = MetricKind.GAUGE

    def __post_init__(self) -> None:
        # Accept any sequence but store a tuple so descriptors stay hashable
        object.__setattr__(self, "label_names", tuple(self.label_names))

    def sample(self, value: float, *label_values: str) -> "Sample":
        """Build a sample for this descriptor."""
        return Sample(self, value, label_values)


@dataclass(frozen=True)
class Sample:
    """
    One observation of a metric family.

    Raises:
        ValueError: If label values do not match the descriptor's label names
    """

    descriptor: MetricDescriptor
    value: float
    label_values: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        label_values = tuple(str(v) for v in self.label_values)
        expected = len(self.descriptor.label_names)
        if len(label_values) != expected:
            raise ValueError(
                f"{self.descriptor.name}: expected {expected} label values "
                f"{self.descriptor.label_names}, got {len(label_values)}"
            )
        object.__setattr__(self, "label_values", label_values)
        object.__setattr__(self, "value", float(self.value))

    @property
    def labels(self) -> dict[str, str]:
        """Label names mapped to values."""
        return dict(zip(self.descriptor.label_names, self.label_values))
