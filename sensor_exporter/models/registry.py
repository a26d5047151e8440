"""
Descriptor table for every metric family the exporter can expose.

Descriptors are module-level constants. The table is built once at
startup and handed to the orchestrator; it is read-only afterwards, so
concurrent scrapes can share it without locking.
"""

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from .metric import MetricDescriptor

# Chip sensors (lm-sensors naming)
FAN_SPEED = MetricDescriptor(
    "sensor_lm_fan_speed_rpm",
    "fan speed (rotations per minute).",
    ("fantype", "chip", "adaptor"),
)
VOLTAGE = MetricDescriptor(
    "sensor_lm_voltage_volts",
    "voltage in volts",
    ("intype", "chip", "adaptor"),
)
POWER = MetricDescriptor(
    "sensor_lm_power_watts",
    "power in watts",
    ("powertype", "chip", "adaptor"),
)
TEMPERATURE = MetricDescriptor(
    "sensor_lm_temperature_celsius",
    "temperature in celsius",
    ("temptype", "chip", "adaptor"),
)

# hddtemp daemon
HDD_TEMPERATURE = MetricDescriptor(
    "sensor_hddsmart_temperature_celsius",
    "temperature in celsius",
    ("device", "id"),
)

# UPS (pwrstat)
UPS_LOAD = MetricDescriptor("ups_load", "UPS power load (Watt)", ("device",))
UPS_STATE = MetricDescriptor("ups_state", "UPS status (1 -> Normal, 0 -> Not)", ("device",))
UPS_BATTERY = MetricDescriptor("ups_battery_capacity", "UPS battery capacity(%)", ("device",))
UPS_RUNTIME = MetricDescriptor("ups_remaining_runtime", "UPS Remaining Runtime(min)", ("device",))
UPS_IN_VOLTAGE = MetricDescriptor("ups_in_voltage", "UPS Input Voltage(V)", ("device",))
UPS_OUT_VOLTAGE = MetricDescriptor("ups_out_voltage", "UPS Output Voltage(V)", ("device",))
UPS_TEST_RESULT = MetricDescriptor(
    "ups_test_result", "UPS Test Result (1 -> Passed, 0 -> Not)", ("device",)
)

ALL_DESCRIPTORS: tuple[MetricDescriptor, ...] = (
    FAN_SPEED,
    VOLTAGE,
    POWER,
    TEMPERATURE,
    HDD_TEMPERATURE,
    UPS_LOAD,
    UPS_STATE,
    UPS_BATTERY,
    UPS_RUNTIME,
    UPS_IN_VOLTAGE,
    UPS_OUT_VOLTAGE,
    UPS_TEST_RESULT,
)


class DescriptorTable(Mapping[str, MetricDescriptor]):
    """Read-only mapping of metric name to descriptor."""

    def __init__(self, descriptors: Iterable[MetricDescriptor]):
        table: dict[str, MetricDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in table:
                raise ValueError(f"Duplicate metric descriptor: {descriptor.name}")
            table[descriptor.name] = descriptor
        self._table = MappingProxyType(table)

    def __getitem__(self, name: str) -> MetricDescriptor:
        return self._table[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def knows(self, descriptor: MetricDescriptor) -> bool:
        """Check that a descriptor is the one registered under its name."""
        return self._table.get(descriptor.name) == descriptor

    def __repr__(self) -> str:
        return f"DescriptorTable({len(self)} descriptors)"


def build_descriptor_table(
    descriptors: Iterable[MetricDescriptor] = ALL_DESCRIPTORS,
) -> DescriptorTable:
    """Build the descriptor table (once, at process start)."""
    return DescriptorTable(descriptors)
