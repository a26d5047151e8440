"""
Chip sensor collector from hwmon sysfs.

Enumerates chips under /sys/class/hwmon/hwmon* and reads every
<type><n>_input attribute, naming chips and adapters the way lm-sensors
does (e.g. "coretemp-isa-0000" on "ISA adapter").

Features are classified by name prefix into fan speed, temperature,
voltage and power; anything else (curr*, energy*, humidity*) is skipped.
"""

import re
from dataclasses import dataclass
from pathlib import Path

from ..const import DEFAULT_HWMON_PATH
from ..errors import QueryError
from ..models.metric import MetricDescriptor, Sample
from ..models.registry import FAN_SPEED, POWER, TEMPERATURE, VOLTAGE
from .base import Collector

# Classification table, checked in order; first matching prefix wins
FEATURE_CLASSES: tuple[tuple[str, MetricDescriptor], ...] = (
    ("fan", FAN_SPEED),
    ("temp", TEMPERATURE),
    ("in", VOLTAGE),
    ("power", POWER),
)

# sysfs unit divisors: millidegrees, millivolts, milliamps, microwatts, microjoules
FEATURE_SCALES = {
    "fan": 1.0,
    "temp": 1000.0,
    "in": 1000.0,
    "curr": 1000.0,
    "humidity": 1000.0,
    "power": 1_000_000.0,
    "energy": 1_000_000.0,
}

# fan1_input, in0_input, power1_average, ...
FEATURE_FILE_RE = re.compile(r"^(?P<name>(?P<type>[a-z]+)\d+)_(?P<attr>input|average)$")

# PCI address: domain:bus:device.function
PCI_ADDRESS_RE = re.compile(
    r"^(?P<domain>[0-9a-f]{4}):(?P<bus>[0-9a-f]{2}):(?P<dev>[0-9a-f]{2})\.(?P<fn>[0-7])$"
)

# I2C client: bus-address
I2C_ADDRESS_RE = re.compile(r"^(?P<bus>\d+)-(?P<addr>[0-9a-f]{4})$")

# hwmon class entries: hwmon0, hwmon1, ...
HWMON_DIR_RE = re.compile(r"^hwmon(?P<index>\d+)$")


def classify_feature(name: str) -> MetricDescriptor | None:
    """
    Map a feature name to its metric descriptor.

    Returns:
        Descriptor of the first matching prefix, or None to skip the feature
    """
    for prefix, descriptor in FEATURE_CLASSES:
        if name.startswith(prefix):
            return descriptor
    return None


@dataclass(frozen=True)
class ChipFeature:
    """A single readable chip feature (fan1, temp2, in0, ...)."""

    name: str
    label: str
    path: Path
    scale: float = 1.0

    def read_value(self) -> float:
        """
        Read the current value in base units.

        Raises:
            OSError: If the attribute cannot be read
            ValueError: If the attribute is not an integer
        """
        return int(self.path.read_text().strip()) / self.scale


@dataclass(frozen=True)
class Chip:
    """A detected sensor chip."""

    identifier: str
    adapter: str
    features: tuple[ChipFeature, ...] = ()


def _hwmon_index(path: Path) -> int:
    # hwmon2 sorts before hwmon10
    return int(HWMON_DIR_RE.match(path.name)["index"])


def _read_attr(path: Path) -> str | None:
    try:
        return path.read_text().strip() or None
    except OSError:
        return None


def _bus_info(hwmon_dir: Path) -> tuple[str, str, str]:
    """
    Resolve (bus type, bus address, adapter name) for a hwmon device.

    Follows libsensors naming: isa, pci, i2c, acpi, virtual.
    """
    device = hwmon_dir / "device"
    if not device.exists():
        return "virtual", "0", "Virtual device"

    real = device.resolve()
    subsystem = ""
    if (device / "subsystem").exists():
        subsystem = (device / "subsystem").resolve().name

    if subsystem == "pci":
        match = PCI_ADDRESS_RE.match(real.name)
        if match:
            addr = (
                (int(match["domain"], 16) << 16)
                + (int(match["bus"], 16) << 8)
                + (int(match["dev"], 16) << 3)
                + int(match["fn"])
            )
            return "pci", f"{addr:04x}", "PCI adapter"
        return "pci", "0000", "PCI adapter"

    if subsystem == "i2c":
        match = I2C_ADDRESS_RE.match(real.name)
        adapter = _read_attr(real.parent / "name") or "I2C adapter"
        if match:
            return "i2c", f"{int(match['bus'])}-{int(match['addr'], 16):02x}", adapter
        return "i2c", "0", adapter

    if subsystem == "acpi":
        return "acpi", "0", "ACPI interface"

    if subsystem == "platform":
        # coretemp.0 -> 0000
        suffix = real.name.rsplit(".", 1)[-1]
        addr = int(suffix) if suffix.isdigit() else 0
        return "isa", f"{addr:04x}", "ISA adapter"

    return "virtual", "0", "Virtual device"


def discover_chip_features(attr_dir: Path) -> tuple[ChipFeature, ...]:
    """
    Discover readable features in a hwmon attribute directory.

    Prefers <feature>_input over <feature>_average when both exist.
    """
    found: dict[str, ChipFeature] = {}

    for path in sorted(attr_dir.iterdir()):
        match = FEATURE_FILE_RE.match(path.name)
        if not match:
            continue
        name = match["name"]
        if name in found and match["attr"] == "average":
            continue
        label = _read_attr(attr_dir / f"{name}_label") or name
        found[name] = ChipFeature(
            name=name,
            label=label,
            path=path,
            scale=FEATURE_SCALES.get(match["type"], 1.0),
        )

    return tuple(found.values())


class HwmonChipSource:
    """Enumerates sensor chips from hwmon sysfs."""

    def __init__(self, root: str | Path = DEFAULT_HWMON_PATH):
        self.root = Path(root)

    def _load_chip(self, hwmon_dir: Path) -> Chip | None:
        # Older drivers keep attributes under device/ instead of the hwmon dir
        attr_dir = hwmon_dir
        if not (hwmon_dir / "name").exists() and (hwmon_dir / "device" / "name").exists():
            attr_dir = hwmon_dir / "device"

        name = _read_attr(attr_dir / "name")
        if name is None:
            return None

        bus, addr, adapter = _bus_info(hwmon_dir)
        return Chip(
            identifier=f"{name}-{bus}-{addr}",
            adapter=adapter,
            features=discover_chip_features(attr_dir),
        )

    def detected_chips(self) -> list[Chip]:
        """
        Enumerate detected chips.

        Raises:
            QueryError: If the hwmon class directory cannot be listed
        """
        try:
            hwmon_dirs = sorted(
                (p for p in self.root.iterdir() if HWMON_DIR_RE.match(p.name)),
                key=_hwmon_index,
            )
        except OSError as e:
            raise QueryError(f"cannot enumerate sensor chips in {self.root}: {e}") from e

        chips: list[Chip] = []
        for hwmon_dir in hwmon_dirs:
            try:
                chip = self._load_chip(hwmon_dir)
            except OSError as e:
                raise QueryError(f"cannot read sensor chip {hwmon_dir.name}: {e}") from e
            if chip is not None:
                chips.append(chip)
        return chips

    def __repr__(self) -> str:
        return f"HwmonChipSource({str(self.root)!r})"


class LmSensorsCollector(Collector):
    """
    Collector for chip sensors (fans, temperatures, voltages, power).

    Chips are enumerated once at startup; feature values are read on
    every scrape.
    """

    SOURCE_TYPE = "lmsensors"

    def __init__(self, source: HwmonChipSource | None = None, name: str | None = None):
        super().__init__(name)
        self.source = source or HwmonChipSource()
        self._chips: tuple[Chip, ...] = ()

    def initialize(self) -> None:
        """
        Enumerate chips.

        Raises:
            QueryError: If enumeration fails (fatal at startup)
        """
        self._chips = tuple(self.source.detected_chips())
        if not self._chips:
            self.logger.warning(f"No sensor chips detected in {self.source}")
        for chip in self._chips:
            self.logger.debug(
                f"Detected chip {chip.identifier} ({chip.adapter}), "
                f"{len(chip.features)} features"
            )
        super().initialize()

    @property
    def chips(self) -> tuple[Chip, ...]:
        return self._chips

    def describe_metrics(self) -> list[MetricDescriptor]:
        return [descriptor for _, descriptor in FEATURE_CLASSES]

    def collect(self) -> list[Sample]:
        """Read every classified feature of every detected chip."""
        samples: list[Sample] = []

        for chip in self._chips:
            for feature in chip.features:
                descriptor = classify_feature(feature.name)
                if descriptor is None:
                    continue
                try:
                    value = feature.read_value()
                except (OSError, ValueError) as e:
                    self.logger.debug(f"Skipping {chip.identifier}/{feature.name}: {e}")
                    continue
                samples.append(
                    descriptor.sample(value, feature.label, chip.identifier, chip.adapter)
                )

        return samples
