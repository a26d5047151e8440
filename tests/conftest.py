"""
Pytest configuration and fixtures.
"""

import logging
import socket
import socketserver
import threading
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

import pytest

from sensor_exporter.collectors.hddtemp import HddRecord

PWRSTAT_OUTPUT = """
The UPS information shows as following:

\tProperties:
\t\tModel Name................... CP1500PFCLCD
\t\tFirmware Number.............. CRCA102-3I1
\t\tRating Voltage............... 120 V
\t\tRating Power................. 900 Watt(1500 VA)

\tCurrent UPS status:
\t\tState........................ Normal
\t\tPower Supply by.............. Utility Power
\t\tUtility Voltage.............. 121 V
\t\tOutput Voltage............... 121 V
\t\tBattery Capacity............. 100 %
\t\tRemaining Runtime............ 68 min.
\t\tLoad......................... 81 Watt(9 %)
\t\tLine Interaction............. None
\t\tTest Result.................. Passed at 2019/06/10 08:59:02
\t\tLast Power Event............. Blackout at 2019/06/09 16:43:26 for 2 min.
"""


def format_hddtemp_response(records: Iterable[HddRecord]) -> str:
    """Encode records the way the hddtemp daemon writes them."""
    parts = []
    for record in records:
        if record.temperature_celsius == -1:
            parts.append(f"{record.device}|{record.id}|*|*")
        else:
            parts.append(f"{record.device}|{record.id}|{record.temperature_celsius:g}|C")
    return "|" + "||".join(parts) + "|"


class _OneShotHandler(socketserver.BaseRequestHandler):
    def handle(self) -> None:
        self.request.sendall(self.server.payload)


class FakeHddtempDaemon(socketserver.ThreadingTCPServer):
    """Writes a fixed payload to every connection and closes it."""

    daemon_threads = True
    allow_reuse_address = True

    def __init__(self, payload: bytes):
        self.payload = payload
        self.connections = 0
        super().__init__(("127.0.0.1", 0), _OneShotHandler)

    def verify_request(self, request, client_address) -> bool:
        self.connections += 1
        return True

    @property
    def port(self) -> int:
        return self.server_address[1]


@pytest.fixture
def hddtemp_daemon() -> Iterator[Callable[[str | bytes], FakeHddtempDaemon]]:
    """Factory starting fake hddtemp daemons on loopback."""
    servers: list[FakeHddtempDaemon] = []

    def start(payload: str | bytes) -> FakeHddtempDaemon:
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        server = FakeHddtempDaemon(payload)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.shutdown()
        server.server_close()


@pytest.fixture
def refused_port() -> int:
    """A loopback port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text + "\n")


def _link_device(hwmon_dir: Path, device_dir: Path, bus_dir: Path) -> None:
    device_dir.mkdir(parents=True, exist_ok=True)
    bus_dir.mkdir(parents=True, exist_ok=True)
    if not (device_dir / "subsystem").exists():
        (device_dir / "subsystem").symlink_to(bus_dir)
    (hwmon_dir / "device").symlink_to(device_dir)


@pytest.fixture
def hwmon_root(tmp_path: Path) -> Path:
    """
    Fake /sys/class/hwmon tree.

    hwmon0: coretemp on platform bus (coretemp-isa-0000)
    hwmon1: nct6775 on platform bus (nct6775-isa-0290) with fan, in, power, curr
    hwmon2: acpitz without device link (acpitz-virtual-0)
    hwmon3: k10temp on PCI (k10temp-pci-00c3)
    hwmon4: nct7802 on I2C bus 1, address 0x2c (nct7802-i2c-1-2c)
    """
    root = tmp_path / "class" / "hwmon"
    devices = tmp_path / "devices"
    bus = tmp_path / "bus"

    hwmon0 = root / "hwmon0"
    _write(hwmon0 / "name", "coretemp")
    _write(hwmon0 / "temp1_input", "45000")
    _write(hwmon0 / "temp1_label", "Package id 0")
    _write(hwmon0 / "temp2_input", "43500")
    _write(hwmon0 / "temp2_label", "Core 0")
    _link_device(hwmon0, devices / "platform" / "coretemp.0", bus / "platform")

    hwmon1 = root / "hwmon1"
    _write(hwmon1 / "name", "nct6775")
    _write(hwmon1 / "fan1_input", "1200")
    _write(hwmon1 / "in0_input", "1104")
    _write(hwmon1 / "in0_label", "Vcore")
    _write(hwmon1 / "power1_average", "15000000")
    _write(hwmon1 / "curr1_input", "500")
    _write(hwmon1 / "intrusion0_alarm", "0")
    _link_device(hwmon1, devices / "platform" / "nct6775.656", bus / "platform")

    hwmon2 = root / "hwmon2"
    _write(hwmon2 / "name", "acpitz")
    _write(hwmon2 / "temp1_input", "27800")

    hwmon3 = root / "hwmon3"
    _write(hwmon3 / "name", "k10temp")
    _write(hwmon3 / "temp1_input", "51250")
    _write(hwmon3 / "temp1_label", "Tctl")
    _link_device(hwmon3, devices / "pci0000:00" / "0000:00:18.3", bus / "pci")

    hwmon4 = root / "hwmon4"
    _write(hwmon4 / "name", "nct7802")
    _write(hwmon4 / "fan1_input", "900")
    _write(devices / "i2c-1" / "name", "SMBus I801 adapter at f040")
    _link_device(hwmon4, devices / "i2c-1" / "1-002c", bus / "i2c")

    return root


class StaticStatusSource:
    """pwrstat source returning a fixed status mapping."""

    def __init__(self, status: dict[str, str] | None = None, error: Exception | None = None):
        self._status = status or {}
        self._error = error
        self.calls = 0

    def status(self) -> dict[str, str]:
        self.calls += 1
        if self._error is not None:
            raise self._error
        return dict(self._status)


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Drop handlers installed by setup_logging() during a test."""
    yield
    logger = logging.getLogger("sensor_exporter")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
