"""
Disk temperature collector for the hddtemp daemon.

hddtemp listens on TCP (port 7634 by default). On connect it writes one
response and closes the connection:

    |/dev/sda|WDC WD40EFRX|38|C||/dev/sdb|ST4000VN008|*|*|

Records are separated by "||" and fields inside a record by "|", so the
response is split on the two-character delimiter first.
"""

import socket
from typing import NamedTuple

from ..errors import BackendConnectionError, ProtocolError, ReadError
from ..models.metric import MetricDescriptor, Sample
from ..models.registry import HDD_TEMPERATURE
from .base import Collector

RECORD_SEPARATOR = "||"
FIELD_SEPARATOR = "|"

# Temperature reported when the drive has no reading ("*" unit)
NO_READING = -1.0

READ_CHUNK_SIZE = 4096


class HddRecord(NamedTuple):
    """One drive entry from an hddtemp response."""

    device: str
    id: str
    temperature_celsius: float


def parse_hddtemp_record(record: str) -> HddRecord:
    """
    Parse a single "device|id|temperature|unit" record.

    Raises:
        ProtocolError: On wrong field count, unknown unit or bad temperature
    """
    fields = record.split(FIELD_SEPARATOR)
    if len(fields) != 4:
        raise ProtocolError(f"wrong field count ({len(fields)}, expected 4): {record!r}")

    device, drive_id, temperature, unit = fields

    if unit == "*":
        return HddRecord(device, drive_id, NO_READING)

    if unit != "C":
        raise ProtocolError(f"unsupported unit {unit!r} for {device}, only Celsius is accepted")

    try:
        value = float(temperature)
    except ValueError:
        raise ProtocolError(f"bad temperature literal {temperature!r} for {device}") from None

    return HddRecord(device, drive_id, value)


def parse_hddtemp_response(response: str) -> list[HddRecord]:
    """
    Parse a complete hddtemp response.

    Any malformed record discards the whole batch.

    Args:
        response: Decoded payload read from the daemon

    Returns:
        Records in the order the daemon reported them

    Raises:
        ProtocolError: If the response or any record is malformed
    """
    if not response.startswith(FIELD_SEPARATOR) or not response.endswith(FIELD_SEPARATOR):
        raise ProtocolError(f"malformed response: {response[:80]!r}")

    body = response[1:-1]
    return [parse_hddtemp_record(record) for record in body.split(RECORD_SEPARATOR)]


class HddtempClient:
    """
    hddtemp daemon client.

    Opens a fresh connection for every fetch and closes it before
    returning; only the address is kept between calls.
    """

    def __init__(self, host: str, port: int, encoding: str = "utf-8"):
        self.host = host
        self.port = port
        self.encoding = encoding

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def _connect(self) -> socket.socket:
        try:
            return socket.create_connection((self.host, self.port))
        except OSError as e:
            raise BackendConnectionError(
                f"error connecting to hddtemp address '{self.address}': {e}"
            ) from e

    def read_response(self) -> str:
        """
        Read the raw response until the daemon closes the stream.

        Raises:
            BackendConnectionError: If the daemon is unreachable
            ReadError: On I/O failure while reading
        """
        chunks: list[bytes] = []

        with self._connect() as conn:
            try:
                while True:
                    chunk = conn.recv(READ_CHUNK_SIZE)
                    if not chunk:
                        break
                    chunks.append(chunk)
            except OSError as e:
                raise ReadError(f"error reading from hddtemp socket: {e}") from e

        return b"".join(chunks).decode(self.encoding, errors="replace")

    def fetch(self) -> list[HddRecord]:
        """
        Fetch and parse current drive temperatures.

        Raises:
            BackendConnectionError: If the daemon is unreachable
            ReadError: On I/O failure while reading
            ProtocolError: If the response is malformed
        """
        return parse_hddtemp_response(self.read_response())

    def probe(self) -> bool:
        """Check that the daemon accepts connections."""
        try:
            self._connect().close()
        except BackendConnectionError:
            return False
        return True

    def __repr__(self) -> str:
        return f"HddtempClient({self.address!r})"


class HddtempCollector(Collector):
    """Collector for drive temperatures reported by hddtemp."""

    SOURCE_TYPE = "hddtemp"

    def __init__(self, client: HddtempClient, name: str | None = None):
        super().__init__(name)
        self.client = client

    def initialize(self) -> None:
        """Probe the daemon; an unreachable daemon is logged, not fatal."""
        if not self.client.probe():
            self.logger.warning(
                f"hddtemp daemon at {self.client.address} is not reachable, "
                "will retry on every scrape"
            )
        super().initialize()

    def describe_metrics(self) -> list[MetricDescriptor]:
        return [HDD_TEMPERATURE]

    def collect(self) -> list[Sample]:
        """Read all drives from the daemon."""
        return [
            HDD_TEMPERATURE.sample(record.temperature_celsius, record.device, record.id)
            for record in self.client.fetch()
        ]
