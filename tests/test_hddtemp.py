"""
Tests for the hddtemp protocol client and collector.
"""

import socket

import pytest

from conftest import format_hddtemp_response
from sensor_exporter.collectors.hddtemp import (
    HddRecord,
    HddtempClient,
    HddtempCollector,
    parse_hddtemp_response,
)
from sensor_exporter.errors import BackendConnectionError, ProtocolError, ReadError
from sensor_exporter.models.registry import HDD_TEMPERATURE


def test_parse_two_records() -> None:
    records = parse_hddtemp_response("|d1|i1|12.5|C||d2|i2|*|*|")

    assert records == [
        HddRecord("d1", "i1", 12.5),
        HddRecord("d2", "i2", -1.0),
    ]


def test_parse_real_daemon_output() -> None:
    response = "|/dev/sda|WDC WD40EFRX-68N32N0|38|C||/dev/sdb|ST4000VN008-2DR166|41|C|"

    records = parse_hddtemp_response(response)

    assert [r.device for r in records] == ["/dev/sda", "/dev/sdb"]
    assert records[1].id == "ST4000VN008-2DR166"
    assert records[1].temperature_celsius == 41.0


@pytest.mark.parametrize(
    "response",
    ["", "d1|i1|12.5|C|", " |d1|i1|12.5|C|", "\n", "garbage"],
)
def test_response_must_start_with_pipe(response: str) -> None:
    with pytest.raises(ProtocolError, match="malformed response"):
        parse_hddtemp_response(response)


def test_response_must_end_with_pipe() -> None:
    with pytest.raises(ProtocolError, match="malformed response"):
        parse_hddtemp_response("|d1|i1|12.5|C")


@pytest.mark.parametrize(
    "response",
    [
        "|d1|i1|12.5|",
        "|d1|i1|12.5|C|extra|",
        "|d1|i1|12.5|C||d2|i2|*|",
        "|",
    ],
)
def test_wrong_field_count_discards_batch(response: str) -> None:
    with pytest.raises(ProtocolError, match="wrong field count"):
        parse_hddtemp_response(response)


def test_star_unit_ignores_temperature_field() -> None:
    records = parse_hddtemp_response("|/dev/sdc|SSD|not a number|*|")

    assert records == [HddRecord("/dev/sdc", "SSD", -1.0)]


@pytest.mark.parametrize("unit", ["F", "c", "K", ""])
def test_unsupported_unit(unit: str) -> None:
    with pytest.raises(ProtocolError, match="unsupported unit"):
        parse_hddtemp_response(f"|d1|i1|40|{unit}|")


def test_bad_temperature_literal() -> None:
    with pytest.raises(ProtocolError, match="bad temperature literal"):
        parse_hddtemp_response("|d1|i1|hot|C|")


def test_bad_record_after_good_ones_fails_whole_batch() -> None:
    with pytest.raises(ProtocolError):
        parse_hddtemp_response("|d1|i1|30|C||d2|i2|31|C||d3|i3|x|C|")


def test_encoded_records_parse_back_in_order() -> None:
    records = [
        HddRecord(f"/dev/sd{letter}", f"MODEL-{i}", -1.0 if i % 3 == 0 else 30.0 + i)
        for i, letter in enumerate("abcdefg")
    ]

    assert parse_hddtemp_response(format_hddtemp_response(records)) == records


def test_fetch_reads_until_close(hddtemp_daemon) -> None:
    daemon = hddtemp_daemon("|/dev/sda|WDC|38|C||/dev/sdb|SSD|*|*|")
    client = HddtempClient("127.0.0.1", daemon.port)

    records = client.fetch()

    assert records == [HddRecord("/dev/sda", "WDC", 38.0), HddRecord("/dev/sdb", "SSD", -1.0)]


def test_fetch_opens_new_connection_per_call(hddtemp_daemon) -> None:
    daemon = hddtemp_daemon("|/dev/sda|WDC|38|C|")
    client = HddtempClient("127.0.0.1", daemon.port)

    client.fetch()
    client.fetch()

    assert daemon.connections == 2


def test_fetch_large_response(hddtemp_daemon) -> None:
    records = [HddRecord(f"/dev/disk{i}", "X" * 200, 25.0) for i in range(100)]
    daemon = hddtemp_daemon(format_hddtemp_response(records))

    assert HddtempClient("127.0.0.1", daemon.port).fetch() == records


def test_fetch_connection_refused(refused_port: int) -> None:
    client = HddtempClient("127.0.0.1", refused_port)

    with pytest.raises(BackendConnectionError, match=f"127.0.0.1:{refused_port}"):
        client.fetch()


class _BrokenConnection:
    def __init__(self) -> None:
        self.closed = False

    def recv(self, size: int) -> bytes:
        raise ConnectionResetError("connection reset by peer")

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def test_fetch_read_error_closes_socket(monkeypatch: pytest.MonkeyPatch) -> None:
    conn = _BrokenConnection()
    monkeypatch.setattr(socket, "create_connection", lambda address: conn)

    with pytest.raises(ReadError):
        HddtempClient("127.0.0.1", 7634).fetch()

    assert conn.closed


def test_collector_emits_disk_temperatures(hddtemp_daemon) -> None:
    daemon = hddtemp_daemon("|/dev/sda|WDC|38|C||/dev/sdb|SSD|*|*|")
    collector = HddtempCollector(HddtempClient("127.0.0.1", daemon.port))

    samples = collector.collect()

    assert [s.descriptor for s in samples] == [HDD_TEMPERATURE, HDD_TEMPERATURE]
    assert samples[0].labels == {"device": "/dev/sda", "id": "WDC"}
    assert samples[0].value == 38.0
    assert samples[1].value == -1.0


def test_collector_initialize_tolerates_unreachable_daemon(
    refused_port: int, caplog: pytest.LogCaptureFixture
) -> None:
    collector = HddtempCollector(HddtempClient("127.0.0.1", refused_port))

    collector.initialize()

    assert "not reachable" in caplog.text


def test_safe_collect_reports_protocol_error(hddtemp_daemon) -> None:
    daemon = hddtemp_daemon("no pipes here")
    collector = HddtempCollector(HddtempClient("127.0.0.1", daemon.port))

    result = collector.safe_collect()

    assert not result.available
    assert isinstance(result.error, ProtocolError)
    assert result.samples == []
