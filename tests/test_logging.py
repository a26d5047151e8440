"""
Tests for logging setup.
"""

import logging

from sensor_exporter.logging import ColoredFormatter, LogConfig, Loggers, get_logger, setup_logging


def test_loggers_share_namespace() -> None:
    assert Loggers.collector("hddtemp").name == "sensor_exporter.collectors.hddtemp"
    assert Loggers.server().name == "sensor_exporter.server"
    assert get_logger("sensor_exporter.app") is Loggers.app()


def test_file_handler_writes_plain_lines(tmp_path) -> None:
    log_file = tmp_path / "logs" / "exporter.log"
    setup_logging(LogConfig(console_level="error", file_enabled=True, file_path=str(log_file)))

    Loggers.collector("pwrstat").debug("Skipping UPS field Load")
    for handler in logging.getLogger("sensor_exporter").handlers:
        handler.flush()

    text = log_file.read_text()
    assert "sensor_exporter.collectors.pwrstat: Skipping UPS field Load" in text
    assert "\033[" not in text


def test_colored_formatter_restores_record() -> None:
    formatter = ColoredFormatter("%(levelname)s %(name)s %(message)s", use_colors=True)
    record = logging.LogRecord("sensor_exporter.server", logging.ERROR, __file__, 1, "boom", None, None)

    line = formatter.format(record)

    assert "\033[31m" in line
    assert record.levelname == "ERROR"
    assert record.name == "sensor_exporter.server"
