"""
Error taxonomy for collectors and configuration.
"""


class CollectorError(Exception):
    """Base class for failures of a single collector."""

    pass


class BackendConnectionError(CollectorError):
    """A backend (daemon, socket) could not be reached."""

    pass


class ReadError(CollectorError):
    """I/O failure while transferring data from a backend."""

    pass


class ProtocolError(CollectorError):
    """Backend answered with malformed wire data."""

    pass


class ParseError(CollectorError):
    """A single numeric field could not be parsed."""

    def __init__(self, field_name: str, raw: str):
        self.field_name = field_name
        self.raw = raw
        super().__init__(f"cannot parse {field_name!r} value {raw!r}")


class QueryError(CollectorError):
    """A native data source call failed."""

    pass


class FatalCollectorError(Exception):
    """
    Collector failure whose policy is to stop the process.

    Deliberately not a CollectorError, so safe_collect() never swallows it.
    """

    def __init__(self, collector: str, cause: BaseException):
        self.collector = collector
        self.cause = cause
        super().__init__(f"{collector}: {cause}")


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass
