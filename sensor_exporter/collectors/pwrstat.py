"""
UPS collector for CyberPower UPS units via the pwrstat tool.

`pwrstat -status` prints dotted key/value lines:

    Model Name................... CP1500PFCLCD
    State........................ Normal
    Battery Capacity............. 100 %
    Load......................... 81 Watt(9 %)
    Test Result.................. Passed at 2019/06/10 08:59:02

Every sample is labeled with the UPS model name.
"""

import re
import subprocess
from collections.abc import Callable, Sequence

from ..const import DEFAULT_PWRSTAT_COMMAND
from ..errors import FatalCollectorError, ParseError, QueryError
from ..models.metric import MetricDescriptor, Sample
from ..models.registry import (
    UPS_BATTERY,
    UPS_LOAD,
    UPS_OUT_VOLTAGE,
    UPS_RUNTIME,
    UPS_STATE,
    UPS_TEST_RESULT,
)
from .base import Collector

STATUS_LINE_RE = re.compile(r"^\s*(?P<key>\S.*?)\.{2,}\s*(?P<value>.*?)\s*$")

MODEL_NAME_FIELD = "Model Name"


def parse_pwrstat_status(output: str) -> dict[str, str]:
    """
    Parse `pwrstat -status` output into a field -> raw value mapping.

    Lines without a dotted leader (headers, blanks) are ignored.
    """
    status: dict[str, str] = {}
    for line in output.splitlines():
        match = STATUS_LINE_RE.match(line)
        if match:
            status[match["key"]] = match["value"]
    return status


def first_token_float(field_name: str, raw: str) -> float:
    """
    Parse the first whitespace-delimited token as a float.

    Raises:
        ParseError: If the value is empty or the token is not numeric
    """
    tokens = raw.split()
    if not tokens:
        raise ParseError(field_name, raw)
    try:
        return float(tokens[0])
    except ValueError:
        raise ParseError(field_name, raw) from None


def state_value(field_name: str, raw: str) -> float:
    return 1.0 if raw == "Normal" else 0.0


def passed_value(field_name: str, raw: str) -> float:
    tokens = raw.split()
    return 1.0 if tokens and tokens[0] == "Passed" else 0.0


# Status field -> (descriptor, interpretation rule)
FIELD_RULES: dict[str, tuple[MetricDescriptor, Callable[[str, str], float]]] = {
    "Load": (UPS_LOAD, first_token_float),
    "State": (UPS_STATE, state_value),
    "Battery Capacity": (UPS_BATTERY, first_token_float),
    "Remaining Runtime": (UPS_RUNTIME, first_token_float),
    "Output Voltage": (UPS_OUT_VOLTAGE, first_token_float),
    "Test Result": (UPS_TEST_RESULT, passed_value),
}


class PwrstatSource:
    """Runs pwrstat and returns its status mapping."""

    def __init__(self, command: Sequence[str] = DEFAULT_PWRSTAT_COMMAND):
        self.command = tuple(command)

    def status(self) -> dict[str, str]:
        """
        Query the UPS.

        Raises:
            QueryError: If pwrstat cannot be run or exits with an error
        """
        try:
            proc = subprocess.run(
                self.command,
                capture_output=True,
                text=True,
                errors="replace",
                check=False,
            )
        except OSError as e:
            raise QueryError(f"cannot run {' '.join(self.command)}: {e}") from e

        if proc.returncode != 0:
            detail = proc.stderr.strip() or proc.stdout.strip()
            raise QueryError(
                f"{' '.join(self.command)} failed with code {proc.returncode}: {detail}"
            )

        status = parse_pwrstat_status(proc.stdout)
        if not status:
            raise QueryError(f"{' '.join(self.command)} returned no status fields")
        return status

    def __repr__(self) -> str:
        return f"PwrstatSource({' '.join(self.command)!r})"


class PwrstatCollector(Collector):
    """
    Collector for UPS status fields.

    With fail_fast set, a failed UPS query stops the exporter instead of
    degrading this collector to zero samples.
    """

    SOURCE_TYPE = "pwrstat"

    def __init__(
        self,
        source: PwrstatSource | None = None,
        fail_fast: bool = False,
        name: str | None = None,
    ):
        super().__init__(name)
        self.source = source or PwrstatSource()
        self.fail_fast = fail_fast

    def describe_metrics(self) -> list[MetricDescriptor]:
        return [descriptor for descriptor, _ in FIELD_RULES.values()]

    def samples_from_status(self, status: dict[str, str]) -> list[Sample]:
        """Interpret known status fields; unparseable fields are skipped."""
        model = status.get(MODEL_NAME_FIELD, "")
        samples: list[Sample] = []

        for field_name, raw in status.items():
            rule = FIELD_RULES.get(field_name)
            if rule is None:
                continue
            descriptor, interpret = rule
            try:
                value = interpret(field_name, raw)
            except ParseError as e:
                self.logger.debug(f"Skipping UPS field: {e}")
                continue
            samples.append(descriptor.sample(value, model))

        return samples

    def collect(self) -> list[Sample]:
        try:
            status = self.source.status()
        except QueryError as e:
            if self.fail_fast:
                raise FatalCollectorError(self.name, e) from e
            raise
        return self.samples_from_status(status)
