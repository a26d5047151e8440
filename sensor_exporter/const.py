"""
Application constants and metadata.
"""

# Application info
APP_NAME = "Sensor Exporter"
APP_VERSION = "0.1.0"

# Default values
DEFAULT_LISTEN_ADDRESS = ":9255"
DEFAULT_METRICS_PATH = "/metrics"
DEFAULT_HDDTEMP_ADDRESS = "127.0.0.1:7634"
DEFAULT_HWMON_PATH = "/sys/class/hwmon"
DEFAULT_PWRSTAT_COMMAND = ("pwrstat", "-status")
