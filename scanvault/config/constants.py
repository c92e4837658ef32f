"""Shared runtime constants for scanvault services."""

SERVICE_NAMES = [
    "scan_api",
    "scan_session",
]
DEFAULT_DATA_DIR = "/tmp/scanvault/data"
DEFAULT_HISTORY_KEY = "scan-history"
DEFAULT_DEBOUNCE_WINDOW_MS = 500
DEFAULT_PROBE_URL = "https://connectivitycheck.gstatic.com/generate_204"
DEFAULT_PROBE_TIMEOUT = 3.0
DEFAULT_MONITOR_INTERVAL = 15.0
DEFAULT_API_HOST = "127.0.0.1"
DEFAULT_SERVICE_PORTS: dict[str, int] = {"scan_api": 8040}
DEFAULT_USER_AGENT = "scanvault/0.1"
