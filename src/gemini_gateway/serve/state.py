"""Process-scoped gateway state, owned by the application object."""
from __future__ import annotations
import gc
import platform
import resource
import threading
import time
from datetime import datetime, timezone


class GatewayState:
    """Start time and request counter shared by all handlers of one app."""

    def __init__(self, version: str) -> None:
        self.version = version
        self.started_at = datetime.now(timezone.utc)
        self._started_monotonic = time.monotonic()
        self._lock = threading.Lock()
        self._total_requests = 0

    def record_request(self) -> int:
        with self._lock:
            self._total_requests += 1
            return self._total_requests

    @property
    def total_requests(self) -> int:
        with self._lock:
            return self._total_requests

    def uptime_seconds(self) -> int:
        """Whole seconds since startup; monotonic, never decreases."""
        return int(time.monotonic() - self._started_monotonic)

    def start_time_iso(self) -> str:
        return self.started_at.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_uptime(seconds: int) -> str:
    """Render seconds as e.g. '1h 2m 3s'."""
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m {secs}s"


def memory_usage() -> dict[str, int]:
    # ru_maxrss is kilobytes on Linux, bytes on macOS.
    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    return {
        "maxRss": max_rss if platform.system() == "Darwin" else max_rss * 1024,
        "gcObjects": len(gc.get_objects()),
    }
