"""Telemetry - logging and metrics entry point

Log format: [module] msg
Metrics: tmux.errors, refresh.ok/failed, template.step_failed, timer.errors,
sessions.count
"""

import logging

_LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module.

    Args:
        name: Module name (usually ``__name__``)
    """
    return logging.getLogger(name)


def setup_logging(level: str | None = None) -> None:
    """Configure root logging for the tmuxbar process."""
    from . import config

    logging.basicConfig(level=(level or config.LOG_LEVEL).upper(), format=_LOG_FORMAT)


class Metrics:
    """In-memory counters and gauges; /api/metrics serves a snapshot."""

    def __init__(self):
        self._counters: dict[str, int] = {}
        self._gauges: dict[str, float] = {}

    def inc(self, name: str, labels: dict[str, str] | None = None, value: int = 1) -> None:
        """Increment a counter.

        Args:
            name: Metric name (e.g. "tmux.errors")
            labels: Optional labels (e.g. {"command": "kill-session"})
            value: Increment, default 1
        """
        key = self._make_key(name, labels)
        self._counters[key] = self._counters.get(key, 0) + value

    def gauge(self, name: str, value: float, labels: dict[str, str] | None = None) -> None:
        """Set a gauge value."""
        key = self._make_key(name, labels)
        self._gauges[key] = value

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        return self._counters.get(self._make_key(name, labels), 0)

    def get_gauge(self, name: str, labels: dict[str, str] | None = None) -> float:
        return self._gauges.get(self._make_key(name, labels), 0.0)

    def reset(self) -> None:
        """Clear all metrics (tests)."""
        self._counters.clear()
        self._gauges.clear()

    def snapshot(self) -> dict[str, dict]:
        return {"counters": dict(self._counters), "gauges": dict(self._gauges)}

    def _make_key(self, name: str, labels: dict[str, str] | None) -> str:
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"


# Process-wide metrics instance
metrics = Metrics()
