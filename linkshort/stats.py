"""Error counters shared by the generator, the follow recorder and the handlers.

The counters live on a registry owned by the ServiceStats instance rather
than on the process-wide prometheus registry, so several applications (for
example one per test) can coexist in one process.
"""

from prometheus_client import CollectorRegistry, Counter

from linkshort.schemas import StatsSnapshot

__all__ = ["ServiceStats"]


class ServiceStats:
    """Three monotonically increasing error counters.

    Counter.inc() is safe to call from any task or thread and snapshot()
    can be read at any time by a metrics collector.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()
        self.random_errors = Counter(
            "random_error_count",
            "Counts number of errors encountered when trying to generate secure random numbers",
            registry=self.registry,
        )
        self.auth_errors = Counter(
            "auth_error_count",
            "Counts number of errors encountered because of missing or incorrect secrets",
            registry=self.registry,
        )
        self.db_update_errors = Counter(
            "db_update_error_count",
            "Counts number of errors encountered updating the database",
            registry=self.registry,
        )

    def _read(self, name: str) -> float:
        return self.registry.get_sample_value(f"{name}_total") or 0.0

    def snapshot(self) -> StatsSnapshot:
        return StatsSnapshot(
            random_errors=self._read("random_error_count"),
            auth_errors=self._read("auth_error_count"),
            db_update_errors=self._read("db_update_error_count"),
        )
