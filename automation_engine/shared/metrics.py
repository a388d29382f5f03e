from prometheus_client import Counter, Histogram

from automation_engine.ports.secondary.metrics import IMetrics


class MetricsRegistry(IMetrics):
    """Prometheus metrics registry."""

    def __init__(self):
        # Run metrics
        self.RUNS_STARTED_TOTAL = Counter(
            "workflow_runs_started_total",
            "Total number of workflow runs started",
            ["trigger_subtype"],
        )

        self.RUNS_FINISHED_TOTAL = Counter(
            "workflow_runs_finished_total",
            "Total number of workflow runs reaching a terminal or waiting state",
            ["status"],
        )

        self.RUN_DURATION_SECONDS = Histogram(
            "workflow_run_traversal_seconds",
            "Time spent traversing a run until it completes, fails or suspends",
            ["status"],
            buckets=(0.05, 0.1, 0.5, 1, 5, 10, 30, 60),
        )

        # Action metrics
        self.ACTION_DISPATCHES_TOTAL = Counter(
            "workflow_action_dispatches_total",
            "Total number of action dispatches",
            ["subtype", "outcome"],
        )

        self.ACTION_DURATION_SECONDS = Histogram(
            "workflow_action_duration_seconds",
            "Time taken for an action dispatch to complete",
            ["subtype"],
            buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0),
        )

        # Scheduler metrics
        self.RUNS_RESUMED_TOTAL = Counter(
            "workflow_runs_resumed_total", "Total number of waiting runs resumed by the sweep"
        )

    def record_run_started(self, trigger_subtype: str) -> None:
        self.RUNS_STARTED_TOTAL.labels(trigger_subtype=trigger_subtype).inc()

    def record_run_finished(self, status: str, duration: float) -> None:
        self.RUNS_FINISHED_TOTAL.labels(status=status).inc()
        self.RUN_DURATION_SECONDS.labels(status=status).observe(duration)

    def record_action(self, subtype: str, outcome: str, duration: float) -> None:
        self.ACTION_DISPATCHES_TOTAL.labels(subtype=subtype, outcome=outcome).inc()
        self.ACTION_DURATION_SECONDS.labels(subtype=subtype).observe(duration)

    def record_resumed_runs(self, count: int) -> None:
        self.RUNS_RESUMED_TOTAL.inc(count)


# Global registry instance for adapter/framework layer
metrics_registry = MetricsRegistry()
