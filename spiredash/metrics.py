"""
Metrics collection for the dashboard aggregator.
"""

import time
from collections import defaultdict
from typing import Dict


class MetricsCollector:
    """Collect and export metrics for monitoring."""

    def __init__(self):
        # Counters
        self.snapshots_total = defaultdict(int)  # by topology
        self.snapshot_failures = 0
        self.queries_total = defaultdict(int)  # by kind and outcome
        self.describe_total = defaultdict(int)  # by outcome

        # Histograms (simplified - just track sum and count)
        self.snapshot_duration_sum = 0.0
        self.snapshot_duration_count = 0

        self.start_time = time.time()

    def record_snapshot(self, topology: str, duration: float):
        """Record a completed snapshot."""
        self.snapshots_total[topology] += 1
        self.snapshot_duration_sum += duration
        self.snapshot_duration_count += 1

    def record_snapshot_failure(self):
        self.snapshot_failures += 1

    def record_query(self, resource_kind: str, ok: bool):
        """Record one list query outcome."""
        outcome = "ok" if ok else "degraded"
        self.queries_total[f"{resource_kind}_{outcome}"] += 1

    def record_describe(self, outcome: str):
        """Record a describe outcome: ok, enhanced, rejected or failed."""
        self.describe_total[outcome] += 1

    def export_prometheus(self) -> str:
        """Export metrics in Prometheus format."""
        lines = []

        # Uptime
        uptime = time.time() - self.start_time
        lines.append('# HELP spire_dashboard_uptime_seconds Uptime in seconds')
        lines.append('# TYPE spire_dashboard_uptime_seconds gauge')
        lines.append(f'spire_dashboard_uptime_seconds {uptime:.2f}')

        # Snapshots
        lines.append('# HELP spire_dashboard_snapshots_total Snapshots served by topology')
        lines.append('# TYPE spire_dashboard_snapshots_total counter')
        for topology, count in self.snapshots_total.items():
            lines.append(f'spire_dashboard_snapshots_total{{topology="{topology}"}} {count}')

        lines.append('# HELP spire_dashboard_snapshot_failures_total Snapshots that could not be built')
        lines.append('# TYPE spire_dashboard_snapshot_failures_total counter')
        lines.append(f'spire_dashboard_snapshot_failures_total {self.snapshot_failures}')

        # Queries by kind
        lines.append('# HELP spire_dashboard_queries_total List queries by kind and outcome')
        lines.append('# TYPE spire_dashboard_queries_total counter')
        for kind_outcome, count in self.queries_total.items():
            parts = kind_outcome.rsplit("_", 1)
            if len(parts) == 2:
                kind, outcome = parts
                lines.append(f'spire_dashboard_queries_total{{kind="{kind}",outcome="{outcome}"}} {count}')

        # Describe
        lines.append('# HELP spire_dashboard_describe_total Describe requests by outcome')
        lines.append('# TYPE spire_dashboard_describe_total counter')
        for outcome, count in self.describe_total.items():
            lines.append(f'spire_dashboard_describe_total{{outcome="{outcome}"}} {count}')

        # Duration
        if self.snapshot_duration_count > 0:
            lines.append('# HELP spire_dashboard_snapshot_duration_seconds Snapshot build duration')
            lines.append('# TYPE spire_dashboard_snapshot_duration_seconds summary')
            lines.append(f'spire_dashboard_snapshot_duration_seconds_sum {self.snapshot_duration_sum:.4f}')
            lines.append(f'spire_dashboard_snapshot_duration_seconds_count {self.snapshot_duration_count}')

        return "\n".join(lines) + "\n"

    def export_json(self) -> Dict:
        """Export metrics as JSON."""
        return {
            "uptime_seconds": time.time() - self.start_time,
            "snapshots_total": dict(self.snapshots_total),
            "snapshot_failures": self.snapshot_failures,
            "queries_total": dict(self.queries_total),
            "describe_total": dict(self.describe_total),
            "snapshot_duration": {
                "sum": self.snapshot_duration_sum,
                "count": self.snapshot_duration_count,
                "average": self.snapshot_duration_sum / self.snapshot_duration_count
                if self.snapshot_duration_count > 0 else 0
            },
        }
