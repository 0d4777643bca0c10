"""Wires detection, collection, normalization and describe into one object."""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

from loguru import logger

from spiredash.collector import FanOutCollector
from spiredash.config import DashboardConfig
from spiredash.exceptions import SnapshotFailed
from spiredash.executor import ClusterQueryExecutor, KubectlExecutor
from spiredash.inspector import ResourceInspector
from spiredash.metrics import MetricsCollector
from spiredash.models import DescribeRequest, Topology
from spiredash.normalizer import SnapshotNormalizer
from spiredash.responses import DescribeResponse
from spiredash.topology import TopologyDetector


class DashboardAggregator:
    def __init__(
        self,
        config: DashboardConfig,
        executor: Optional[ClusterQueryExecutor] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.config = config
        self.executor = executor or KubectlExecutor(config)
        self.metrics = metrics or MetricsCollector()
        self.detector = TopologyDetector(config, self.executor)
        self.collector = FanOutCollector(config, self.executor, self.metrics)
        self.normalizer = SnapshotNormalizer(config)
        self.inspector = ResourceInspector(config, self.executor, self.metrics)

    async def snapshot(self, topology: Optional[Topology] = None) -> Dict[str, Any]:
        """Build a fresh snapshot. Raises SnapshotFailed only if no snapshot can be built."""
        started = time.monotonic()
        try:
            if topology is None:
                topology = await self.detector.detect()
            raw_results = await self.collector.collect(topology)
            snapshot = self.normalizer.normalize(topology, raw_results)
        except Exception as e:
            logger.exception("Error fetching pod data: {}", e)
            self.metrics.record_snapshot_failure()
            raise SnapshotFailed("Failed to fetch pod data", e) from e

        duration = time.monotonic() - started
        self.metrics.record_snapshot(topology.value, duration)
        logger.info("Built {} snapshot in {:.2f}s", topology.value, duration)
        return snapshot

    async def describe(self, request: DescribeRequest) -> DescribeResponse:
        return await self.inspector.describe(request)
