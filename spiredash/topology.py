"""Deployment topology detection."""

from loguru import logger

from spiredash.config import DashboardConfig
from spiredash.executor import ClusterQueryExecutor
from spiredash.models import Topology


class TopologyDetector:
    """Classify the deployment as basic or enterprise from the kubeconfig contexts."""

    def __init__(self, config: DashboardConfig, executor: ClusterQueryExecutor):
        self.config = config
        self.executor = executor

    async def detect(self) -> Topology:
        if self.config.deployment_type:
            return Topology(self.config.deployment_type)

        result = await self.executor.get_contexts()
        if not result.ok:
            logger.warning(
                "Context listing failed ({}), assuming basic deployment: {}",
                result.error.kind,
                result.command,
            )
            return Topology.BASIC

        return self.classify(result.text or "")

    def classify(self, contexts_output: str) -> Topology:
        lines = [line.strip() for line in contexts_output.splitlines()]
        has_upstream = any(self.config.upstream_marker in line for line in lines)
        has_downstream = any(self.config.downstream_marker in line for line in lines)

        if has_upstream and has_downstream:
            return Topology.ENTERPRISE
        return Topology.BASIC
