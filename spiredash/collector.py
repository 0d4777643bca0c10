"""Concurrent fan-out of the list queries behind a snapshot."""

from __future__ import annotations

import asyncio
from typing import Optional, Tuple

from loguru import logger

from spiredash.config import DashboardConfig
from spiredash.executor import ClusterQueryExecutor
from spiredash.metrics import MetricsCollector
from spiredash.models import ClusterQuerySpec, QueryResult, Topology
from spiredash.plan import build_plan


class FanOutCollector:
    """Run every planned query at once and join on all of them.

    A failed, timed-out or unparseable query degrades to an empty item list
    in its own slot. Siblings are never cancelled and nothing is retried.
    The returned tuple is positional with :func:`spiredash.plan.build_plan`.
    """

    def __init__(
        self,
        config: DashboardConfig,
        executor: ClusterQueryExecutor,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.config = config
        self.executor = executor
        self.metrics = metrics

    async def collect(self, topology: Topology) -> Tuple[QueryResult, ...]:
        plan = build_plan(topology, self.config)
        logger.debug("Collecting {} queries for {} deployment", len(plan), topology.value)

        outcomes = await asyncio.gather(
            *(self.executor.list(spec) for spec in plan),
            return_exceptions=True,
        )
        return tuple(self._settle(spec, outcome) for spec, outcome in zip(plan, outcomes))

    def _settle(self, spec: ClusterQuerySpec, outcome) -> QueryResult:
        if isinstance(outcome, BaseException):
            command = self.executor.render(spec)
            logger.warning("Command failed: {} ({!r})", command, outcome)
            result = QueryResult.failure(command, "command_failed", str(outcome)).degraded()
        elif not outcome.ok:
            logger.warning(
                "Command failed: {} [{}] {}",
                outcome.command,
                outcome.error.kind,
                outcome.error.message,
            )
            result = outcome.degraded()
        else:
            result = outcome

        if self.metrics:
            self.metrics.record_query(spec.resource_kind.value, result.ok)
        return result
