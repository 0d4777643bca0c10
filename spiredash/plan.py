"""Fixed per-topology list queries behind a snapshot."""

from typing import Tuple

from spiredash.config import DashboardConfig
from spiredash.models import ClusterQuerySpec, ResourceKind, Topology

QueryPlan = Tuple[ClusterQuerySpec, ...]


def _spec(context: str, namespace: str, kind: ResourceKind) -> ClusterQuerySpec:
    return ClusterQuerySpec(context=context, namespace=namespace, resource_kind=kind)


def basic_plan(config: DashboardConfig) -> QueryPlan:
    ctx = config.workload_context
    return (
        _spec(ctx, config.server_namespace, ResourceKind.POD),
        _spec(ctx, config.server_namespace, ResourceKind.PVC),
        _spec(ctx, config.server_namespace, ResourceKind.SERVICE),
        _spec(ctx, config.agent_namespace, ResourceKind.POD),
        _spec(ctx, config.workload_namespace, ResourceKind.POD),
    )


def enterprise_plan(config: DashboardConfig) -> QueryPlan:
    upstream = config.upstream_context
    downstream = config.downstream_context
    return (
        # Upstream cluster
        _spec(upstream, config.upstream_namespace, ResourceKind.POD),
        _spec(upstream, config.upstream_namespace, ResourceKind.SERVICE),
        _spec(upstream, config.upstream_namespace, ResourceKind.PVC),
        # Downstream cluster
        _spec(downstream, config.downstream_namespace, ResourceKind.POD),
        _spec(downstream, config.downstream_namespace, ResourceKind.SERVICE),
        _spec(downstream, config.downstream_namespace, ResourceKind.PVC),
        _spec(downstream, config.downstream_workload_namespace, ResourceKind.POD),
        _spec(downstream, config.downstream_workload_namespace, ResourceKind.SERVICE),
    )


def build_plan(topology: Topology, config: DashboardConfig) -> QueryPlan:
    if topology is Topology.ENTERPRISE:
        return enterprise_plan(config)
    return basic_plan(config)
