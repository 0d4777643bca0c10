"""Reshape collected list results into the dashboard snapshot."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

from spiredash.config import DashboardConfig
from spiredash.models import QueryResult, Topology
from spiredash.plan import build_plan


def resource_name(item: Mapping[str, Any]) -> str:
    metadata = item.get("metadata")
    if isinstance(metadata, Mapping) and isinstance(metadata.get("name"), str):
        return metadata["name"]
    name = item.get("name")
    return name if isinstance(name, str) else ""


def bucket_by_prefix(
    items: Sequence[Mapping[str, Any]], prefixes: Mapping[str, str]
) -> Dict[str, List[Mapping[str, Any]]]:
    """Split items into named buckets by exact name prefix.

    Buckets are tried in order and the first matching prefix wins. Every
    bucket is present in the result; items matching none are left out.
    """
    buckets: Dict[str, List[Mapping[str, Any]]] = {bucket: [] for bucket in prefixes}
    for item in items:
        name = resource_name(item)
        for bucket, prefix in prefixes.items():
            if name.startswith(prefix):
                buckets[bucket].append(item)
                break
    return buckets


class SnapshotNormalizer:
    """Pure transformation from positional query results to a snapshot dict."""

    def __init__(self, config: DashboardConfig):
        self.config = config

    def normalize(self, topology: Topology, raw_results: Sequence[QueryResult]) -> Dict[str, Any]:
        plan = build_plan(topology, self.config)
        if len(raw_results) != len(plan):
            raise ValueError(
                f"Expected {len(plan)} results for {topology.value} deployment, got {len(raw_results)}"
            )

        clusters: Dict[str, Any] = {}
        for spec, result in zip(plan, raw_results):
            cluster = clusters.setdefault(spec.context, {"namespaces": {}})
            namespace = cluster["namespaces"].setdefault(spec.namespace, {})
            namespace[spec.resource_kind.snapshot_key] = list(result.items) if result.ok else []

        if topology is Topology.BASIC:
            self._attach_buckets(clusters.get(self.config.workload_context, {}))

        return {"deploymentType": topology.value, "clusters": clusters}

    def _attach_buckets(self, cluster: Dict[str, Any]) -> None:
        namespaces = cluster.get("namespaces", {})
        for namespace_name, prefixes in self.config.pod_buckets.items():
            namespace = namespaces.get(namespace_name)
            if namespace is None or "pods" not in namespace:
                continue
            namespace["podBuckets"] = bucket_by_prefix(namespace["pods"], prefixes)
