"""
Unit tests for snapshot normalization
"""

import json

import pytest

from fixtures.cluster import pod
from spiredash.models import QueryResult, Topology
from spiredash.normalizer import SnapshotNormalizer, bucket_by_prefix
from spiredash.plan import build_plan


def _results_for(topology, config, scripted):
    return tuple(
        scripted.get(
            (spec.context, spec.namespace, spec.resource_kind.value),
            QueryResult.from_items("get", []),
        )
        for spec in build_plan(topology, config)
    )


def _all_degraded(topology, config):
    return tuple(
        QueryResult.failure("get", "timeout", "timed out").degraded()
        for _ in build_plan(topology, config)
    )


class TestBasicSnapshot:

    def test_layout(self, dashboard_config, basic_results):
        raw = _results_for(Topology.BASIC, dashboard_config, basic_results)
        snapshot = SnapshotNormalizer(dashboard_config).normalize(Topology.BASIC, raw)

        assert snapshot["deploymentType"] == "basic"
        namespaces = snapshot["clusters"]["workload-cluster"]["namespaces"]
        assert set(namespaces) == {"spire-server", "spire-system", "production"}
        assert set(namespaces["spire-server"]) == {"pods", "services", "pvcs", "podBuckets"}
        assert [p["metadata"]["name"] for p in namespaces["production"]["pods"]] == ["demo-7d9f"]

    def test_buckets_are_derived_view(self, dashboard_config, basic_results):
        raw = _results_for(Topology.BASIC, dashboard_config, basic_results)
        snapshot = SnapshotNormalizer(dashboard_config).normalize(Topology.BASIC, raw)

        server = snapshot["clusters"]["workload-cluster"]["namespaces"]["spire-server"]
        # Raw list keeps the unmatched pod
        assert [p["metadata"]["name"] for p in server["pods"]] == [
            "spire-server-0",
            "spire-db-0",
            "metrics-exporter",
        ]
        assert [p["metadata"]["name"] for p in server["podBuckets"]["server"]] == ["spire-server-0"]
        assert [p["metadata"]["name"] for p in server["podBuckets"]["database"]] == ["spire-db-0"]

        agents = snapshot["clusters"]["workload-cluster"]["namespaces"]["spire-system"]
        assert len(agents["podBuckets"]["agent"]) == 2

    def test_every_key_present_when_all_queries_degrade(self, dashboard_config):
        snapshot = SnapshotNormalizer(dashboard_config).normalize(
            Topology.BASIC, _all_degraded(Topology.BASIC, dashboard_config)
        )

        namespaces = snapshot["clusters"]["workload-cluster"]["namespaces"]
        assert namespaces["spire-server"]["pods"] == []
        assert namespaces["spire-server"]["services"] == []
        assert namespaces["spire-server"]["pvcs"] == []
        assert namespaces["spire-server"]["podBuckets"] == {"server": [], "database": []}
        assert namespaces["spire-system"]["pods"] == []
        assert namespaces["spire-system"]["podBuckets"] == {"agent": []}
        assert namespaces["production"]["pods"] == []

    def test_wrong_result_count_raises(self, dashboard_config):
        with pytest.raises(ValueError):
            SnapshotNormalizer(dashboard_config).normalize(Topology.BASIC, ())


class TestEnterpriseSnapshot:

    def test_every_key_present_when_all_queries_degrade(self, dashboard_config):
        snapshot = SnapshotNormalizer(dashboard_config).normalize(
            Topology.ENTERPRISE, _all_degraded(Topology.ENTERPRISE, dashboard_config)
        )

        assert snapshot["deploymentType"] == "enterprise"
        assert snapshot["clusters"] == {
            "upstream-spire-cluster": {
                "namespaces": {
                    "spire-upstream": {"pods": [], "services": [], "pvcs": []},
                }
            },
            "downstream-spire-cluster": {
                "namespaces": {
                    "spire-downstream": {"pods": [], "services": [], "pvcs": []},
                    "downstream-workloads": {"pods": [], "services": []},
                }
            },
        }

    def test_no_buckets(self, dashboard_config):
        scripted = {
            ("upstream-spire-cluster", "spire-upstream", "pod"): QueryResult.from_items(
                "get", [pod("spire-server-0")]
            ),
        }
        raw = _results_for(Topology.ENTERPRISE, dashboard_config, scripted)
        snapshot = SnapshotNormalizer(dashboard_config).normalize(Topology.ENTERPRISE, raw)

        upstream = snapshot["clusters"]["upstream-spire-cluster"]["namespaces"]["spire-upstream"]
        assert "podBuckets" not in upstream
        assert upstream["pods"][0]["metadata"]["name"] == "spire-server-0"


def test_normalize_is_deterministic(dashboard_config, basic_results):
    raw = _results_for(Topology.BASIC, dashboard_config, basic_results)
    normalizer = SnapshotNormalizer(dashboard_config)

    first = json.dumps(normalizer.normalize(Topology.BASIC, raw))
    second = json.dumps(normalizer.normalize(Topology.BASIC, raw))

    assert first == second


def test_bucket_prefix_is_case_sensitive_and_first_match_wins():
    items = [pod("spire-server-db-0"), pod("Spire-server-1"), {"name": "spire-agent-x"}]
    buckets = bucket_by_prefix(
        items, {"server": "spire-server", "database": "spire-server-db", "agent": "spire-agent"}
    )

    assert [i["metadata"]["name"] for i in buckets["server"]] == ["spire-server-db-0"]
    assert buckets["database"] == []
    assert buckets["agent"] == [{"name": "spire-agent-x"}]
