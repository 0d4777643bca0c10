"""
Unit tests for deployment topology detection
"""

import pytest

from spiredash.config import DashboardConfig
from spiredash.models import QueryResult, Topology
from spiredash.topology import TopologyDetector

ENTERPRISE_CONTEXTS = """\
*         upstream-spire-cluster     kind-upstream     kind-upstream
          downstream-spire-cluster   kind-downstream   kind-downstream
"""

BASIC_CONTEXTS = """\
*         workload-cluster           kind-workload     kind-workload
          upstream-spire-cluster     kind-upstream     kind-upstream
"""


@pytest.mark.asyncio
async def test_enterprise_when_both_markers_present(dashboard_config, fake_executor):
    fake_executor.contexts = QueryResult.from_text("kubectl config get-contexts", ENTERPRISE_CONTEXTS)

    assert await TopologyDetector(dashboard_config, fake_executor).detect() is Topology.ENTERPRISE


@pytest.mark.asyncio
async def test_basic_when_one_marker_missing(dashboard_config, fake_executor):
    fake_executor.contexts = QueryResult.from_text("kubectl config get-contexts", BASIC_CONTEXTS)

    assert await TopologyDetector(dashboard_config, fake_executor).detect() is Topology.BASIC


@pytest.mark.asyncio
async def test_basic_when_listing_fails(dashboard_config, fake_executor):
    fake_executor.contexts = QueryResult.failure(
        "kubectl config get-contexts", "missing_binary", "Binary not found: kubectl"
    )

    assert await TopologyDetector(dashboard_config, fake_executor).detect() is Topology.BASIC


@pytest.mark.asyncio
async def test_forced_topology_skips_detection(fake_executor):
    config = DashboardConfig(deployment_type="enterprise")

    assert await TopologyDetector(config, fake_executor).detect() is Topology.ENTERPRISE
    assert fake_executor.calls == []
