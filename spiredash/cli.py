import asyncio
import json
import sys
from typing import Optional

import typer
from loguru import logger

from spiredash.aggregator import DashboardAggregator
from spiredash.config import DashboardConfig
from spiredash.exceptions import DashboardException
from spiredash.models import DescribeRequest, Topology
from spiredash.server import configure_logging

app = typer.Typer(no_args_is_help=True)


def _load_config() -> DashboardConfig:
    config = DashboardConfig()
    configure_logging("DEBUG" if config.debug else config.log_level)
    return config


def serve():
    from spiredash.services.dashboard import DashboardServer

    config = _load_config()
    DashboardServer(config).run()


def snapshot(
    topology: Optional[Topology] = typer.Option(
        None, help="Skip detection and use this deployment type"
    ),
):
    aggregator = DashboardAggregator(_load_config())
    try:
        data = asyncio.run(aggregator.snapshot(topology))
    except DashboardException as e:
        logger.error(f"Failed to build snapshot: {e}")
        print(json.dumps(e.to_dict()))
        sys.exit(1)

    print(json.dumps(data, indent=2))


def describe(
    resource_type: str = typer.Argument(..., help="Resource kind, e.g. pod"),
    namespace: str = typer.Argument(..., help="Namespace of the resource"),
    context: str = typer.Argument(..., help="Kubeconfig context"),
    name: str = typer.Argument(..., help="Resource name"),
):
    aggregator = DashboardAggregator(_load_config())
    request = DescribeRequest(
        resource_kind=resource_type, namespace=namespace, context=context, name=name
    )
    try:
        result = asyncio.run(aggregator.describe(request))
    except DashboardException as e:
        logger.error(f"Describe failed: {e}")
        print(json.dumps(e.to_dict()))
        sys.exit(1)

    print(result.model_dump_json(by_alias=True, exclude_unset=True, indent=2))


app.command(name="serve", help="Run the dashboard HTTP server.")(serve)
app.command(name="snapshot", help="Print one cluster snapshot as JSON.")(snapshot)
app.command(name="describe", help="Describe one allow-listed resource.")(describe)

if __name__ == "__main__":
    app()
