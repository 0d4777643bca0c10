"""FastAPI service exposing cluster snapshots and resource detail to the dashboard."""

from __future__ import annotations

from typing import Optional

from fastapi import Request
from fastapi.responses import FileResponse, ORJSONResponse, PlainTextResponse, RedirectResponse, Response
from loguru import logger

from spiredash.aggregator import DashboardAggregator
from spiredash.config import DashboardConfig
from spiredash.exceptions import DashboardException, ValidationRejected
from spiredash.executor import ClusterQueryExecutor
from spiredash.metrics import MetricsCollector
from spiredash.models import DescribeRequest
from spiredash.responses import DescribeResponse, HealthResponse, SnapshotResponse
from spiredash.server import WebServer, configure_logging

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


class DashboardServer(WebServer):
    """Web server for the SPIRE dashboard API and page."""

    def __init__(
        self,
        config: DashboardConfig,
        executor: Optional[ClusterQueryExecutor] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.config = config
        self.aggregator = DashboardAggregator(config, executor=executor, metrics=metrics)
        super().__init__(config, docs_url=None, redoc_url=None)

    def _setup_routes(self) -> None:
        @self.app.middleware("http")
        async def allow_cors(request: Request, call_next):
            if request.method == "OPTIONS":
                response = Response(status_code=200)
            else:
                response = await call_next(request)
            response.headers.update(CORS_HEADERS)
            return response

        self.app.add_exception_handler(DashboardException, self.dashboard_error_handler)

        self.app.add_api_route("/", self.index, methods=["GET"], include_in_schema=False)
        self.app.add_api_route(
            "/web-dashboard.html", self.dashboard_page, methods=["GET"], include_in_schema=False
        )
        self.app.add_api_route("/docs", self.docs_redirect, methods=["GET"], include_in_schema=False)
        self.app.add_api_route(
            "/health",
            self.health,
            methods=["GET"],
            response_model=HealthResponse,
            summary="Health check",
            description="Returns OK if service is running",
        )
        self.app.add_api_route(
            "/api/pod-data",
            self.pod_data,
            methods=["GET"],
            response_model=SnapshotResponse,
            summary="Cluster snapshot",
            description="Detects the deployment topology and returns pods, services and PVCs per namespace",
        )
        self.app.add_api_route(
            "/api/describe/{path:path}",
            self.describe,
            methods=["GET"],
            response_model=DescribeResponse,
            response_model_exclude_unset=True,
            summary="Describe a resource",
            description="Path is {type}/{namespace}/{context}/{name}; fields must be allow-listed",
        )
        self.app.add_api_route(
            "/api/describe",
            self.describe,
            methods=["GET"],
            include_in_schema=False,
        )
        if self.config.metrics_enabled:
            self.app.add_api_route(
                "/metrics",
                self.metrics,
                methods=["GET"],
                response_class=PlainTextResponse,
                summary="Prometheus metrics",
            )

    async def dashboard_error_handler(self, request: Request, exc: DashboardException):
        return ORJSONResponse(status_code=exc.status_code, content=exc.to_dict())

    async def index(self):
        return RedirectResponse(url="/web-dashboard.html", status_code=302)

    async def dashboard_page(self):
        if not self.config.dashboard_path.is_file():
            logger.warning("Dashboard page not found at {}", self.config.dashboard_path)
            return PlainTextResponse("Dashboard not found", status_code=404)
        return FileResponse(self.config.dashboard_path, media_type="text/html")

    async def docs_redirect(self):
        return RedirectResponse(url=self.config.docs_url, status_code=302)

    async def health(self) -> HealthResponse:
        return HealthResponse(status="ok")

    async def pod_data(self):
        return await self.aggregator.snapshot()

    async def describe(self, path: str = ""):
        request = DescribeRequest.from_path(path)
        if request is None:
            logger.warning("Malformed describe path: {}", path)
            raise ValidationRejected("Invalid describe path")
        return await self.aggregator.describe(request)

    async def metrics(self) -> str:
        return self.aggregator.metrics.export_prometheus()


def create_app(config: Optional[DashboardConfig] = None):
    """Create the dashboard FastAPI app (for testing or programmatic use)."""
    server = DashboardServer(config or DashboardConfig())
    return server.app


def run() -> None:
    config = DashboardConfig()
    configure_logging("DEBUG" if config.debug else config.log_level)
    server = DashboardServer(config)
    server.run()


if __name__ == "__main__":
    run()
