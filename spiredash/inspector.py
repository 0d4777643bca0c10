"""Allow-listed single resource detail, with SPIFFE enrichment for workload pods."""

from __future__ import annotations

import asyncio
import json
import re
import shlex
from typing import Any, Dict, Optional

from loguru import logger

from spiredash.config import DashboardConfig
from spiredash.exceptions import DescribeFailed, ValidationRejected
from spiredash.executor import ClusterQueryExecutor, describe_spec
from spiredash.identity import correlate
from spiredash.metrics import MetricsCollector
from spiredash.models import ClusterQuerySpec, DescribeRequest, QueryResult, ResourceKind
from spiredash.responses import DescribeResponse, ResourceInfo

LABELS_JSONPATH = "{.metadata.labels}"
SERVICE_ACCOUNT_JSONPATH = "{.spec.serviceAccountName}"
DEFAULT_SERVICE_ACCOUNT = "default"

# DNS-1123 subdomain, the form Kubernetes requires for object names
RESOURCE_NAME_PATTERN = re.compile(r"[a-z0-9]([-a-z0-9.]*[a-z0-9])?")
MAX_RESOURCE_NAME_LENGTH = 253

_KNOWN_KINDS = {kind.value for kind in ResourceKind}


def parse_labels(text: Optional[str]) -> Dict[str, Any]:
    if not text or not text.strip():
        return {}
    try:
        labels = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Unparseable pod labels: {}", text[:200])
        return {}
    return labels if isinstance(labels, dict) else {}


def is_valid_resource_name(name: str) -> bool:
    return len(name) <= MAX_RESOURCE_NAME_LENGTH and RESOURCE_NAME_PATTERN.fullmatch(name) is not None


def _as_result(outcome, command: str) -> QueryResult:
    if isinstance(outcome, BaseException):
        return QueryResult.failure(command, "command_failed", str(outcome))
    return outcome


class ResourceInspector:
    """Validate describe requests against the allow-lists and run them."""

    def __init__(
        self,
        config: DashboardConfig,
        executor: ClusterQueryExecutor,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.config = config
        self.executor = executor
        self.metrics = metrics

    def attempted_command(self, request: DescribeRequest) -> str:
        return shlex.join(
            [
                self.config.kubectl_binary,
                "--context",
                request.context,
                "-n",
                request.namespace,
                "describe",
                request.resource_kind,
                "--",
                request.name,
            ]
        )

    def validate(self, request: DescribeRequest) -> ResourceKind:
        """Return the resource kind, or raise ValidationRejected without touching the cluster."""
        rejected = []
        if not self.config.is_context_allowed(request.context):
            rejected.append(f"context={request.context}")
        if not self.config.is_namespace_allowed(request.namespace):
            rejected.append(f"namespace={request.namespace}")
        if (
            not self.config.is_resource_kind_allowed(request.resource_kind)
            or request.resource_kind not in _KNOWN_KINDS
        ):
            rejected.append(f"type={request.resource_kind}")
        if not is_valid_resource_name(request.name):
            rejected.append(f"name={request.name}")

        if rejected:
            logger.warning(
                "Rejected describe request ({}): {}",
                ", ".join(rejected),
                self.attempted_command(request),
            )
            self._record("rejected")
            raise ValidationRejected("Invalid resource parameters")

        return ResourceKind(request.resource_kind)

    async def describe(self, request: DescribeRequest) -> DescribeResponse:
        kind = self.validate(request)
        spec = describe_spec(request.context, request.namespace, kind, request.name)

        if kind is ResourceKind.POD and self.config.is_workload_namespace(request.namespace):
            return await self._describe_enhanced(request, spec)

        result = await self._run_describe(spec)
        self._ensure_described(result)
        self._record("ok")
        return DescribeResponse(
            output=result.text or "",
            command=result.command,
            resource=ResourceInfo(**request.as_resource()),
        )

    async def _run_describe(self, spec: ClusterQuerySpec) -> QueryResult:
        try:
            return await self.executor.describe(spec)
        except Exception as exc:
            return QueryResult.failure(self.executor.render(spec), "command_failed", str(exc))

    async def _describe_enhanced(
        self, request: DescribeRequest, spec: ClusterQuerySpec
    ) -> DescribeResponse:
        pod = ClusterQuerySpec(
            context=request.context,
            namespace=request.namespace,
            resource_kind=ResourceKind.POD,
            target_name=request.name,
        )
        registration_command = [self.config.spire_server_binary, "entry", "show"]

        outcomes = await asyncio.gather(
            self.executor.describe(spec),
            self.executor.exec_in_pod(
                request.context,
                self.config.registration_namespace(request.context),
                self.config.spire_server_pod,
                registration_command,
            ),
            self.executor.get_jsonpath(pod, LABELS_JSONPATH),
            self.executor.get_jsonpath(pod, SERVICE_ACCOUNT_JSONPATH),
            return_exceptions=True,
        )
        described, entries, labels, account = (
            _as_result(outcomes[0], self.executor.render(spec)),
            _as_result(outcomes[1], "entry show"),
            _as_result(outcomes[2], "get labels"),
            _as_result(outcomes[3], "get serviceAccountName"),
        )

        self._ensure_described(described)

        secondary = (
            ("registration entries", entries),
            ("labels", labels),
            ("service account", account),
        )
        for name, result in secondary:
            if not result.ok:
                logger.warning(
                    "Enrichment query for {} failed, using default: {} ({})",
                    name,
                    result.command,
                    result.error.message,
                )

        pod_labels = parse_labels(labels.text) if labels.ok else {}
        service_account = (account.text or "").strip() if account.ok else ""
        service_account = service_account or DEFAULT_SERVICE_ACCOUNT
        spiffe_info = correlate(entries.text if entries.ok else None, request.namespace, service_account)

        self._record("enhanced")
        return DescribeResponse(
            output=described.text or "",
            command=described.command,
            resource=ResourceInfo(**request.as_resource()),
            spiffe_info=spiffe_info,
            pod_labels=pod_labels,
            service_account=service_account,
            enhanced=True,
        )

    def _ensure_described(self, result: QueryResult) -> None:
        if result.ok:
            return
        logger.error("Describe failed: {} ({})", result.command, result.error.message)
        self._record("failed")
        raise DescribeFailed(
            "Failed to describe resource",
            details=result.error.stderr or result.error.message,
            command=result.command,
        )

    def _record(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_describe(outcome)
