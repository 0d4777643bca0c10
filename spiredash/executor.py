"""Cluster query execution: an abstract executor and the kubectl-backed one."""

from __future__ import annotations

import asyncio
import json
import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from loguru import logger

from spiredash.config import DashboardConfig
from spiredash.models import ClusterQuerySpec, QueryMode, QueryResult, ResourceKind


@dataclass
class CommandResult:
    exit_code: int
    stdout: str
    stderr: str
    stdout_truncated: bool
    stderr_truncated: bool


class CommandError(Exception):
    """Command could not be run to completion."""

    def __init__(self, kind: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


def truncate(value: bytes, limit: int) -> tuple[bytes, bool]:
    """Cap raw output at limit bytes, before decoding."""
    if len(value) <= limit:
        return value, False
    return value[:limit], True


def format_command(command: List[str]) -> str:
    return shlex.join(command)


async def run_command(command: List[str], timeout: float, limit: int) -> CommandResult:
    """Run a command and return its output. Raises CommandError on timeout or missing binary."""
    logger.debug("Executing command: {}", command)

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        logger.error("Binary not found for {}", command)
        raise CommandError("missing_binary", f"Binary not found: {command[0]}") from exc

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.error("Command timeout after {}s for {}", timeout, command)
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await process.wait()
        raise CommandError("timeout", f"Command timed out after {timeout}s") from exc

    stdout_bytes, stdout_truncated = truncate(stdout_bytes, limit)
    stderr_bytes, stderr_truncated = truncate(stderr_bytes, limit)
    stdout = stdout_bytes.decode("utf-8", errors="replace")
    stderr = stderr_bytes.decode("utf-8", errors="replace")

    result = CommandResult(
        exit_code=process.returncode,
        stdout=stdout,
        stderr=stderr,
        stdout_truncated=stdout_truncated,
        stderr_truncated=stderr_truncated,
    )

    if result.exit_code != 0:
        logger.warning("Command {} returned exit code {}", command[0], result.exit_code)

    return result


class ClusterQueryExecutor(ABC):
    """Read-only access to cluster state. Implementations never raise for query failures."""

    @abstractmethod
    async def get_contexts(self) -> QueryResult:
        """Return the kubeconfig context listing as text."""
        raise NotImplementedError()

    @abstractmethod
    async def list(self, spec: ClusterQuerySpec) -> QueryResult:
        """Return the items of one resource kind in a namespace."""
        raise NotImplementedError()

    @abstractmethod
    async def describe(self, spec: ClusterQuerySpec) -> QueryResult:
        """Return the human-readable description of a single resource."""
        raise NotImplementedError()

    @abstractmethod
    async def get_jsonpath(self, spec: ClusterQuerySpec, expression: str) -> QueryResult:
        """Return a jsonpath projection of a single resource as text."""
        raise NotImplementedError()

    @abstractmethod
    async def exec_in_pod(
        self, context: str, namespace: str, pod: str, command: List[str]
    ) -> QueryResult:
        """Run a command inside a pod and return its stdout as text."""
        raise NotImplementedError()

    def render(self, spec: ClusterQuerySpec) -> str:
        """Printable form of the command a query runs, for logs and error bodies."""
        return f"{spec.mode.value} {spec.resource_kind.value} {spec.target_name or ''}".strip()


class KubectlExecutor(ClusterQueryExecutor):
    """Executor that shells out to kubectl."""

    def __init__(self, config: DashboardConfig):
        self.config = config

    def _base(self, context: str, namespace: str) -> List[str]:
        return [self.config.kubectl_binary, "--context", context, "-n", namespace]

    def build_command(self, spec: ClusterQuerySpec) -> List[str]:
        command = self._base(spec.context, spec.namespace)
        if spec.mode is QueryMode.DESCRIBE:
            command += ["describe", spec.resource_kind.value, "--", spec.target_name or ""]
        else:
            command += ["get", spec.resource_kind.kubectl_name, "-o", "json"]
        return command

    def render(self, spec: ClusterQuerySpec) -> str:
        return format_command(self.build_command(spec))

    async def _execute(self, command: List[str], timeout: float) -> tuple[str, Optional[CommandResult], Optional[QueryResult]]:
        rendered = format_command(command)
        try:
            result = await run_command(command, timeout, self.config.max_output_bytes)
        except CommandError as exc:
            return rendered, None, QueryResult.failure(rendered, exc.kind, exc.message)

        if result.exit_code != 0:
            message = result.stderr.strip() or f"exit code {result.exit_code}"
            return rendered, result, QueryResult.failure(
                rendered, "command_failed", message, stderr=result.stderr
            )
        return rendered, result, None

    async def _text(self, command: List[str], timeout: float) -> QueryResult:
        rendered, result, failure = await self._execute(command, timeout)
        if failure:
            return failure
        return QueryResult.from_text(rendered, result.stdout)

    async def get_contexts(self) -> QueryResult:
        command = [self.config.kubectl_binary, "config", "get-contexts", "--no-headers"]
        return await self._text(command, self.config.detect_timeout_seconds)

    async def list(self, spec: ClusterQuerySpec) -> QueryResult:
        rendered, result, failure = await self._execute(
            self.build_command(spec), self.config.query_timeout_seconds
        )
        if failure:
            return failure

        if result.stdout_truncated:
            return QueryResult.failure(rendered, "parse_error", "Output exceeded max_output_bytes")
        try:
            payload = json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            return QueryResult.failure(rendered, "parse_error", str(exc))

        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            return QueryResult.failure(rendered, "parse_error", "Output has no items list")
        return QueryResult.from_items(rendered, items)

    async def describe(self, spec: ClusterQuerySpec) -> QueryResult:
        return await self._text(self.build_command(spec), self.config.describe_timeout_seconds)

    async def get_jsonpath(self, spec: ClusterQuerySpec, expression: str) -> QueryResult:
        command = self._base(spec.context, spec.namespace) + [
            "get",
            spec.resource_kind.value,
            "-o",
            f"jsonpath={expression}",
            "--",
            spec.target_name or "",
        ]
        return await self._text(command, self.config.describe_timeout_seconds)

    async def exec_in_pod(
        self, context: str, namespace: str, pod: str, command: List[str]
    ) -> QueryResult:
        full = self._base(context, namespace) + ["exec", pod, "--"] + list(command)
        return await self._text(full, self.config.describe_timeout_seconds)


def describe_spec(context: str, namespace: str, kind: ResourceKind, name: str) -> ClusterQuerySpec:
    return ClusterQuerySpec(
        context=context,
        namespace=namespace,
        resource_kind=kind,
        mode=QueryMode.DESCRIBE,
        target_name=name,
    )
