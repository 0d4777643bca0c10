"""Core value types shared by the executor, collector and inspector."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Topology(str, Enum):
    BASIC = "basic"
    ENTERPRISE = "enterprise"


class QueryMode(str, Enum):
    LIST = "list"
    DESCRIBE = "describe"


class ResourceKind(str, Enum):
    POD = "pod"
    SERVICE = "service"
    PVC = "pvc"
    DEPLOYMENT = "deployment"
    DAEMONSET = "daemonset"
    STATEFULSET = "statefulset"

    @property
    def kubectl_name(self) -> str:
        """Resource argument passed to kubectl."""
        return _KUBECTL_NAMES[self]

    @property
    def snapshot_key(self) -> str:
        """Key the kind's items are stored under in a snapshot namespace."""
        return _SNAPSHOT_KEYS[self]


_KUBECTL_NAMES = {
    ResourceKind.POD: "pods",
    ResourceKind.SERVICE: "svc",
    ResourceKind.PVC: "pvc",
    ResourceKind.DEPLOYMENT: "deployments",
    ResourceKind.DAEMONSET: "daemonsets",
    ResourceKind.STATEFULSET: "statefulsets",
}

_SNAPSHOT_KEYS = {
    ResourceKind.POD: "pods",
    ResourceKind.SERVICE: "services",
    ResourceKind.PVC: "pvcs",
    ResourceKind.DEPLOYMENT: "deployments",
    ResourceKind.DAEMONSET: "daemonsets",
    ResourceKind.STATEFULSET: "statefulsets",
}


@dataclass(frozen=True)
class ClusterQuerySpec:
    context: str
    namespace: str
    resource_kind: ResourceKind
    mode: QueryMode = QueryMode.LIST
    target_name: Optional[str] = None


@dataclass(frozen=True)
class QueryError:
    kind: str
    message: str
    stderr: str = ""


@dataclass
class QueryResult:
    """Outcome of one executor call: parsed items, raw text, or an error."""

    command: str
    items: List[Dict[str, Any]] = field(default_factory=list)
    text: Optional[str] = None
    error: Optional[QueryError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_items(cls, command: str, items: List[Dict[str, Any]]) -> "QueryResult":
        return cls(command=command, items=list(items))

    @classmethod
    def from_text(cls, command: str, text: str) -> "QueryResult":
        return cls(command=command, text=text)

    @classmethod
    def failure(cls, command: str, kind: str, message: str, stderr: str = "") -> "QueryResult":
        return cls(command=command, error=QueryError(kind=kind, message=message, stderr=stderr))

    def degraded(self) -> "QueryResult":
        """Empty-items result that keeps the command and error for logging."""
        return QueryResult(command=self.command, items=[], error=self.error)


@dataclass(frozen=True)
class DescribeRequest:
    resource_kind: str
    namespace: str
    context: str
    name: str

    @classmethod
    def from_path(cls, path: str) -> Optional["DescribeRequest"]:
        """Parse ``{kind}/{namespace}/{context}/{name}``; None unless exactly four non-empty segments."""
        parts = path.strip("/").split("/")
        if len(parts) != 4 or not all(parts):
            return None
        kind, namespace, context, name = parts
        return cls(resource_kind=kind, namespace=namespace, context=context, name=name)

    def as_resource(self) -> Dict[str, str]:
        return {
            "type": self.resource_kind,
            "name": self.name,
            "namespace": self.namespace,
            "context": self.context,
        }
