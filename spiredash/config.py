"""
Configuration for the SPIRE dashboard aggregator using Pydantic v2.
"""

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerConfig(BaseSettings):
    # Server configuration
    bind_address: str = Field(default="127.0.0.1")
    port: int = Field(default=3000, ge=1, le=65535)
    uds_path: Optional[Path] = Field(default=None)

    # TLS configuration
    tls_cert_path: Optional[Path] = Field(default=None)
    tls_key_path: Optional[Path] = Field(default=None)
    client_ca_path: Optional[Path] = Field(default=None)
    mtls_required: bool = Field(default=False)
    require_tls: bool = Field(default=False)

    # Debug mode
    debug: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="",
        extra="ignore",
        frozen=True,
    )

    @field_validator("tls_cert_path", "tls_key_path", "client_ca_path", "uds_path", mode="before")
    @classmethod
    def blank_path_to_none(cls, v: Any) -> Any:
        """Treat empty environment values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("tls_cert_path", "tls_key_path", "client_ca_path", mode="after")
    @classmethod
    def validate_paths(cls, v: Optional[Path]) -> Optional[Path]:
        """Validate that paths exist if specified."""
        if v and not v.exists():
            raise ValueError(f"Path does not exist: {v}")
        return v

    @field_validator("uds_path", mode="after")
    @classmethod
    def validate_uds_directory(cls, v: Optional[Path]) -> Optional[Path]:
        """Validate that parent dir exist if specified."""
        if v and not v.parent.exists():
            raise ValueError(f"Directory for UDS path does not exist: {v}")
        return v


class DashboardConfig(ServerConfig):
    """Cluster layout, allow-lists and query limits for the dashboard service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Executor
    kubectl_binary: str = Field(default="kubectl")
    query_timeout_seconds: float = Field(default=10.0, gt=0)
    describe_timeout_seconds: float = Field(default=15.0, gt=0)
    detect_timeout_seconds: float = Field(default=5.0, gt=0)
    max_output_bytes: int = Field(default=16 * 1024 * 1024, ge=1024)

    # Topology; None means detect from kubeconfig contexts
    deployment_type: Optional[Literal["basic", "enterprise"]] = Field(default=None)
    upstream_marker: str = Field(default="upstream-spire-cluster")
    downstream_marker: str = Field(default="downstream-spire-cluster")

    # Basic deployment layout
    workload_context: str = Field(default="workload-cluster")
    server_namespace: str = Field(default="spire-server")
    agent_namespace: str = Field(default="spire-system")
    workload_namespace: str = Field(default="production")

    # Enterprise deployment layout
    upstream_context: str = Field(default="upstream-spire-cluster")
    upstream_namespace: str = Field(default="spire-upstream")
    downstream_context: str = Field(default="downstream-spire-cluster")
    downstream_namespace: str = Field(default="spire-downstream")
    downstream_workload_namespace: str = Field(default="downstream-workloads")

    # Registration listing source
    spire_server_pod: str = Field(default="spire-server-0")
    spire_server_binary: str = Field(default="/opt/spire/bin/spire-server")

    # Pod name-prefix buckets per namespace; first matching bucket wins
    pod_buckets: Dict[str, Dict[str, str]] = Field(
        default={
            "spire-server": {"server": "spire-server", "database": "spire-db"},
            "spire-system": {"agent": "spire-agent"},
        },
        description="JSON object of namespace -> {bucket: name prefix}",
    )

    # Describe allow-lists - expect JSON arrays from environment
    allowed_contexts: List[str] = Field(
        default=["workload-cluster", "upstream-spire-cluster", "downstream-spire-cluster"],
    )
    allowed_namespaces: List[str] = Field(
        default=[
            "spire-server",
            "spire-system",
            "production",
            "spire-upstream",
            "spire-downstream",
            "downstream-workloads",
        ],
    )
    allowed_resource_kinds: List[str] = Field(
        default=["pod", "service", "pvc", "deployment", "daemonset", "statefulset"],
    )

    # Static assets and links
    dashboard_path: Path = Field(default=Path("web/web-dashboard.html"))
    docs_url: str = Field(default="http://localhost:8000")

    metrics_enabled: bool = Field(default=True)
    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("deployment_type", mode="before")
    @classmethod
    def blank_deployment_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v

    def is_context_allowed(self, context: str) -> bool:
        return context in self.allowed_contexts

    def is_namespace_allowed(self, namespace: str) -> bool:
        return namespace in self.allowed_namespaces

    def is_resource_kind_allowed(self, resource_kind: str) -> bool:
        return resource_kind in self.allowed_resource_kinds

    def is_workload_namespace(self, namespace: str) -> bool:
        return namespace in (self.workload_namespace, self.downstream_workload_namespace)

    def registration_namespace(self, context: str) -> str:
        """Namespace of the SPIRE server that holds the registration entries for a context."""
        servers = {
            self.upstream_context: self.upstream_namespace,
            self.downstream_context: self.downstream_namespace,
        }
        return servers.get(context, self.server_namespace)

    def export_dict(self) -> dict:
        """Export configuration as dictionary."""
        return self.model_dump(exclude_unset=False)


def load_config(**kwargs) -> DashboardConfig:
    """Load configuration with environment variables and optional overrides."""
    return DashboardConfig(**kwargs)
