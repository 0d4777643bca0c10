from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from spiredash.identity import IdentityEntry


class HealthResponse(BaseModel):
    status: str = Field(..., description="Health status", examples=["ok"])


class ResourceInfo(BaseModel):
    type: str = Field(..., description="Resource kind")
    name: str = Field(..., description="Resource name")
    namespace: str = Field(..., description="Namespace of the resource")
    context: str = Field(..., description="Kubeconfig context queried")


class DescribeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    output: str = Field(..., description="kubectl describe output")
    command: str = Field(..., description="Command executed")
    resource: ResourceInfo
    spiffe_info: Optional[IdentityEntry] = Field(
        None, alias="spiffeInfo", description="Matching SPIRE registration entry, if any"
    )
    pod_labels: Optional[Dict[str, Any]] = Field(None, alias="podLabels", description="Pod labels")
    service_account: Optional[str] = Field(
        None, alias="serviceAccount", description="Pod service account"
    )
    enhanced: Optional[bool] = Field(None, description="Whether SPIFFE enrichment was attempted")


class SnapshotResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    deployment_type: str = Field(..., alias="deploymentType", description="basic or enterprise")
    clusters: Dict[str, Any] = Field(
        ..., description="cluster -> namespaces -> namespace -> resource kind -> items"
    )
