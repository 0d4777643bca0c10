"""Validate that the dashboard app generates a valid OpenAPI 3.x spec."""

import json

import pytest

from spiredash.config import DashboardConfig
from spiredash.services.dashboard import create_app


def test_dashboard_openapi_schema_is_valid():
    """Generate OpenAPI schema from the dashboard app and validate it."""
    app = create_app(DashboardConfig())

    schema = app.openapi()
    assert schema.get("openapi", "").startswith("3.")
    assert "/api/pod-data" in schema["paths"]
    assert "/api/describe/{path}" in schema["paths"]
    assert "/health" in schema["paths"]
    assert "/" not in schema["paths"]

    # Must be JSON-serializable (no Path or other non-serializable types)
    assert len(json.dumps(schema)) > 0

    try:
        from openapi_spec_validator import validate_spec
    except ImportError:
        pytest.skip("openapi-spec-validator not installed")
    validate_spec(schema)
